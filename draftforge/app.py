"""Top level application object for DraftForge."""

from __future__ import annotations

from .config import DraftForgeConfig
from .domain.auto_draft import AutoDraftService
from .domain.events import EventBus
from .domain.execution import ExecutionGateway
from .domain.queue import QueueService
from .domain.resolver import PickResolver
from .domain.scoring import AffinityScorer
from .domain.votes import VoteCoordinator
from .storage.base import AuditStore, MembershipSource, PoolStore, QueueStore, TurnAuthority
from .storage.memory import (
    InMemoryAuditStore,
    InMemoryMembershipSource,
    InMemoryPoolStore,
    InMemoryQueueStore,
    RoundRobinTurnAuthority,
)
from .storage.sqlalchemy import AsyncSQLAlchemyStorage


class DraftApp:
    """Central dependency container wiring collaborators into the engine."""

    def __init__(
        self,
        config: DraftForgeConfig,
        *,
        pool_store: PoolStore | None = None,
        queue_store: QueueStore | None = None,
        turns: TurnAuthority | None = None,
        membership: MembershipSource | None = None,
        audit_store: AuditStore | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config
        self.event_bus = event_bus or EventBus()

        self._sqlalchemy_storage: AsyncSQLAlchemyStorage | None = None
        (
            self.pool_store,
            self.queue_store,
            self.turns,
            self.membership,
            self.audit_store,
        ) = self._wire_storage(pool_store, queue_store, turns, membership, audit_store)

        self.scorer = AffinityScorer(self.pool_store)
        self.queues = QueueService(self.queue_store, self.pool_store, self.membership)
        self.resolver = PickResolver(self.pool_store, self.queues, self.scorer)
        self.gateway = ExecutionGateway(
            self.pool_store,
            self.turns,
            self.queues,
            self.audit_store,
            self.event_bus,
            pick_topic=config.draft.pick_topic,
            skip_topic=config.draft.skip_topic,
        )
        self.votes = VoteCoordinator(self.queue_store, self.membership, self.turns, self.gateway)
        self.auto_draft = AutoDraftService(self.resolver, self.gateway, self.turns, self.membership)

        if config.broadcast.enabled:
            self._attach_telegram()

    def _wire_storage(
        self,
        pool_store: PoolStore | None,
        queue_store: QueueStore | None,
        turns: TurnAuthority | None,
        membership: MembershipSource | None,
        audit_store: AuditStore | None,
    ) -> tuple[PoolStore, QueueStore, TurnAuthority, MembershipSource, AuditStore]:
        if pool_store and queue_store and turns and membership and audit_store:
            return pool_store, queue_store, turns, membership, audit_store

        backend = self.config.storage.backend
        if backend == "memory":
            return (
                pool_store or InMemoryPoolStore(),
                queue_store or InMemoryQueueStore(),
                turns or RoundRobinTurnAuthority(total_rounds=self.config.draft.total_rounds),
                membership or InMemoryMembershipSource(),
                audit_store or InMemoryAuditStore(),
            )
        if backend == "sqlalchemy":
            dsn = self.config.storage.resolve_dsn()
            if not dsn:
                raise ValueError("SQLAlchemy backend requires a DSN")
            storage = AsyncSQLAlchemyStorage(
                dsn,
                echo=self.config.storage.echo_sql,
                total_rounds=self.config.draft.total_rounds,
            )
            self._sqlalchemy_storage = storage
            return (
                pool_store or storage.pool_store(),
                queue_store or storage.queue_store(),
                turns or storage.turn_authority(),
                membership or storage.membership_source(),
                audit_store or storage.audit_store(),
            )
        raise ValueError(f"Unsupported storage backend {backend}")

    def _attach_telegram(self) -> None:
        from aiogram import Bot

        from .telegram import TelegramPickAnnouncer

        announcer = TelegramPickAnnouncer(Bot(self.config.broadcast.bot_token), self.config.broadcast.chat_id)
        self.event_bus.subscribe_many(
            (self.config.draft.pick_topic, self.config.draft.skip_topic), announcer
        )

    async def init_backend(self) -> None:
        """Initialize storage backend resources (e.g., database tables)."""
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.init_models()

    async def close(self) -> None:
        await self.gateway.drain_broadcasts()
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.dispose()
