"""Commit picks and skips, then run post-commit hooks."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable

from .cards import CardInstance
from .events import BroadcastSink
from .exceptions import CardUnavailable, InsufficientBalance, TeamNotOnClock
from .queue import QueueService
from .resolver import PickSource, SkippedPick
from .scoring import AlgorithmDetails
from ..storage.base import AuditStore, DraftTurnState, PoolStore, SkipRecord, TurnAuthority

logger = logging.getLogger(__name__)

PICK_TOPIC = "draft.pick.committed"
SKIP_TOPIC = "draft.pick.skipped"


@dataclass(slots=True)
class CommittedPick:
    team_id: str
    card: CardInstance
    pick_number: int
    cost: int
    round_number: int
    source: PickSource
    picked_at: datetime
    actor_id: str | None = None
    details: AlgorithmDetails | None = None
    failed_hooks: list[str] = field(default_factory=list)

    def to_payload(self) -> dict:
        return {
            "team_id": self.team_id,
            "instance_id": self.card.instance_id,
            "card_id": self.card.card_id,
            "card_name": self.card.name,
            "pick_number": self.pick_number,
            "cost": self.cost,
            "round_number": self.round_number,
            "pick_source": self.source.value,
            "actor_id": self.actor_id,
        }


Outcome = CommittedPick | SkipRecord
PostCommitHook = Callable[[Outcome], Awaitable[None]]


class ExecutionGateway:
    """Single entry point that turns a decision into committed draft state.

    The store's ``commit_pick`` is the only place the pick itself happens;
    everything after it is a best-effort hook whose failure is logged and
    recorded on the outcome instead of being raised. Broadcasts run as
    background tasks so a slow listener never holds up the caller.
    """

    def __init__(
        self,
        pool_store: PoolStore,
        turns: TurnAuthority,
        queues: QueueService,
        audit_store: AuditStore,
        sink: BroadcastSink,
        *,
        pick_topic: str = PICK_TOPIC,
        skip_topic: str = SKIP_TOPIC,
    ) -> None:
        self._pool = pool_store
        self._turns = turns
        self._queues = queues
        self._audit = audit_store
        self._sink = sink
        self._pick_topic = pick_topic
        self._skip_topic = skip_topic
        self._broadcasts: set[asyncio.Task[None]] = set()
        self._hooks: list[tuple[str, PostCommitHook]] = [
            ("queue_cleanup", self._cleanup_queues),
            ("audit", self._write_audit),
            ("advance_turn", self._advance_turn),
            ("broadcast", self._broadcast),
        ]

    def add_hook(self, name: str, hook: PostCommitHook) -> None:
        self._hooks.append((name, hook))

    @property
    def hook_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._hooks)

    @property
    def pending_broadcasts(self) -> tuple[asyncio.Task[None], ...]:
        return tuple(self._broadcasts)

    async def drain_broadcasts(self) -> None:
        if self._broadcasts:
            await asyncio.gather(*self._broadcasts, return_exceptions=True)

    async def execute_pick(
        self,
        team_id: str,
        instance_id: str,
        *,
        turn_id: int | None = None,
        actor_id: str | None = None,
        source: PickSource = PickSource.DIRECT,
        details: AlgorithmDetails | None = None,
    ) -> CommittedPick:
        turn = await self._require_on_clock(team_id, turn_id)

        card = await self._pool.get_instance(instance_id)
        if card is None:
            raise CardUnavailable(instance_id)
        balance = await self._pool.team_balance(team_id)
        if card.cost > balance:
            raise InsufficientBalance(card.cost, balance)

        try:
            record = await self._pool.commit_pick(team_id, instance_id, actor_id=actor_id)
        except CardUnavailable:
            logger.warning("Team %s lost the race for %s", team_id, instance_id)
            raise

        pick = CommittedPick(
            team_id=team_id,
            card=record.instance,
            pick_number=record.pick_number,
            cost=record.cost,
            round_number=turn.round_number,
            source=source,
            picked_at=record.picked_at,
            actor_id=actor_id,
            details=details,
        )
        logger.info(
            "Team %s drafted %s (%s) for %d via %s",
            team_id,
            pick.card.name,
            instance_id,
            pick.cost,
            source.value,
        )
        await self._run_hooks(pick)
        return pick

    async def record_skip(
        self,
        team_id: str,
        decision: SkippedPick,
        *,
        turn_id: int | None = None,
        actor_id: str | None = None,
    ) -> SkipRecord:
        turn = await self._require_on_clock(team_id, turn_id)
        record = await self._pool.record_skip(
            team_id, turn.round_number, decision.reason, actor_id=actor_id
        )
        logger.info("Team %s skipped round %d: %s", team_id, turn.round_number, decision.reason)
        await self._run_hooks(record)
        return record

    async def _require_on_clock(self, team_id: str, turn_id: int | None) -> DraftTurnState:
        turn = await self._turns.current_turn()
        if turn is None:
            raise TeamNotOnClock(team_id)
        if turn.team_id != team_id or (turn_id is not None and turn.turn_id != turn_id):
            raise TeamNotOnClock(team_id, turn.team_id)
        return turn

    async def _run_hooks(self, outcome: Outcome) -> None:
        for name, hook in self._hooks:
            try:
                await hook(outcome)
            except Exception:
                logger.exception("Post-commit hook '%s' failed for team %s", name, outcome.team_id)
                outcome.failed_hooks.append(name)

    async def _cleanup_queues(self, outcome: Outcome) -> None:
        if isinstance(outcome, CommittedPick):
            await self._queues.purge_drafted(outcome.card)

    async def _write_audit(self, outcome: Outcome) -> None:
        if isinstance(outcome, CommittedPick):
            payload = outcome.to_payload()
            payload["algorithm_details"] = outcome.details.to_dict() if outcome.details else None
            await self._audit.add_entry("draft.pick", payload)
        else:
            await self._audit.add_entry("draft.skip", _skip_payload(outcome))

    async def _advance_turn(self, outcome: Outcome) -> None:
        await self._turns.advance_turn(outcome.team_id)

    async def _broadcast(self, outcome: Outcome) -> None:
        if isinstance(outcome, CommittedPick):
            topic, payload = self._pick_topic, outcome.to_payload()
        else:
            topic, payload = self._skip_topic, _skip_payload(outcome)
        task = asyncio.create_task(self._sink.publish(topic, payload), name=f"broadcast:{topic}")
        self._broadcasts.add(task)
        task.add_done_callback(self._broadcast_done)

    def _broadcast_done(self, task: asyncio.Task[None]) -> None:
        self._broadcasts.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.exception("Broadcast task %s failed", task.get_name(), exc_info=exc)


def _skip_payload(record: SkipRecord) -> dict:
    return {
        "team_id": record.team_id,
        "round_number": record.round_number,
        "reason": record.reason,
        "cost": 0,
        "pick_source": PickSource.SKIPPED.value,
        "actor_id": record.actor_id,
    }
