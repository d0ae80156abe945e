"""SQLAlchemy storage backend for DraftForge."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Iterable, Sequence

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    Integer,
    JSON,
    String,
    UniqueConstraint,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..domain.cards import CardInstance, Rarity, parse_colors
from ..domain.exceptions import (
    CardUnavailable,
    InsufficientBalance,
    QueueEntryNotFound,
    StoreUnavailable,
)
from ..domain.turns import derive_turn_state
from .base import (
    AuditStore,
    DraftPickRecord,
    DraftTurnState,
    MembershipSource,
    PoolStore,
    QueueEntryRecord,
    QueueStore,
    SkipRecord,
    TurnAuthority,
)

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class CardInstanceTable(Base):
    __tablename__ = "draftforge_card_instances"

    instance_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    card_id: Mapped[str] = mapped_column(String(128), index=True)
    name: Mapped[str] = mapped_column(String(255))
    type_line: Mapped[str] = mapped_column(String(255), default="")
    rarity: Mapped[str] = mapped_column(String(32), default=Rarity.COMMON.value)
    colors: Mapped[list] = mapped_column(JSON, default=list)
    mana_cost: Mapped[str] = mapped_column(String(64), default="")
    mana_value: Mapped[float] = mapped_column(Float, default=0.0)
    rating: Mapped[float] = mapped_column(Float, default=0.0)
    cost: Mapped[int] = mapped_column(Integer, default=1)
    drafted_by: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    drafted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class TeamTable(Base):
    __tablename__ = "draftforge_teams"

    team_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    balance: Mapped[int] = mapped_column(Integer, default=0)
    pick_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    picks_made: Mapped[int] = mapped_column(Integer, default=0)


class TeamMemberTable(Base):
    __tablename__ = "draftforge_team_members"

    team_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)


class DraftPickTable(Base):
    __tablename__ = "draftforge_picks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(String(64), index=True)
    instance_id: Mapped[str] = mapped_column(String(64), unique=True)
    pick_number: Mapped[int] = mapped_column(Integer)
    cost: Mapped[int] = mapped_column(Integer)
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    picked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class SkipTable(Base):
    __tablename__ = "draftforge_skips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(String(64), index=True)
    round_number: Mapped[int] = mapped_column(Integer)
    reason: Mapped[str] = mapped_column(String(512))
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class QueueEntryTable(Base):
    __tablename__ = "draftforge_queue_entries"
    __table_args__ = (
        UniqueConstraint("team_id", "instance_id", name="uq_queue_team_instance"),
        UniqueConstraint("team_id", "position", name="uq_queue_team_position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(String(64), index=True)
    instance_id: Mapped[str] = mapped_column(String(64))
    card_id: Mapped[str] = mapped_column(String(128), index=True)
    card_name: Mapped[str] = mapped_column(String(255))
    position: Mapped[int] = mapped_column(Integer)
    pinned: Mapped[bool] = mapped_column(Boolean, default=False)
    approvals: Mapped[list] = mapped_column(JSON, default=list)
    added_by: Mapped[str | None] = mapped_column(String(64), nullable=True)


class AuditTable(Base):
    __tablename__ = "draftforge_audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    action: Mapped[str] = mapped_column(String(128))
    payload: Mapped[dict] = mapped_column(JSON)


class AsyncSQLAlchemyStorage:
    """Bundle of async stores backed by SQLAlchemy."""

    def __init__(self, dsn: str, *, echo: bool = False, total_rounds: int | None = None) -> None:
        self._engine = create_async_engine(dsn, echo=echo, future=True)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
        self._total_rounds = total_rounds

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def init_models(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    def pool_store(self) -> "AsyncSQLAlchemyPoolStore":
        return AsyncSQLAlchemyPoolStore(self._session_factory)

    def queue_store(self) -> "AsyncSQLAlchemyQueueStore":
        return AsyncSQLAlchemyQueueStore(self._session_factory)

    def turn_authority(self) -> "AsyncSQLAlchemyTurnAuthority":
        return AsyncSQLAlchemyTurnAuthority(self._session_factory, total_rounds=self._total_rounds)

    def membership_source(self) -> "AsyncSQLAlchemyMembershipSource":
        return AsyncSQLAlchemyMembershipSource(self._session_factory)

    def audit_store(self) -> "AsyncSQLAlchemyAuditStore":
        return AsyncSQLAlchemyAuditStore(self._session_factory)


def _to_instance(row: CardInstanceTable) -> CardInstance:
    return CardInstance(
        instance_id=row.instance_id,
        card_id=row.card_id,
        name=row.name,
        type_line=row.type_line or "",
        rarity=Rarity(row.rarity),
        colors=parse_colors(row.colors or ()),
        mana_cost=row.mana_cost or "",
        mana_value=row.mana_value or 0.0,
        rating=row.rating or 0.0,
        cost=row.cost,
    )


def _to_queue_record(row: QueueEntryTable) -> QueueEntryRecord:
    return QueueEntryRecord(
        team_id=row.team_id,
        instance_id=row.instance_id,
        card_id=row.card_id,
        card_name=row.card_name,
        position=row.position,
        pinned=row.pinned,
        approvals=set(row.approvals or ()),
        added_by=row.added_by,
    )


class AsyncSQLAlchemyPoolStore(PoolStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def available_cards(self) -> Sequence[CardInstance]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(CardInstanceTable)
                    .where(CardInstanceTable.drafted_by.is_(None))
                    .order_by(CardInstanceTable.instance_id)
                )
                rows = (await session.execute(stmt)).scalars().all()
                return [_to_instance(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not load the card pool: {exc}") from exc

    async def get_instance(self, instance_id: str) -> CardInstance | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(CardInstanceTable, instance_id)
                if row is None or row.drafted_by is not None:
                    return None
                return _to_instance(row)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not load card {instance_id}: {exc}") from exc

    async def team_history(self, team_id: str) -> Sequence[DraftPickRecord]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(DraftPickTable, CardInstanceTable)
                    .join(CardInstanceTable, CardInstanceTable.instance_id == DraftPickTable.instance_id)
                    .where(DraftPickTable.team_id == team_id)
                    .order_by(DraftPickTable.pick_number)
                )
                rows = (await session.execute(stmt)).all()
                return [
                    DraftPickRecord(
                        team_id=pick.team_id,
                        instance=_to_instance(card),
                        pick_number=pick.pick_number,
                        cost=pick.cost,
                        picked_at=pick.picked_at,
                        actor_id=pick.actor_id,
                    )
                    for pick, card in rows
                ]
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not load history for team {team_id}: {exc}") from exc

    async def team_balance(self, team_id: str) -> int:
        try:
            async with self._session_factory() as session:
                row = await session.get(TeamTable, team_id)
                return row.balance if row else 0
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not load balance for team {team_id}: {exc}") from exc

    async def commit_pick(
        self, team_id: str, instance_id: str, *, actor_id: str | None = None
    ) -> DraftPickRecord:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    claimed = await session.execute(
                        update(CardInstanceTable)
                        .where(
                            CardInstanceTable.instance_id == instance_id,
                            CardInstanceTable.drafted_by.is_(None),
                        )
                        .values(drafted_by=team_id, drafted_at=now)
                    )
                    if claimed.rowcount != 1:
                        raise CardUnavailable(instance_id)

                    card_row = await session.get(CardInstanceTable, instance_id)
                    cost = card_row.cost
                    debited = await session.execute(
                        update(TeamTable)
                        .where(TeamTable.team_id == team_id, TeamTable.balance >= cost)
                        .values(balance=TeamTable.balance - cost)
                    )
                    if debited.rowcount != 1:
                        team = await session.get(TeamTable, team_id)
                        raise InsufficientBalance(cost, team.balance if team else 0)

                    previous = await session.scalar(
                        select(func.count(DraftPickTable.id)).where(DraftPickTable.team_id == team_id)
                    )
                    pick = DraftPickTable(
                        team_id=team_id,
                        instance_id=instance_id,
                        pick_number=(previous or 0) + 1,
                        cost=cost,
                        actor_id=actor_id,
                        picked_at=now,
                    )
                    session.add(pick)
                    await session.flush()
                    instance = _to_instance(card_row)
        except IntegrityError as exc:
            logger.warning("Pick of %s by team %s hit a uniqueness guard", instance_id, team_id)
            raise CardUnavailable(instance_id) from exc
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not commit pick of {instance_id}: {exc}") from exc

        return DraftPickRecord(
            team_id=team_id,
            instance=instance,
            pick_number=pick.pick_number,
            cost=cost,
            picked_at=now,
            actor_id=actor_id,
        )

    async def record_skip(
        self, team_id: str, round_number: int, reason: str, *, actor_id: str | None = None
    ) -> SkipRecord:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                session.add(
                    SkipTable(
                        team_id=team_id,
                        round_number=round_number,
                        reason=reason,
                        actor_id=actor_id,
                        recorded_at=now,
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not record skip for team {team_id}: {exc}") from exc
        return SkipRecord(
            team_id=team_id,
            round_number=round_number,
            reason=reason,
            recorded_at=now,
            actor_id=actor_id,
        )

    async def add_instances(self, instances: Iterable[CardInstance]) -> None:
        async with self._session_factory() as session:
            for card in instances:
                session.add(
                    CardInstanceTable(
                        instance_id=card.instance_id,
                        card_id=card.card_id,
                        name=card.name,
                        type_line=card.type_line,
                        rarity=card.rarity.value,
                        colors=[color.value for color in card.colors],
                        mana_cost=card.mana_cost,
                        mana_value=card.mana_value,
                        rating=card.rating,
                        cost=card.cost,
                    )
                )
            await session.commit()

    async def set_balance(self, team_id: str, balance: int) -> None:
        if balance < 0:
            raise ValueError("Balance cannot be negative")
        async with self._session_factory() as session:
            row = await session.get(TeamTable, team_id)
            if row is None:
                session.add(TeamTable(team_id=team_id, balance=balance))
            else:
                row.balance = balance
            await session.commit()


class AsyncSQLAlchemyQueueStore(QueueStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def entries_for_team(self, team_id: str) -> list[QueueEntryRecord]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(QueueEntryTable)
                    .where(QueueEntryTable.team_id == team_id)
                    .order_by(QueueEntryTable.position)
                )
                rows = (await session.execute(stmt)).scalars().all()
                return [_to_queue_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not load queue for team {team_id}: {exc}") from exc

    async def replace_team_queue(self, team_id: str, entries: Sequence[QueueEntryRecord]) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(QueueEntryTable).where(QueueEntryTable.team_id == team_id)
                    )
                    # Flush the delete first so the unique position constraint sees an empty queue.
                    await session.flush()
                    session.add_all(
                        QueueEntryTable(
                            team_id=team_id,
                            instance_id=entry.instance_id,
                            card_id=entry.card_id,
                            card_name=entry.card_name,
                            position=entry.position,
                            pinned=entry.pinned,
                            approvals=sorted(entry.approvals),
                            added_by=entry.added_by,
                        )
                        for entry in entries
                    )
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not save queue for team {team_id}: {exc}") from exc

    async def update_approvals(
        self, team_id: str, instance_id: str, approvals: set[str]
    ) -> QueueEntryRecord:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    row = await session.scalar(
                        select(QueueEntryTable).where(
                            QueueEntryTable.team_id == team_id,
                            QueueEntryTable.instance_id == instance_id,
                        )
                    )
                    if row is None:
                        raise QueueEntryNotFound(team_id, instance_id)
                    row.approvals = sorted(approvals)
                    record = _to_queue_record(row)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not record vote for {instance_id}: {exc}") from exc
        return record

    async def teams_queueing(self, card_id: str) -> list[str]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(QueueEntryTable.team_id)
                    .where(QueueEntryTable.card_id == card_id)
                    .distinct()
                    .order_by(QueueEntryTable.team_id)
                )
                return list((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not search queues for {card_id}: {exc}") from exc


class AsyncSQLAlchemyTurnAuthority(TurnAuthority):
    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], *, total_rounds: int | None = None
    ) -> None:
        self._session_factory = session_factory
        self._total_rounds = total_rounds

    async def _load_order(self, session: AsyncSession) -> list[tuple[str, int]]:
        stmt = (
            select(TeamTable.team_id, TeamTable.picks_made)
            .where(TeamTable.pick_position.is_not(None))
            .order_by(TeamTable.pick_position)
        )
        return [(team_id, picks) for team_id, picks in (await session.execute(stmt)).all()]

    async def current_turn(self) -> DraftTurnState | None:
        try:
            async with self._session_factory() as session:
                order = await self._load_order(session)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not load draft order: {exc}") from exc
        return derive_turn_state(order, total_rounds=self._total_rounds)

    async def advance_turn(self, team_id: str | None = None) -> DraftTurnState | None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    order = await self._load_order(session)
                    turn = derive_turn_state(order, total_rounds=self._total_rounds)
                    if turn is None or (team_id is not None and turn.team_id != team_id):
                        return turn
                    picks = dict(order)[turn.team_id]
                    # Conditional on the count we read, so a concurrent advance is not doubled.
                    await session.execute(
                        update(TeamTable)
                        .where(TeamTable.team_id == turn.team_id, TeamTable.picks_made == picks)
                        .values(picks_made=picks + 1)
                    )
                    order = await self._load_order(session)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not advance the draft: {exc}") from exc
        return derive_turn_state(order, total_rounds=self._total_rounds)

    async def set_draft_order(self, team_ids: Sequence[str]) -> None:
        if len(set(team_ids)) != len(team_ids):
            raise ValueError("Draft order cannot list a team twice")
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(update(TeamTable).values(pick_position=None))
                for position, team_id in enumerate(team_ids, start=1):
                    row = await session.get(TeamTable, team_id)
                    if row is None:
                        session.add(TeamTable(team_id=team_id, balance=0, pick_position=position))
                    else:
                        row.pick_position = position


class AsyncSQLAlchemyMembershipSource(MembershipSource):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def team_member_count(self, team_id: str) -> int:
        try:
            async with self._session_factory() as session:
                count = await session.scalar(
                    select(func.count()).select_from(TeamMemberTable).where(TeamMemberTable.team_id == team_id)
                )
                return count or 0
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not count members of team {team_id}: {exc}") from exc

    async def is_member(self, team_id: str, user_id: str) -> bool:
        try:
            async with self._session_factory() as session:
                return await session.get(TeamMemberTable, (team_id, user_id)) is not None
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Could not check membership of team {team_id}: {exc}") from exc

    async def add_member(self, team_id: str, user_id: str) -> None:
        async with self._session_factory() as session:
            if await session.get(TeamMemberTable, (team_id, user_id)) is None:
                session.add(TeamMemberTable(team_id=team_id, user_id=user_id))
                await session.commit()


class AsyncSQLAlchemyAuditStore(AuditStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_entry(self, action: str, payload: dict) -> None:
        async with self._session_factory() as session:
            session.add(
                AuditTable(
                    created_at=datetime.now(timezone.utc),
                    action=action,
                    payload=dict(payload),
                )
            )
            await session.commit()
