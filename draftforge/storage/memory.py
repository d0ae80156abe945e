"""In-memory storage backend for DraftForge."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from typing import Deque, Iterable, Sequence

from ..domain.cards import CardInstance
from ..domain.exceptions import CardUnavailable, InsufficientBalance, QueueEntryNotFound
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


class InMemoryPoolStore(PoolStore):
    """Pool, history and balances kept in dictionaries.

    ``commit_pick`` never awaits, so on a single event loop it runs to
    completion before any other coroutine can observe the pool.
    """

    def __init__(self) -> None:
        self._instances: dict[str, CardInstance] = {}
        self._drafted_by: dict[str, str] = {}
        self._balances: dict[str, int] = {}
        self._history: dict[str, list[DraftPickRecord]] = {}
        self._skips: list[SkipRecord] = []

    async def available_cards(self) -> Sequence[CardInstance]:
        return [
            card
            for instance_id, card in self._instances.items()
            if instance_id not in self._drafted_by
        ]

    async def get_instance(self, instance_id: str) -> CardInstance | None:
        if instance_id in self._drafted_by:
            return None
        return self._instances.get(instance_id)

    async def team_history(self, team_id: str) -> Sequence[DraftPickRecord]:
        return list(self._history.get(team_id, ()))

    async def team_balance(self, team_id: str) -> int:
        return self._balances.get(team_id, 0)

    async def commit_pick(
        self, team_id: str, instance_id: str, *, actor_id: str | None = None
    ) -> DraftPickRecord:
        card = self._instances.get(instance_id)
        if card is None or instance_id in self._drafted_by:
            raise CardUnavailable(instance_id)
        balance = self._balances.get(team_id, 0)
        if card.cost > balance:
            raise InsufficientBalance(card.cost, balance)

        history = self._history.setdefault(team_id, [])
        record = DraftPickRecord(
            team_id=team_id,
            instance=card,
            pick_number=len(history) + 1,
            cost=card.cost,
            picked_at=datetime.now(timezone.utc),
            actor_id=actor_id,
        )
        self._drafted_by[instance_id] = team_id
        self._balances[team_id] = balance - card.cost
        history.append(record)
        return record

    async def record_skip(
        self, team_id: str, round_number: int, reason: str, *, actor_id: str | None = None
    ) -> SkipRecord:
        record = SkipRecord(
            team_id=team_id,
            round_number=round_number,
            reason=reason,
            recorded_at=datetime.now(timezone.utc),
            actor_id=actor_id,
        )
        self._skips.append(record)
        return record

    async def add_instances(self, instances: Iterable[CardInstance]) -> None:
        for card in instances:
            if card.instance_id in self._instances:
                raise ValueError(f"Card instance {card.instance_id} already registered")
            self._instances[card.instance_id] = card

    async def set_balance(self, team_id: str, balance: int) -> None:
        if balance < 0:
            raise ValueError("Balance cannot be negative")
        self._balances[team_id] = balance

    def skips(self) -> list[SkipRecord]:
        return list(self._skips)


class InMemoryQueueStore(QueueStore):
    def __init__(self) -> None:
        self._queues: dict[str, list[QueueEntryRecord]] = {}

    async def entries_for_team(self, team_id: str) -> list[QueueEntryRecord]:
        entries = sorted(self._queues.get(team_id, ()), key=lambda entry: entry.position)
        return [entry.copy() for entry in entries]

    async def replace_team_queue(self, team_id: str, entries: Sequence[QueueEntryRecord]) -> None:
        if entries:
            self._queues[team_id] = [entry.copy() for entry in entries]
        else:
            self._queues.pop(team_id, None)

    async def update_approvals(
        self, team_id: str, instance_id: str, approvals: set[str]
    ) -> QueueEntryRecord:
        for entry in self._queues.get(team_id, ()):
            if entry.instance_id == instance_id:
                entry.approvals = set(approvals)
                return entry.copy()
        raise QueueEntryNotFound(team_id, instance_id)

    async def teams_queueing(self, card_id: str) -> list[str]:
        return [
            team_id
            for team_id, entries in self._queues.items()
            if any(entry.card_id == card_id for entry in entries)
        ]


class RoundRobinTurnAuthority(TurnAuthority):
    def __init__(
        self, draft_order: Sequence[str] = (), *, total_rounds: int | None = None
    ) -> None:
        self._order: list[str] = list(draft_order)
        self._picks_made: dict[str, int] = {team_id: 0 for team_id in self._order}
        self._total_rounds = total_rounds

    async def current_turn(self) -> DraftTurnState | None:
        return derive_turn_state(
            [(team_id, self._picks_made[team_id]) for team_id in self._order],
            total_rounds=self._total_rounds,
        )

    async def advance_turn(self, team_id: str | None = None) -> DraftTurnState | None:
        turn = await self.current_turn()
        if turn is None or (team_id is not None and turn.team_id != team_id):
            return turn
        self._picks_made[turn.team_id] += 1
        return await self.current_turn()

    async def set_draft_order(self, team_ids: Sequence[str]) -> None:
        if len(set(team_ids)) != len(team_ids):
            raise ValueError("Draft order cannot list a team twice")
        self._order = list(team_ids)
        self._picks_made = {team_id: self._picks_made.get(team_id, 0) for team_id in self._order}


class InMemoryMembershipSource(MembershipSource):
    def __init__(self) -> None:
        self._members: dict[str, set[str]] = {}

    async def team_member_count(self, team_id: str) -> int:
        return len(self._members.get(team_id, ()))

    async def is_member(self, team_id: str, user_id: str) -> bool:
        return user_id in self._members.get(team_id, ())

    async def add_member(self, team_id: str, user_id: str) -> None:
        self._members.setdefault(team_id, set()).add(user_id)


class InMemoryAuditStore(AuditStore):
    def __init__(self, *, maxlen: int = 1000) -> None:
        self._entries: Deque[tuple[datetime, str, dict]] = deque(maxlen=maxlen)

    async def add_entry(self, action: str, payload: dict) -> None:
        self._entries.append((datetime.now(timezone.utc), action, payload))

    def dump(self) -> list[tuple[datetime, str, dict]]:
        return list(self._entries)
