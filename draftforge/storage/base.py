"""Storage abstractions consumed by the DraftForge engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Protocol, Sequence

from ..domain.cards import CardInstance


@dataclass(slots=True)
class DraftPickRecord:
    team_id: str
    instance: CardInstance
    pick_number: int
    cost: int
    picked_at: datetime
    actor_id: str | None = None


@dataclass(slots=True)
class SkipRecord:
    team_id: str
    round_number: int
    reason: str
    recorded_at: datetime
    actor_id: str | None = None
    failed_hooks: list[str] = field(default_factory=list)


@dataclass(slots=True)
class QueueEntryRecord:
    team_id: str
    instance_id: str
    card_id: str
    card_name: str
    position: int
    pinned: bool = False
    approvals: set[str] = field(default_factory=set)
    added_by: str | None = None

    def copy(self) -> "QueueEntryRecord":
        return QueueEntryRecord(
            team_id=self.team_id,
            instance_id=self.instance_id,
            card_id=self.card_id,
            card_name=self.card_name,
            position=self.position,
            pinned=self.pinned,
            approvals=set(self.approvals),
            added_by=self.added_by,
        )


@dataclass(frozen=True, slots=True)
class DraftTurnState:
    turn_id: int
    team_id: str
    on_deck_team_id: str
    round_number: int


class PoolStore(Protocol):
    async def available_cards(self) -> Sequence[CardInstance]:
        ...

    async def get_instance(self, instance_id: str) -> CardInstance | None:
        """Return the instance only while it is still undrafted."""
        ...

    async def team_history(self, team_id: str) -> Sequence[DraftPickRecord]:
        ...

    async def team_balance(self, team_id: str) -> int:
        ...

    async def commit_pick(
        self, team_id: str, instance_id: str, *, actor_id: str | None = None
    ) -> DraftPickRecord:
        """Record pick, debit cost and consume the instance as one unit.

        Raises CardUnavailable or InsufficientBalance without side effects.
        """
        ...

    async def record_skip(
        self, team_id: str, round_number: int, reason: str, *, actor_id: str | None = None
    ) -> SkipRecord:
        ...

    async def add_instances(self, instances: Iterable[CardInstance]) -> None:
        ...

    async def set_balance(self, team_id: str, balance: int) -> None:
        ...


class QueueStore(Protocol):
    async def entries_for_team(self, team_id: str) -> list[QueueEntryRecord]:
        """Return the team's entries ordered by position."""
        ...

    async def replace_team_queue(self, team_id: str, entries: Sequence[QueueEntryRecord]) -> None:
        """Atomically swap the whole queue of a team."""
        ...

    async def update_approvals(
        self, team_id: str, instance_id: str, approvals: set[str]
    ) -> QueueEntryRecord:
        ...

    async def teams_queueing(self, card_id: str) -> list[str]:
        ...


class TurnAuthority(Protocol):
    async def current_turn(self) -> DraftTurnState | None:
        ...

    async def advance_turn(self, team_id: str | None = None) -> DraftTurnState | None:
        """Advance past the team on the clock; no-op if ``team_id`` is not on it."""
        ...

    async def set_draft_order(self, team_ids: Sequence[str]) -> None:
        ...


class MembershipSource(Protocol):
    async def team_member_count(self, team_id: str) -> int:
        ...

    async def is_member(self, team_id: str, user_id: str) -> bool:
        ...

    async def add_member(self, team_id: str, user_id: str) -> None:
        ...


class AuditStore(Protocol):
    async def add_entry(self, action: str, payload: dict) -> None:
        ...
