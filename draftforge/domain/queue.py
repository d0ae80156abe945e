"""Manual draft queues kept by each team."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Sequence

from .cards import CardInstance
from .exceptions import CardUnavailable, QueueEntryNotFound, Unauthorized
from .scoring import rank_for_display
from ..storage.base import MembershipSource, PoolStore, QueueEntryRecord, QueueStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QueueEntry:
    team_id: str
    instance_id: str
    card_id: str
    card_name: str
    position: int
    pinned: bool
    approvals: frozenset[str]
    added_by: str | None = None


@dataclass(frozen=True, slots=True)
class QueueRequest:
    """One row of a bulk ``set_queue`` call."""

    instance_id: str
    pinned: bool = False


@dataclass(frozen=True, slots=True)
class MaterializedEntry:
    position: int
    card: CardInstance
    source: Literal["manual", "algorithm"]
    pinned: bool = False
    approvals: frozenset[str] = frozenset()


def _renumber(entries: list[QueueEntryRecord]) -> list[QueueEntryRecord]:
    for position, entry in enumerate(entries, start=1):
        entry.position = position
    return entries


class QueueService:
    """Position-indexed queue operations; positions always stay dense 1..N."""

    def __init__(
        self,
        queue_store: QueueStore,
        pool_store: PoolStore,
        membership: MembershipSource,
    ) -> None:
        self._queues = queue_store
        self._pool = pool_store
        self._membership = membership

    async def list_queue(self, team_id: str) -> list[QueueEntry]:
        return [self._to_entry(record) for record in await self._queues.entries_for_team(team_id)]

    async def enqueue(self, team_id: str, instance_id: str, *, user_id: str) -> QueueEntry:
        """Append a card to the end of the queue."""
        return await self.insert_card(team_id, instance_id, user_id=user_id)

    async def pin_card(
        self, team_id: str, instance_id: str, *, user_id: str, position: int = 1
    ) -> QueueEntry:
        return await self.insert_card(
            team_id, instance_id, user_id=user_id, position=position, pinned=True
        )

    async def insert_card(
        self,
        team_id: str,
        instance_id: str,
        *,
        user_id: str,
        position: int | None = None,
        pinned: bool = False,
    ) -> QueueEntry:
        """Place a card at ``position``, shifting entries at or after it down.

        A card already in the queue is moved and keeps its approvals. A
        position past the end appends.
        """
        await self._require_member(team_id, user_id)
        if position is not None and position < 1:
            raise ValueError("Queue positions start at 1")
        card = await self._pool.get_instance(instance_id)
        if card is None:
            raise CardUnavailable(instance_id)

        entries = await self._queues.entries_for_team(team_id)
        existing = next((entry for entry in entries if entry.instance_id == instance_id), None)
        if existing is not None:
            entries.remove(existing)
            existing.pinned = existing.pinned or pinned
            record = existing
        else:
            record = QueueEntryRecord(
                team_id=team_id,
                instance_id=card.instance_id,
                card_id=card.card_id,
                card_name=card.name,
                position=0,
                pinned=pinned,
                added_by=user_id,
            )
        index = len(entries) if position is None else min(position, len(entries) + 1) - 1
        entries.insert(index, record)
        await self._queues.replace_team_queue(team_id, _renumber(entries))
        return self._to_entry(record)

    async def move_card(
        self, team_id: str, instance_id: str, position: int, *, user_id: str
    ) -> QueueEntry:
        await self._require_member(team_id, user_id)
        if position < 1:
            raise ValueError("Queue positions start at 1")
        entries = await self._queues.entries_for_team(team_id)
        record = self._find(entries, team_id, instance_id)
        entries.remove(record)
        entries.insert(min(position, len(entries) + 1) - 1, record)
        await self._queues.replace_team_queue(team_id, _renumber(entries))
        return self._to_entry(record)

    async def remove_card(self, team_id: str, instance_id: str, *, user_id: str) -> None:
        await self._require_member(team_id, user_id)
        entries = await self._queues.entries_for_team(team_id)
        entries.remove(self._find(entries, team_id, instance_id))
        await self._queues.replace_team_queue(team_id, _renumber(entries))

    async def set_queue(
        self,
        team_id: str,
        requests: Sequence[QueueRequest | str],
        *,
        user_id: str,
    ) -> list[QueueEntry]:
        """Replace the whole queue, carrying approvals over by instance id."""
        await self._require_member(team_id, user_id)
        normalized = [
            request if isinstance(request, QueueRequest) else QueueRequest(instance_id=request)
            for request in requests
        ]
        seen: set[str] = set()
        for request in normalized:
            if request.instance_id in seen:
                raise ValueError(f"Card {request.instance_id} is listed twice")
            seen.add(request.instance_id)

        previous = {entry.instance_id: entry for entry in await self._queues.entries_for_team(team_id)}
        available = {card.instance_id: card for card in await self._pool.available_cards()}

        entries: list[QueueEntryRecord] = []
        for request in normalized:
            old = previous.get(request.instance_id)
            card = available.get(request.instance_id)
            if card is None and old is None:
                raise CardUnavailable(request.instance_id)
            entries.append(
                QueueEntryRecord(
                    team_id=team_id,
                    instance_id=request.instance_id,
                    card_id=card.card_id if card else old.card_id,
                    card_name=card.name if card else old.card_name,
                    position=0,
                    pinned=request.pinned,
                    approvals=set(old.approvals) if old else set(),
                    added_by=old.added_by if old else user_id,
                )
            )
        await self._queues.replace_team_queue(team_id, _renumber(entries))
        return [self._to_entry(entry) for entry in entries]

    async def clear_queue(self, team_id: str, *, user_id: str) -> None:
        await self._require_member(team_id, user_id)
        await self._queues.replace_team_queue(team_id, [])

    async def materialized_queue(self, team_id: str, depth: int = 20) -> list[MaterializedEntry]:
        """Manual entries still draftable, padded with algorithmic filler up to ``depth``."""
        pool = await self._pool.available_cards()
        available = {card.instance_id: card for card in pool}
        view: list[MaterializedEntry] = []
        used: set[str] = set()
        for record in await self._queues.entries_for_team(team_id):
            card = available.get(record.instance_id)
            if card is None or len(view) >= depth:
                continue
            view.append(
                MaterializedEntry(
                    position=len(view) + 1,
                    card=card,
                    source="manual",
                    pinned=record.pinned,
                    approvals=frozenset(record.approvals),
                )
            )
            used.add(card.instance_id)

        if len(view) < depth:
            history = [pick.instance for pick in await self._pool.team_history(team_id)]
            remaining = [card for card in pool if card.instance_id not in used]
            for card, _ in rank_for_display(remaining, history):
                if len(view) >= depth:
                    break
                view.append(MaterializedEntry(position=len(view) + 1, card=card, source="algorithm"))
        return view

    async def purge_drafted(self, drafted: CardInstance) -> int:
        """Drop a drafted card from every queue; returns the number of entries removed.

        Entries for the drafted instance always go. Entries for other copies of
        the same card stay while an undrafted copy is left in the pool.
        """
        remaining = {
            card.instance_id
            for card in await self._pool.available_cards()
            if card.card_id == drafted.card_id and card.instance_id != drafted.instance_id
        }
        logger.debug(
            "Cleaning queues for %s (%d copies left)", drafted.card_id, len(remaining)
        )
        removed = 0
        for team_id in await self._queues.teams_queueing(drafted.card_id):
            entries = await self._queues.entries_for_team(team_id)
            kept = [
                entry
                for entry in entries
                if entry.card_id != drafted.card_id or entry.instance_id in remaining
            ]
            if len(kept) != len(entries):
                removed += len(entries) - len(kept)
                await self._queues.replace_team_queue(team_id, _renumber(kept))
        return removed

    async def _require_member(self, team_id: str, user_id: str) -> None:
        if not await self._membership.is_member(team_id, user_id):
            raise Unauthorized(team_id, user_id)

    @staticmethod
    def _find(entries: list[QueueEntryRecord], team_id: str, instance_id: str) -> QueueEntryRecord:
        for entry in entries:
            if entry.instance_id == instance_id:
                return entry
        raise QueueEntryNotFound(team_id, instance_id)

    @staticmethod
    def _to_entry(record: QueueEntryRecord) -> QueueEntry:
        return QueueEntry(
            team_id=record.team_id,
            instance_id=record.instance_id,
            card_id=record.card_id,
            card_name=record.card_name,
            position=record.position,
            pinned=record.pinned,
            approvals=frozenset(record.approvals),
            added_by=record.added_by,
        )
