"""Decide where a team's next pick comes from."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from .cards import CardInstance
from .queue import QueueEntry, QueueService
from .scoring import AffinityScorer, AlgorithmDetails
from ..storage.base import PoolStore


class PickSource(str, Enum):
    MANUAL_QUEUE = "manual_queue"
    ALGORITHM = "algorithm"
    SKIPPED = "skipped"
    DIRECT = "direct"


@dataclass(frozen=True, slots=True)
class QueuedPick:
    card: CardInstance
    entry: QueueEntry
    queue_depth: int

    source: ClassVar[PickSource] = PickSource.MANUAL_QUEUE


@dataclass(frozen=True, slots=True)
class AlgorithmPick:
    card: CardInstance
    details: AlgorithmDetails
    queue_depth: int

    source: ClassVar[PickSource] = PickSource.ALGORITHM


@dataclass(frozen=True, slots=True)
class SkippedPick:
    reason: str
    queue_depth: int
    shortfall: int | None = None
    details: AlgorithmDetails | None = None

    source: ClassVar[PickSource] = PickSource.SKIPPED


PickDecision = QueuedPick | AlgorithmPick | SkippedPick


def insufficient_funds(need: int, have: int) -> str:
    return f"Insufficient funds: need {need}, have {have}"


class PickResolver:
    """One-shot choice between the manual queue, the scorer, and a skip.

    At preview time only algorithmic picks go through the affordability
    gate; at commit time queued picks do as well.
    """

    def __init__(self, pool_store: PoolStore, queues: QueueService, scorer: AffinityScorer) -> None:
        self._pool = pool_store
        self._queues = queues
        self._scorer = scorer

    async def preview(self, team_id: str) -> PickDecision:
        return await self.resolve(team_id, at_commit=False)

    async def resolve(self, team_id: str, *, at_commit: bool = True) -> PickDecision:
        entries = await self._queues.list_queue(team_id)
        pool = await self._pool.available_cards()
        balance = await self._pool.team_balance(team_id)
        depth = len(entries)

        available = {card.instance_id: card for card in pool}
        for entry in entries:
            card = available.get(entry.instance_id)
            if card is None:
                continue
            if at_commit and card.cost > balance:
                return SkippedPick(
                    reason=insufficient_funds(card.cost, balance),
                    queue_depth=depth,
                    shortfall=card.cost - balance,
                )
            return QueuedPick(card=card, entry=entry, queue_depth=depth)

        result = await self._scorer.compute(team_id, pool=pool, balance=balance)
        card = result.card
        if card is None:
            cheapest = min(candidate.cost for candidate in pool)
            if cheapest > balance:
                return SkippedPick(
                    reason=insufficient_funds(cheapest, balance),
                    queue_depth=depth,
                    shortfall=cheapest - balance,
                    details=result.details,
                )
            return SkippedPick(
                reason="No eligible card could be selected",
                queue_depth=depth,
                details=result.details,
            )
        if card.cost > balance:
            return SkippedPick(
                reason=insufficient_funds(card.cost, balance),
                queue_depth=depth,
                shortfall=card.cost - balance,
                details=result.details,
            )
        return AlgorithmPick(card=card, details=result.details, queue_depth=depth)
