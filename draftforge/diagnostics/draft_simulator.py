"""Run a draft to completion with every team on auto-draft."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from ..app import DraftApp
from ..domain.execution import CommittedPick
from ..storage.base import SkipRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SimulationResult:
    picks: list[CommittedPick] = field(default_factory=list)
    skips: list[SkipRecord] = field(default_factory=list)
    spent: Counter = field(default_factory=Counter)
    sources: Counter = field(default_factory=Counter)

    @property
    def turns(self) -> int:
        return len(self.picks) + len(self.skips)

    def merge(self, outcome: CommittedPick | SkipRecord) -> None:
        if isinstance(outcome, CommittedPick):
            self.picks.append(outcome)
            self.spent[outcome.team_id] += outcome.cost
            self.sources[outcome.source.value] += 1
        else:
            self.skips.append(outcome)
            self.sources["skipped"] += 1

    def roster(self, team_id: str) -> list[CommittedPick]:
        return [pick for pick in self.picks if pick.team_id == team_id]


class DraftSimulator:
    """Let the clock run out for every team and record what gets drafted."""

    def __init__(self, app: DraftApp) -> None:
        self._app = app

    async def run(self, picks: int = 100) -> SimulationResult:
        result = SimulationResult()
        for _ in range(picks):
            turn = await self._app.turns.current_turn()
            if turn is None:
                logger.info("Draft complete after %d turns", result.turns)
                break
            if not await self._app.pool_store.available_cards():
                logger.info("Pool exhausted after %d turns", result.turns)
                break
            outcome = await self._app.auto_draft.execute(turn.team_id, actor_id="simulator")
            result.merge(outcome)
        return result
