"""Round-robin turn derivation shared by the storage backends."""

from __future__ import annotations

from typing import Sequence

from ..storage.base import DraftTurnState


def derive_turn_state(
    picks_made: Sequence[tuple[str, int]], *, total_rounds: int | None = None
) -> DraftTurnState | None:
    """Work out who is on the clock from per-team pick counts.

    ``picks_made`` is ordered by draft position. The lowest pick count across
    all teams is the current round floor; the first team sitting on it is on
    the clock, the second is on deck. When only one team is left in the
    round, the first team in draft order is on deck for the next round.
    """
    if not picks_made:
        return None
    floor = min(count for _, count in picks_made)
    if total_rounds is not None and floor >= total_rounds:
        return None

    waiting = [team_id for team_id, count in picks_made if count == floor]
    on_deck = waiting[1] if len(waiting) > 1 else picks_made[0][0]
    return DraftTurnState(
        turn_id=sum(count for _, count in picks_made),
        team_id=waiting[0],
        on_deck_team_id=on_deck,
        round_number=floor + 1,
    )
