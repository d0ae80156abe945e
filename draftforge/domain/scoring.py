"""Color-affinity scoring used to pick cards on a team's behalf."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .cards import COLOR_ORDER, CardInstance, Color
from .exceptions import NoCardsAvailable
from ..storage.base import PoolStore

LAND_DISCOUNT = 0.8
AFFINITY_MATCH_BONUS = 0.10
AFFINITY_MISS_PENALTY = 0.05
AFFINITY_FLOOR = 0.5
CANDIDATE_WINDOW = 50
# Cheaper approximation used only to order the materialized queue view.
DISPLAY_AFFINITY_BONUS = 0.01

Scored = tuple[CardInstance, float]


@dataclass(frozen=True, slots=True)
class Finalist:
    instance_id: str
    card_id: str
    name: str
    rating: float
    effective_rating: float
    color: str | None = None

    def to_dict(self) -> dict:
        data = {
            "instance_id": self.instance_id,
            "card_id": self.card_id,
            "name": self.name,
            "rating": self.rating,
            "effective_rating": self.effective_rating,
        }
        if self.color is not None:
            data["color"] = self.color
        return data


@dataclass(frozen=True, slots=True)
class AlgorithmDetails:
    """Everything the scorer looked at, kept for the audit trail."""

    candidate_ids: tuple[str, ...]
    color_totals: dict[str, float]
    affinity_modifiers: dict[str, float]
    best_colored: Finalist | None
    best_colorless: Finalist | None
    selected_source: str
    drafted_color_counts: dict[str, int]
    dominant_color: str | None
    affordability_adjusted: bool = False

    def to_dict(self) -> dict:
        return {
            "candidate_ids": list(self.candidate_ids),
            "color_totals": dict(self.color_totals),
            "affinity_modifiers": dict(self.affinity_modifiers),
            "best_colored": self.best_colored.to_dict() if self.best_colored else None,
            "best_colorless": self.best_colorless.to_dict() if self.best_colorless else None,
            "selected_source": self.selected_source,
            "drafted_color_counts": dict(self.drafted_color_counts),
            "dominant_color": self.dominant_color,
            "affordability_adjusted": self.affordability_adjusted,
        }


@dataclass(frozen=True, slots=True)
class ScoringResult:
    card: CardInstance | None
    details: AlgorithmDetails


def count_drafted_colors(history: Iterable[CardInstance]) -> dict[Color, int]:
    """Count drafted cards per color; multicolor cards count toward each color."""
    counts = {color: 0 for color in COLOR_ORDER}
    for card in history:
        for color in card.colors:
            counts[color] += 1
    return counts


def affinity_modifiers(history: Sequence[CardInstance]) -> dict[Color, float]:
    counts = count_drafted_colors(history)
    colored_picks = sum(1 for card in history if card.colors)
    return {
        color: max(
            AFFINITY_FLOOR,
            1.0
            + AFFINITY_MATCH_BONUS * counts[color]
            - AFFINITY_MISS_PENALTY * (colored_picks - counts[color]),
        )
        for color in COLOR_ORDER
    }


def effective_rating(card: CardInstance, modifiers: dict[Color, float]) -> float:
    rating = card.rating
    if card.is_land:
        rating *= LAND_DISCOUNT
    if card.colors:
        rating *= max(modifiers[color] for color in card.colors)
    return rating


def _best(scored: Iterable[Scored]) -> Scored | None:
    # max() keeps the first of equal candidates, so ties follow ranking order.
    return max(scored, key=lambda pair: pair[1], default=None)


def _source_of(card: CardInstance | None) -> str:
    if card is None:
        return "none"
    return "colorless" if card.is_colorless else "colored"


def rank_candidates(pool: Sequence[CardInstance], modifiers: dict[Color, float]) -> list[Scored]:
    """Rank positively rated cards by effective rating, else the pool by name."""
    scored = [(card, effective_rating(card, modifiers)) for card in pool]
    rated = [pair for pair in scored if pair[0].rating > 0]
    if rated:
        return sorted(rated, key=lambda pair: -pair[1])
    return sorted(scored, key=lambda pair: (pair[0].name.casefold(), pair[0].instance_id))


def compute_auto_draft_pick(
    pool: Sequence[CardInstance], history: Sequence[CardInstance], balance: int
) -> ScoringResult:
    """Recommend the next card for a team.

    Pure function of the available pool, the team's drafted cards and its
    balance. ``ScoringResult.card`` is ``None`` when nothing in the pool is
    affordable, which callers treat as a skip rather than an error.
    """
    if not pool:
        raise NoCardsAvailable("No available cards in the pool")

    counts = count_drafted_colors(history)
    modifiers = affinity_modifiers(history)
    window = rank_candidates(pool, modifiers)[:CANDIDATE_WINDOW]

    totals = {color: 0.0 for color in COLOR_ORDER}
    for card, rating in window:
        for color in card.colors:
            totals[color] += rating

    dominant: Color | None = None
    highest = 0.0
    for color in COLOR_ORDER:
        if totals[color] > highest:
            highest = totals[color]
            dominant = color

    best_colored = (
        _best(pair for pair in window if dominant in pair[0].colors) if dominant else None
    )
    best_colorless = _best(pair for pair in window if pair[0].is_colorless)

    selected: CardInstance | None = None
    if best_colorless and (best_colored is None or best_colorless[0].rating > best_colored[0].rating):
        selected = best_colorless[0]
    elif best_colored:
        selected = best_colored[0]

    adjusted = False
    if selected is not None and selected.cost > balance:
        adjusted = True
        fallback = _best(pair for pair in window if pair[0].cost <= balance)
        if fallback is None:
            fallback = _best((card, card.rating) for card in pool if card.cost <= balance)
        selected = fallback[0] if fallback else None

    details = AlgorithmDetails(
        candidate_ids=tuple(card.instance_id for card, _ in window),
        color_totals={color.value: total for color, total in totals.items()},
        affinity_modifiers={color.value: value for color, value in modifiers.items()},
        best_colored=_finalist(best_colored, dominant),
        best_colorless=_finalist(best_colorless, None),
        selected_source=_source_of(selected),
        drafted_color_counts={color.value: count for color, count in counts.items()},
        dominant_color=dominant.value if dominant else None,
        affordability_adjusted=adjusted,
    )
    return ScoringResult(card=selected, details=details)


def _finalist(pair: Scored | None, color: Color | None) -> Finalist | None:
    if pair is None:
        return None
    card, rating = pair
    return Finalist(
        instance_id=card.instance_id,
        card_id=card.card_id,
        name=card.name,
        rating=card.rating,
        effective_rating=rating,
        color=color.value if color else None,
    )


def rank_for_display(
    pool: Sequence[CardInstance], history: Sequence[CardInstance]
) -> list[Scored]:
    """Order cards for the queue view with a flat 1% bonus per drafted card of a color."""
    counts = count_drafted_colors(history)
    scored: list[Scored] = []
    for card in pool:
        modifier = 1.0
        if card.colors:
            modifier = max(1.0 + DISPLAY_AFFINITY_BONUS * counts[color] for color in card.colors)
        scored.append((card, card.rating * modifier))
    return sorted(scored, key=lambda pair: -pair[1])


class AffinityScorer:
    """Load a team's context from the pool store and score it."""

    def __init__(self, pool_store: PoolStore) -> None:
        self._pool = pool_store

    async def compute(
        self,
        team_id: str,
        *,
        pool: Sequence[CardInstance] | None = None,
        balance: int | None = None,
    ) -> ScoringResult:
        if pool is None:
            pool = await self._pool.available_cards()
        history = await self._pool.team_history(team_id)
        if balance is None:
            balance = await self._pool.team_balance(team_id)
        return compute_auto_draft_pick(pool, [pick.instance for pick in history], balance)
