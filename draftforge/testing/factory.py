"""Factories for tests and prototyping."""

from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import Iterable, Sequence

from faker import Faker

from ..domain.cards import COLOR_ORDER, CardInstance, Color, Rarity


@dataclass(slots=True)
class CardInstanceFactory:
    faker: Faker = field(default_factory=Faker)
    rng: Random = field(default_factory=Random)
    seed: int | None = None
    _counter: int = 0

    def __post_init__(self) -> None:
        if self.seed is not None:
            self.faker.seed_instance(self.seed)
            self.rng.seed(self.seed)

    def build(
        self,
        *,
        colors: Sequence[Color] | None = None,
        rating: float | None = None,
        cost: int = 1,
        card_id: str | None = None,
        name: str | None = None,
        type_line: str | None = None,
        rarity: Rarity | None = None,
    ) -> CardInstance:
        self._counter += 1
        if colors is None:
            colors = self.rng.sample(COLOR_ORDER, k=self.rng.randint(0, 2))
        wanted = set(colors)
        card_id = card_id or f"card_{self.faker.unique.lexify(text='??????')}"
        return CardInstance(
            instance_id=f"{card_id}#{self._counter}",
            card_id=card_id,
            name=name or self.faker.unique.word().title(),
            type_line=type_line if type_line is not None else "Creature",
            rarity=rarity or self.rng.choice(list(Rarity)),
            colors=tuple(color for color in COLOR_ORDER if color in wanted),
            mana_value=float(self.rng.randint(0, 6)),
            rating=rating if rating is not None else round(self.rng.uniform(0.5, 5.0), 2),
            cost=cost,
        )

    def copies(self, card: CardInstance, count: int) -> list[CardInstance]:
        """Extra physical copies sharing ``card.card_id``."""
        result = []
        for _ in range(count):
            self._counter += 1
            result.append(
                CardInstance(
                    instance_id=f"{card.card_id}#{self._counter}",
                    card_id=card.card_id,
                    name=card.name,
                    type_line=card.type_line,
                    rarity=card.rarity,
                    colors=card.colors,
                    mana_cost=card.mana_cost,
                    mana_value=card.mana_value,
                    rating=card.rating,
                    cost=card.cost,
                )
            )
        return result

    def batch(self, count: int, **kwargs) -> Iterable[CardInstance]:
        for _ in range(count):
            yield self.build(**kwargs)
