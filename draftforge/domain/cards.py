"""Card pool domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class Color(str, Enum):
    WHITE = "W"
    BLUE = "U"
    BLACK = "B"
    RED = "R"
    GREEN = "G"


COLOR_ORDER: tuple[Color, ...] = (Color.WHITE, Color.BLUE, Color.BLACK, Color.RED, Color.GREEN)


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    MYTHIC = "mythic"
    SPECIAL = "special"


def parse_colors(raw: Iterable[str]) -> tuple[Color, ...]:
    """Normalise color codes, dropping duplicates and keeping WUBRG order."""
    wanted = {Color(str(code).strip().upper()) for code in raw if str(code).strip()}
    return tuple(color for color in COLOR_ORDER if color in wanted)


@dataclass(frozen=True, slots=True)
class CardInstance:
    """One physical, uniquely draftable copy of a card in the shared pool.

    Several instances may share a ``card_id`` (reprints and duplicates); the
    ``instance_id`` is what gets drafted.
    """

    instance_id: str
    card_id: str
    name: str
    type_line: str = ""
    rarity: Rarity = Rarity.COMMON
    colors: tuple[Color, ...] = field(default_factory=tuple)
    mana_cost: str = ""
    mana_value: float = 0.0
    rating: float = 0.0
    cost: int = 1

    @property
    def is_colorless(self) -> bool:
        return not self.colors

    @property
    def is_land(self) -> bool:
        return "land" in self.type_line.lower()

    def to_payload(self) -> dict:
        return {
            "instance_id": self.instance_id,
            "card_id": self.card_id,
            "name": self.name,
            "type": self.type_line,
            "rarity": self.rarity.value,
            "colors": [color.value for color in self.colors],
            "mana_cost": self.mana_cost,
            "mana_value": self.mana_value,
            "rating": self.rating,
            "cost": self.cost,
        }
