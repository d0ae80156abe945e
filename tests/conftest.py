from typing import Iterable, Mapping, Sequence

import pytest

from draftforge.app import DraftApp
from draftforge.domain.cards import CardInstance, Color
from draftforge.testing import CardInstanceFactory, memory_app  # noqa: F401


@pytest.fixture()
def factory() -> CardInstanceFactory:
    return CardInstanceFactory(seed=1234)


@pytest.fixture()
def seed():
    async def _seed(
        app: DraftApp,
        *,
        cards: Iterable[CardInstance],
        teams: Mapping[str, tuple[int, Sequence[str]]],
        order: Sequence[str] | None = None,
    ) -> DraftApp:
        await app.pool_store.add_instances(cards)
        for team_id, (balance, members) in teams.items():
            await app.pool_store.set_balance(team_id, balance)
            for user_id in members:
                await app.membership.add_member(team_id, user_id)
        await app.turns.set_draft_order(order or list(teams))
        return app

    return _seed


def card(
    instance_id: str,
    rating: float = 1.0,
    colors: tuple[Color, ...] = (),
    cost: int = 1,
    card_id: str | None = None,
    name: str | None = None,
) -> CardInstance:
    return CardInstance(
        instance_id=instance_id,
        card_id=card_id or instance_id,
        name=name or instance_id.title(),
        type_line="Creature",
        colors=colors,
        rating=rating,
        cost=cost,
    )


@pytest.fixture()
def make_card():
    return card
