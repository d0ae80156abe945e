import pytest

from draftforge.domain.cards import Color
from draftforge.domain.exceptions import TeamNotOnClock, Unauthorized
from draftforge.domain.execution import CommittedPick
from draftforge.domain.resolver import PickSource
from draftforge.storage.base import SkipRecord


async def _league(memory_app, seed, make_card, *, alpha_balance=100):
    return await seed(
        memory_app,
        cards=[
            make_card("bolt", 9, (Color.RED,), cost=10),
            make_card("shock", 6, (Color.RED,), cost=5),
            make_card("opt", 5, (Color.BLUE,), cost=5),
        ],
        teams={"alpha": (alpha_balance, ["u1", "u2"]), "beta": (100, ["u3"])},
    )


@pytest.mark.asyncio()
async def test_execute_uses_queue_before_scorer(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["opt"], user_id="u1")

    outcome = await app.auto_draft.execute("alpha", actor_id="scheduler")

    assert isinstance(outcome, CommittedPick)
    assert outcome.card.instance_id == "opt"
    assert outcome.source is PickSource.MANUAL_QUEUE
    assert outcome.details is None


@pytest.mark.asyncio()
async def test_execute_records_skip_when_broke(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card, alpha_balance=2)

    outcome = await app.auto_draft.execute("alpha")

    assert isinstance(outcome, SkipRecord)
    assert outcome.reason == "Insufficient funds: need 5, have 2"
    assert (await app.turns.current_turn()).team_id == "beta"
    assert len(await app.pool_store.available_cards()) == 3


@pytest.mark.asyncio()
async def test_execute_rejects_team_off_the_clock(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)

    with pytest.raises(TeamNotOnClock):
        await app.auto_draft.execute("beta")


@pytest.mark.asyncio()
async def test_draft_card_requires_membership(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)

    with pytest.raises(Unauthorized):
        await app.auto_draft.draft_card("alpha", "bolt", actor_id="u3")

    pick = await app.auto_draft.draft_card("alpha", "shock", actor_id="u2")
    assert pick.source is PickSource.DIRECT
    assert pick.actor_id == "u2"


@pytest.mark.asyncio()
async def test_round_robin_picks_follow_affinity(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)

    first = await app.auto_draft.execute("alpha")
    second = await app.auto_draft.execute("beta")
    third = await app.auto_draft.execute("alpha")

    assert first.card.instance_id == "bolt"
    assert second.card.instance_id == "shock"
    assert third.card.instance_id == "opt"
    assert third.round_number == 2
    assert third.pick_number == 2
