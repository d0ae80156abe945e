import pytest

from draftforge.domain.cards import Color
from draftforge.domain.exceptions import NoCardsAvailable
from draftforge.domain.resolver import AlgorithmPick, PickSource, QueuedPick, SkippedPick


async def _league(memory_app, seed, make_card, *, balance=50):
    return await seed(
        memory_app,
        cards=[
            make_card("a", 90, (Color.RED,), cost=10),
            make_card("b", 80, (), cost=200),
            make_card("c", 30, (Color.GREEN,), cost=60),
        ],
        teams={"alpha": (balance, ["u1"]), "beta": (100, ["u2"])},
    )


@pytest.mark.asyncio()
async def test_first_available_queue_entry_wins(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["c", "a"], user_id="u1")
    await app.pool_store.commit_pick("beta", "c")

    decision = await app.resolver.resolve("alpha")

    assert isinstance(decision, QueuedPick)
    assert decision.source is PickSource.MANUAL_QUEUE
    assert decision.card.instance_id == "a"
    assert decision.queue_depth == 2


@pytest.mark.asyncio()
async def test_falls_back_to_scorer_with_empty_queue(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)

    decision = await app.resolver.resolve("alpha")

    assert isinstance(decision, AlgorithmPick)
    assert decision.card.instance_id == "a"
    assert decision.queue_depth == 0
    assert decision.details.dominant_color == "R"


@pytest.mark.asyncio()
async def test_unaffordable_queue_head_skips_at_commit(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["c", "a"], user_id="u1")

    decision = await app.resolver.resolve("alpha", at_commit=True)

    assert isinstance(decision, SkippedPick)
    assert decision.reason == "Insufficient funds: need 60, have 50"
    assert decision.shortfall == 10


@pytest.mark.asyncio()
async def test_preview_does_not_gate_queue_on_balance(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["c"], user_id="u1")

    decision = await app.auto_draft.preview("alpha")

    assert isinstance(decision, QueuedPick)
    assert decision.card.instance_id == "c"


@pytest.mark.asyncio()
async def test_skip_reports_cheapest_card_when_broke(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card, balance=5)

    decision = await app.resolver.resolve("alpha")

    assert isinstance(decision, SkippedPick)
    assert decision.reason == "Insufficient funds: need 10, have 5"
    assert decision.shortfall == 5
    assert decision.details.affordability_adjusted


@pytest.mark.asyncio()
async def test_empty_pool_raises(memory_app, seed, make_card):
    app = await seed(memory_app, cards=[], teams={"alpha": (10, ["u1"])})

    with pytest.raises(NoCardsAvailable):
        await app.resolver.resolve("alpha")
