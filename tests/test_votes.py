import pytest

from draftforge.domain.cards import Color
from draftforge.domain.exceptions import (
    CardUnavailable,
    InsufficientBalance,
    QueueEntryNotFound,
    TeamNotOnClock,
    Unauthorized,
)
from draftforge.domain.resolver import PickSource
from draftforge.domain.votes import quorum_for


@pytest.mark.parametrize(
    ("members", "quorum"),
    [(0, 1), (1, 1), (2, 1), (3, 2), (4, 2), (5, 3), (10, 5)],
)
def test_quorum_is_fifty_one_percent_rounded(members, quorum):
    assert quorum_for(members) == quorum


async def _league(memory_app, seed, make_card, *, alpha_balance=100):
    return await seed(
        memory_app,
        cards=[
            make_card("x", 9, (Color.RED,), cost=10),
            make_card("y", 8, (Color.BLUE,), cost=10),
            make_card("z", 7, (Color.GREEN,), cost=80),
        ],
        teams={"alpha": (alpha_balance, ["u1", "u2", "u3"]), "beta": (100, ["u4"])},
    )


@pytest.mark.asyncio()
async def test_second_vote_on_first_entry_commits_pick(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["x", "y"], user_id="u1")

    first = await app.votes.toggle_vote("alpha", "x", "u1")
    assert first.approvals == frozenset({"u1"})
    assert first.quorum == 2
    assert not first.quorum_reached
    assert not first.executed

    second = await app.votes.toggle_vote("alpha", "x", "u2")
    assert second.quorum_reached
    assert second.executed
    assert second.pick.source is PickSource.MANUAL_QUEUE
    assert second.pick.card.instance_id == "x"
    assert second.pick.actor_id == "u2"

    assert await app.pool_store.team_balance("alpha") == 90
    assert [entry.instance_id for entry in await app.queues.list_queue("alpha")] == ["y"]
    turn = await app.turns.current_turn()
    assert turn.team_id == "beta"


@pytest.mark.asyncio()
async def test_toggle_removes_existing_vote(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["x"], user_id="u1")

    await app.votes.toggle_vote("alpha", "x", "u1")
    outcome = await app.votes.toggle_vote("alpha", "x", "u1")

    assert outcome.approvals == frozenset()
    assert (await app.queues.list_queue("alpha"))[0].approvals == frozenset()


@pytest.mark.asyncio()
async def test_votes_below_first_position_never_execute(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["x", "y"], user_id="u1")

    await app.votes.toggle_vote("alpha", "y", "u1")
    outcome = await app.votes.toggle_vote("alpha", "y", "u2")

    assert outcome.position == 2
    assert len(outcome.approvals) == 2
    assert not outcome.quorum_reached
    assert not outcome.executed


@pytest.mark.asyncio()
async def test_quorum_off_the_clock_only_records_votes(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("beta", ["y"], user_id="u4")

    outcome = await app.votes.toggle_vote("beta", "y", "u4")

    assert outcome.quorum == 1
    assert outcome.quorum_reached
    assert not outcome.executed
    assert outcome.error is None
    assert await app.pool_store.get_instance("y") is not None


@pytest.mark.asyncio()
async def test_failed_execution_keeps_the_vote(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card, alpha_balance=50)
    await app.queues.set_queue("alpha", ["z"], user_id="u1")

    await app.votes.toggle_vote("alpha", "z", "u1")
    outcome = await app.votes.toggle_vote("alpha", "z", "u2")

    assert outcome.quorum_reached
    assert not outcome.executed
    assert isinstance(outcome.error, InsufficientBalance)
    assert str(outcome.error) == "Insufficient funds: need 80, have 50"
    entries = await app.queues.list_queue("alpha")
    assert entries[0].approvals == frozenset({"u1", "u2"})
    assert (await app.turns.current_turn()).team_id == "alpha"


@pytest.mark.asyncio()
async def test_vote_after_card_was_taken_reports_unavailable(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["x"], user_id="u1")
    await app.pool_store.commit_pick("beta", "x")

    await app.votes.toggle_vote("alpha", "x", "u1")
    outcome = await app.votes.toggle_vote("alpha", "x", "u2")

    assert isinstance(outcome.error, CardUnavailable)


@pytest.mark.asyncio()
async def test_stale_turn_is_rejected_by_gateway(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    turn = await app.turns.current_turn()
    await app.auto_draft.execute("alpha")

    with pytest.raises(TeamNotOnClock):
        await app.gateway.execute_pick("alpha", "y", turn_id=turn.turn_id)


@pytest.mark.asyncio()
async def test_vote_requires_membership_and_entry(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.queues.set_queue("alpha", ["x"], user_id="u1")

    with pytest.raises(Unauthorized):
        await app.votes.toggle_vote("alpha", "x", "u4")
    with pytest.raises(QueueEntryNotFound):
        await app.votes.toggle_vote("alpha", "y", "u1")


@pytest.mark.asyncio()
async def test_withdrawing_a_vote_never_drafts(memory_app, seed, make_card):
    app = await _league(memory_app, seed, make_card)
    await app.gateway.execute_pick("alpha", "z")
    await app.queues.set_queue("alpha", ["x"], user_id="u1")
    for user in ("u1", "u2", "u3"):
        await app.votes.toggle_vote("alpha", "x", user)
    await app.gateway.execute_pick("beta", "y")

    withdrawn = await app.votes.toggle_vote("alpha", "x", "u3")

    assert withdrawn.approvals == frozenset({"u1", "u2"})
    assert withdrawn.quorum_reached
    assert not withdrawn.executed
    assert await app.pool_store.get_instance("x") is not None
    assert (await app.turns.current_turn()).team_id == "alpha"

    restored = await app.votes.toggle_vote("alpha", "x", "u3")
    assert restored.executed
    assert restored.pick.actor_id == "u3"
