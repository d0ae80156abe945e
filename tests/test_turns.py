import pytest

from draftforge.domain.turns import derive_turn_state
from draftforge.storage.memory import RoundRobinTurnAuthority


def test_first_team_at_round_floor_is_on_the_clock():
    turn = derive_turn_state([("a", 1), ("b", 0), ("c", 0)])

    assert turn.team_id == "b"
    assert turn.on_deck_team_id == "c"
    assert turn.round_number == 1
    assert turn.turn_id == 1


def test_last_team_in_round_has_first_team_on_deck():
    turn = derive_turn_state([("a", 1), ("b", 1), ("c", 0)])

    assert turn.team_id == "c"
    assert turn.on_deck_team_id == "a"


def test_draft_ends_after_total_rounds():
    assert derive_turn_state([("a", 2), ("b", 2)], total_rounds=2) is None
    assert derive_turn_state([]) is None


@pytest.mark.asyncio()
async def test_advance_is_conditional_on_team():
    turns = RoundRobinTurnAuthority(["a", "b"], total_rounds=1)

    unchanged = await turns.advance_turn("b")
    assert unchanged.team_id == "a"

    after_a = await turns.advance_turn("a")
    assert after_a.team_id == "b"
    assert await turns.advance_turn("b") is None


@pytest.mark.asyncio()
async def test_set_draft_order_rejects_duplicates():
    turns = RoundRobinTurnAuthority()
    with pytest.raises(ValueError):
        await turns.set_draft_order(["a", "a"])
