from unittest.mock import AsyncMock

import pytest
from aiogram.exceptions import TelegramForbiddenError, TelegramRetryAfter

from draftforge.telegram.announcer import TelegramPickAnnouncer, format_pick_message
from draftforge.telegram.api_utils import safe_api_call, safe_send_message


class DummyForbidden(TelegramForbiddenError):
    def __init__(self) -> None:
        Exception.__init__(self, "forbidden")


class DummyRetryAfter(TelegramRetryAfter):
    def __init__(self, retry_after: float) -> None:
        Exception.__init__(self, f"retry after {retry_after}")
        self.retry_after = retry_after


@pytest.mark.asyncio()
async def test_safe_api_call_returns_result():
    async def ok() -> int:
        return 42

    result = await safe_api_call("test", ok)
    assert result == 42


@pytest.mark.asyncio()
async def test_safe_api_call_handles_forbidden():
    async def forbidden() -> None:
        raise DummyForbidden()

    result = await safe_api_call("forbidden", forbidden)
    assert result is None


@pytest.mark.asyncio()
async def test_safe_api_call_retries_on_retry_after(monkeypatch):
    mock_call = AsyncMock(side_effect=[DummyRetryAfter(0.0), 7])

    async def fake_sleep(delay: float) -> None:
        assert delay >= 0.0

    monkeypatch.setattr("draftforge.telegram.api_utils.asyncio.sleep", fake_sleep)

    result = await safe_api_call("retry", mock_call, retries=2)
    assert result == 7
    assert mock_call.await_count == 2


@pytest.mark.asyncio()
async def test_safe_send_message_without_chat_is_noop():
    bot = AsyncMock()
    assert not await safe_send_message(bot, None, "hello")
    bot.send_message.assert_not_awaited()


def test_format_pick_message_mentions_card_and_source():
    text = format_pick_message(
        {
            "team_id": "alpha",
            "card_name": "Lightning Bolt",
            "pick_number": 3,
            "round_number": 2,
            "cost": 12,
            "pick_source": "manual_queue",
        }
    )
    assert "Lightning Bolt" in text
    assert "round 2" in text
    assert "from queue" in text


@pytest.mark.asyncio()
async def test_announcer_relays_committed_picks(memory_app, seed, make_card):
    bot = AsyncMock()
    announcer = TelegramPickAnnouncer(bot, chat_id=-100)
    app = await seed(
        memory_app,
        cards=[make_card("bolt", 9, cost=3), make_card("titan", 5, cost=50)],
        teams={"alpha": (10, ["u1"]), "beta": (10, ["u2"])},
    )
    app.event_bus.subscribe_many(
        (app.config.draft.pick_topic, app.config.draft.skip_topic), announcer
    )

    await app.auto_draft.execute("alpha")
    await app.auto_draft.execute("beta")
    await app.gateway.drain_broadcasts()

    assert bot.send_message.await_count == 2
    pick_text = bot.send_message.await_args_list[0].args[1]
    skip_text = bot.send_message.await_args_list[1].args[1]
    assert "Bolt" in pick_text
    assert "beta skipped round 1" in skip_text
