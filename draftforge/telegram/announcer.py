"""Announce committed picks and skips to a Telegram chat."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from aiogram import Bot

from .api_utils import safe_send_message

logger = logging.getLogger(__name__)

_SOURCE_LABELS = {
    "manual_queue": "from queue",
    "algorithm": "auto-draft",
    "direct": "direct pick",
}


def format_pick_message(payload: Mapping[str, Any]) -> str:
    team = payload.get("team_id", "?")
    source = _SOURCE_LABELS.get(payload.get("pick_source", ""), payload.get("pick_source", ""))
    lines = [
        f"🃏 Pick #{payload.get('pick_number', '?')} (round {payload.get('round_number', '?')})",
        f"• {team} took {payload.get('card_name', payload.get('instance_id', '?'))}",
        f"💰 Cost: {payload.get('cost', 0)}",
    ]
    if source:
        lines.append(f"⚙️ {source}")
    return "\n".join(lines)


def format_skip_message(payload: Mapping[str, Any]) -> str:
    lines = [
        f"⏭️ {payload.get('team_id', '?')} skipped round {payload.get('round_number', '?')}",
    ]
    reason = payload.get("reason")
    if reason:
        lines.append(f"   {reason}")
    return "\n".join(lines)


class TelegramPickAnnouncer:
    """Event bus listener that relays draft outcomes to a chat."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self.bot = bot
        self.chat_id = chat_id

    async def __call__(self, topic: str, payload: Mapping[str, Any]) -> None:
        if payload.get("pick_source") == "skipped":
            text = format_skip_message(payload)
        else:
            text = format_pick_message(payload)
        sent = await safe_send_message(self.bot, self.chat_id, text)
        if not sent:
            logger.debug("Announcement for topic %s was not delivered", topic)
