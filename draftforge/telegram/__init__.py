"""Telegram integration helpers."""

from .announcer import TelegramPickAnnouncer, format_pick_message, format_skip_message
from .api_utils import safe_api_call, safe_send_message

__all__ = [
    "TelegramPickAnnouncer",
    "format_pick_message",
    "format_skip_message",
    "safe_api_call",
    "safe_send_message",
]
