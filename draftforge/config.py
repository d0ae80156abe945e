"""Configuration models for DraftForge."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal


StorageBackend = Literal["memory", "sqlalchemy"]


@dataclass(slots=True)
class StorageConfig:
    """Configure where the pool, queues and draft order are persisted."""

    backend: StorageBackend = "memory"
    dsn: str | None = None
    echo_sql: bool = False

    def resolve_dsn(self) -> str | None:
        if self.dsn:
            return self.dsn
        if self.backend == "sqlalchemy":
            return "sqlite+aiosqlite:///./draftforge.db"
        return None


@dataclass(slots=True)
class DraftConfig:
    """Draft-wide settings."""

    total_rounds: int | None = None
    queue_preview_depth: int = 20
    pick_topic: str = "draft.pick.committed"
    skip_topic: str = "draft.pick.skipped"


@dataclass(slots=True)
class BroadcastConfig:
    """Optional Telegram announcements of committed picks."""

    bot_token: str = ""
    chat_id: int | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token) and self.chat_id is not None


@dataclass(slots=True)
class DraftForgeConfig:
    """Top-level configuration container."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    draft: DraftConfig = field(default_factory=DraftConfig)
    broadcast: BroadcastConfig = field(default_factory=BroadcastConfig)

    @classmethod
    def from_env(cls) -> "DraftForgeConfig":
        """Create config from environment variables prefixed with DRAFTFORGE_."""
        prefix = "DRAFTFORGE_"
        storage_backend = os.getenv(f"{prefix}STORAGE_BACKEND", "memory")
        if storage_backend not in ("memory", "sqlalchemy"):
            raise ValueError(f"{prefix}STORAGE_BACKEND must be 'memory' or 'sqlalchemy'")
        echo_sql = os.getenv(f"{prefix}STORAGE_ECHO_SQL", "false").lower() in {"1", "true", "yes"}

        draft_config = DraftConfig(
            total_rounds=_optional_int(prefix, "TOTAL_ROUNDS"),
            queue_preview_depth=_optional_int(prefix, "QUEUE_PREVIEW_DEPTH") or 20,
            pick_topic=os.getenv(f"{prefix}PICK_TOPIC", "draft.pick.committed"),
            skip_topic=os.getenv(f"{prefix}SKIP_TOPIC", "draft.pick.skipped"),
        )

        return cls(
            storage=StorageConfig(
                backend=storage_backend,
                dsn=os.getenv(f"{prefix}STORAGE_DSN"),
                echo_sql=echo_sql,
            ),
            draft=draft_config,
            broadcast=BroadcastConfig(
                bot_token=os.getenv(f"{prefix}BOT_TOKEN", ""),
                chat_id=_optional_int(prefix, "BROADCAST_CHAT_ID"),
            ),
        )


def _optional_int(prefix: str, name: str) -> int | None:
    raw = os.getenv(f"{prefix}{name}")
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{prefix}{name} must be an integer") from exc
