"""Storage backends for DraftForge."""

from .base import (
    AuditStore,
    DraftPickRecord,
    DraftTurnState,
    MembershipSource,
    PoolStore,
    QueueEntryRecord,
    QueueStore,
    SkipRecord,
    TurnAuthority,
)
from .memory import (
    InMemoryAuditStore,
    InMemoryMembershipSource,
    InMemoryPoolStore,
    InMemoryQueueStore,
    RoundRobinTurnAuthority,
)
from .sqlalchemy import AsyncSQLAlchemyStorage

__all__ = [
    "AuditStore",
    "DraftPickRecord",
    "DraftTurnState",
    "MembershipSource",
    "PoolStore",
    "QueueEntryRecord",
    "QueueStore",
    "SkipRecord",
    "TurnAuthority",
    "InMemoryAuditStore",
    "InMemoryMembershipSource",
    "InMemoryPoolStore",
    "InMemoryQueueStore",
    "RoundRobinTurnAuthority",
    "AsyncSQLAlchemyStorage",
]
