"""Domain models and services."""

from .cards import COLOR_ORDER, CardInstance, Color, Rarity
from .exceptions import (
    CardUnavailable,
    DraftForgeError,
    InsufficientBalance,
    NoCardsAvailable,
    QueueEntryNotFound,
    StoreUnavailable,
    TeamNotOnClock,
    Unauthorized,
)
from .scoring import AffinityScorer, AlgorithmDetails, ScoringResult, compute_auto_draft_pick
from .queue import MaterializedEntry, QueueEntry, QueueRequest, QueueService
from .resolver import AlgorithmPick, PickDecision, PickResolver, PickSource, QueuedPick, SkippedPick
from .execution import CommittedPick, ExecutionGateway
from .votes import VoteCoordinator, VoteOutcome, quorum_for
from .auto_draft import AutoDraftService

__all__ = [
    "COLOR_ORDER",
    "CardInstance",
    "Color",
    "Rarity",
    "CardUnavailable",
    "DraftForgeError",
    "InsufficientBalance",
    "NoCardsAvailable",
    "QueueEntryNotFound",
    "StoreUnavailable",
    "TeamNotOnClock",
    "Unauthorized",
    "AffinityScorer",
    "AlgorithmDetails",
    "ScoringResult",
    "compute_auto_draft_pick",
    "MaterializedEntry",
    "QueueEntry",
    "QueueRequest",
    "QueueService",
    "AlgorithmPick",
    "PickDecision",
    "PickResolver",
    "PickSource",
    "QueuedPick",
    "SkippedPick",
    "CommittedPick",
    "ExecutionGateway",
    "VoteCoordinator",
    "VoteOutcome",
    "quorum_for",
    "AutoDraftService",
]
