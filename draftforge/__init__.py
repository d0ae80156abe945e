"""DraftForge auto-draft engine public API."""

from .app import DraftApp
from .config import DraftForgeConfig

__all__ = [
    "DraftApp",
    "DraftForgeConfig",
]
