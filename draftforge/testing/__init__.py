"""Testing utilities for DraftForge."""

from .factory import CardInstanceFactory
from .fixtures import app_fixture, memory_app

__all__ = [
    "CardInstanceFactory",
    "app_fixture",
    "memory_app",
]
