"""Pytest fixtures for DraftForge."""

from __future__ import annotations

import pytest

from ..app import DraftApp
from ..config import DraftConfig, DraftForgeConfig


@pytest.fixture()
def memory_app() -> DraftApp:
    return DraftApp(DraftForgeConfig())


def app_fixture(*, total_rounds: int | None = None, **kwargs) -> DraftApp:
    """Helper for ad-hoc tests where pytest is not available."""
    config = DraftForgeConfig(draft=DraftConfig(total_rounds=total_rounds), **kwargs)
    return DraftApp(config)
