"""Offline tooling for inspecting draft behaviour."""

from .draft_simulator import DraftSimulator, SimulationResult

__all__ = ["DraftSimulator", "SimulationResult"]
