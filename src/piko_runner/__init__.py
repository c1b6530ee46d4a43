"""Piko Runner: an endless lane runner with a deterministic per-frame simulation core."""

from .data_models import Intent, SessionState
from .simulation import RunnerSimulation

__all__ = ["Intent", "RunnerSimulation", "SessionState"]
