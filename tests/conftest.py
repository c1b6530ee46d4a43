from __future__ import annotations

import random
from collections.abc import Generator

import pytest

from piko_runner.constants import STARTUP_DELAY_MS
from piko_runner.save_store import SaveStore
from piko_runner.simulation import RunnerSimulation


class QuietRandom(random.Random):
    """Never wins a spawn trial, so the world only holds what a test puts there."""

    def random(self) -> float:
        return 0.999


class EagerRandom(random.Random):
    """Wins every spawn trial."""

    def random(self) -> float:
        return 0.0


class FixedRandom(random.Random):
    """Every draw returns the same value."""

    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


class RecordingFeedback:
    def __init__(self) -> None:
        self.sounds: list[str] = []
        self.vibrations: list[int] = []

    def play(self, tag: str) -> None:
        self.sounds.append(tag)

    def vibrate(self, duration_ms: int) -> None:
        self.vibrations.append(duration_ms)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def show(self, text: str, duration_ms: int = 2000) -> None:
        self.messages.append(text)


@pytest.fixture()
def store() -> Generator[SaveStore, None, None]:
    s = SaveStore(":memory:")
    yield s
    s.close()


@pytest.fixture()
def audio() -> RecordingFeedback:
    return RecordingFeedback()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def sim(store: SaveStore, audio: RecordingFeedback, notifier: RecordingNotifier) -> RunnerSimulation:
    """A simulation past the loading screen, sitting in the menu."""
    s = RunnerSimulation(store=store, audio=audio, notifier=notifier, rng=QuietRandom())
    s.tick(STARTUP_DELAY_MS)
    return s


@pytest.fixture()
def playing(sim: RunnerSimulation) -> RunnerSimulation:
    """A freshly started session; the first tick after start carries no time."""
    assert sim.start()
    return sim
