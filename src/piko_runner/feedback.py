"""Audio, haptic and on-screen message collaborators.

The simulation only ever calls three methods on these objects:

    audio.play(tag)              # tag is one of constants.TONE_FREQUENCIES
    audio.vibrate(duration_ms)
    notifier.show(text, duration_ms)

`NullFeedback`/`NullNotifier` satisfy that contract for headless runs and
tests. `ToneFeedback` synthesizes short square-wave blips with pygame.mixer;
if the mixer can't initialize, the failure is logged once and every later
call becomes a no-op.
"""

from __future__ import annotations

import logging
from array import array
from typing import Dict, Optional

import pygame

from .constants import DEFAULT_TONE, MESSAGE_DURATION_MS, TONE_FREQUENCIES, TONE_LENGTH_MS

logger = logging.getLogger(__name__)


class NullFeedback:
    """Audio/haptics sink that ignores everything."""

    def play(self, tag: str) -> None:
        pass

    def vibrate(self, duration_ms: int) -> None:
        pass


class NullNotifier:
    def show(self, text: str, duration_ms: int = MESSAGE_DURATION_MS) -> None:
        pass


class ToneFeedback:
    """Plays one synthesized tone per feedback tag through pygame.mixer.

    Notes
    -----
    - The mixer is initialized lazily on first use, and only attempted once.
    - Tones are generated on first request and cached per tag.
    - Desktop pygame has no vibration motor; `vibrate` is accepted and dropped.
    """

    def __init__(self, *, frequency: int = 44100, buffer: int = 512):
        self._frequency = frequency
        self._buffer = buffer
        self._inited = False
        self._failed_init = False
        self._tones: Dict[str, pygame.mixer.Sound] = {}

    def ensure_init(self) -> bool:
        """Initialize pygame.mixer if needed. Returns True on success."""
        if self._inited:
            return True
        if self._failed_init:
            return False
        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=self._frequency, size=-16, buffer=self._buffer)
            self._inited = pygame.mixer.get_init() is not None
        except pygame.error as e:
            logger.warning("Audio unavailable, sounds disabled: %s", e)
            self._failed_init = True
        return self._inited

    def is_available(self) -> bool:
        return self._inited and pygame.mixer.get_init() is not None

    def _tone(self, tag: str) -> Optional[pygame.mixer.Sound]:
        sound = self._tones.get(tag)
        if sound is not None:
            return sound

        rate, _, channels = pygame.mixer.get_init()
        samples = square_wave(
            TONE_FREQUENCIES.get(tag, DEFAULT_TONE), rate, TONE_LENGTH_MS, channels=channels
        )
        sound = pygame.mixer.Sound(buffer=samples.tobytes())
        self._tones[tag] = sound
        return sound

    def play(self, tag: str) -> None:
        if not self.ensure_init():
            return
        sound = self._tone(tag)
        if sound is not None:
            sound.play()

    def vibrate(self, duration_ms: int) -> None:
        pass


def square_wave(
    frequency: float,
    rate: int,
    length_ms: int,
    *,
    channels: int = 1,
    start_gain: float = 0.1,
    end_gain: float = 0.01,
) -> array:
    """Signed 16-bit square wave with an exponential gain ramp, interleaved per channel."""
    count = max(1, int(rate * length_ms / 1000))
    period = rate / float(frequency)
    decay = (end_gain / start_gain) ** (1.0 / count)

    samples = array("h")
    gain = start_gain
    for i in range(count):
        high = (i % period) < period / 2
        value = int(32767 * gain) * (1 if high else -1)
        samples.extend([value] * channels)
        gain *= decay
    return samples


class MessageBoard:
    """Notifier that keeps the latest transient message until its time runs out."""

    def __init__(self):
        self.text: Optional[str] = None
        self.remaining_ms = 0.0

    def show(self, text: str, duration_ms: int = MESSAGE_DURATION_MS) -> None:
        self.text = text
        self.remaining_ms = float(duration_ms)

    def advance(self, delta_ms: float) -> None:
        if self.text is None:
            return
        self.remaining_ms -= delta_ms
        if self.remaining_ms <= 0:
            self.text = None
            self.remaining_ms = 0.0
