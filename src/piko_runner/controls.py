"""
controls.py: Turns raw pygame input into runner intents.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import pygame

from .data_models import Intent

MIN_SWIPE_DISTANCE = 50

KEY_INTENTS = {
    pygame.K_LEFT: Intent.MOVE_LEFT,
    pygame.K_a: Intent.MOVE_LEFT,
    pygame.K_RIGHT: Intent.MOVE_RIGHT,
    pygame.K_d: Intent.MOVE_RIGHT,
    pygame.K_UP: Intent.JUMP,
    pygame.K_w: Intent.JUMP,
    pygame.K_SPACE: Intent.JUMP,
    pygame.K_ESCAPE: Intent.PAUSE,
}


def key_intent(event: pygame.event.Event) -> Optional[Intent]:
    """Maps a KEYDOWN event to its intent, if the key has one."""
    if event.type != pygame.KEYDOWN:
        return None
    return KEY_INTENTS.get(event.key)


def swipe_intent(start: Tuple[float, float], end: Tuple[float, float]) -> Optional[Intent]:
    """
    Classifies a drag by its dominant axis. Horizontal swipes change lane,
    an upward swipe jumps. Short drags and downward swipes produce nothing.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]

    if abs(dx) > abs(dy):
        if abs(dx) > MIN_SWIPE_DISTANCE:
            return Intent.MOVE_RIGHT if dx > 0 else Intent.MOVE_LEFT
    elif abs(dy) > MIN_SWIPE_DISTANCE and dy < 0:
        return Intent.JUMP
    return None


@dataclass
class SwipeTracker:
    """Follows one mouse/finger press and reports a swipe intent on release."""
    start: Optional[Tuple[float, float]] = None

    def handle(self, event: pygame.event.Event) -> Optional[Intent]:
        if event.type in (pygame.MOUSEBUTTONDOWN, pygame.FINGERDOWN):
            self.start = _event_pos(event)
            return None
        if event.type in (pygame.MOUSEBUTTONUP, pygame.FINGERUP) and self.start is not None:
            start, self.start = self.start, None
            return swipe_intent(start, _event_pos(event))
        return None


def _event_pos(event: pygame.event.Event) -> Tuple[float, float]:
    # Finger events carry normalized coordinates
    if event.type in (pygame.FINGERDOWN, pygame.FINGERUP):
        width, height = pygame.display.get_window_size() if pygame.display.get_init() else (1, 1)
        return event.x * width, event.y * height
    return event.pos
