"""
data_models.py: Data structures for the runner state and the persisted save blob.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .constants import (
    ACHIEVEMENT_CATALOG, COLLECTIBLE_COLORS, COLLECTIBLE_SIZE, DIFFICULTY_SPAWN_SCALE,
    ENEMY_COLOR, ENEMY_HEIGHT, ENEMY_WIDTH, LANE_MATCH_TOLERANCE, LANES,
    MAX_HIGH_SCORES, OBSTACLE_SPECS, PLAYER_BASELINE_Y,
    PLAYER_HEIGHT, PLAYER_WIDTH, START_LANE
)


class SessionState(str, Enum):
    LOADING = "loading"
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "gameover"


class Intent(str, Enum):
    """Discrete commands produced by the input recognizers."""
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    JUMP = "jump"
    PAUSE = "pause"


class ObstacleKind(str, Enum):
    CAR = "car"
    CONSTRUCTION = "construction"
    BIRD = "bird"


class CollectibleKind(str, Enum):
    CURRENCY = "currency"
    HEALTH = "health"
    BOOST = "boost"


class PowerUpKind(str, Enum):
    SPEED = "speed"
    INVINCIBILITY = "invincibility"
    HEALTH = "health"


# ---------- World Entities ----------

@dataclass
class Player:
    """The single player sprite. x eases toward target_x; y is the ground baseline."""
    x: float = LANES[START_LANE]
    y: float = PLAYER_BASELINE_Y
    width: int = PLAYER_WIDTH
    height: int = PLAYER_HEIGHT
    target_x: float = LANES[START_LANE]

    is_jumping: bool = False
    jump_height: float = 0.0
    jump_speed: float = 0.0
    invincible: bool = False

    @property
    def lane(self) -> Optional[int]:
        """Index of the lane the player is heading to, if target_x sits on one."""
        for index, lane_x in enumerate(LANES):
            if abs(self.target_x - lane_x) < LANE_MATCH_TOLERANCE:
                return index
        return None

    @property
    def feet_y(self) -> float:
        """Screen y of the sprite bottom, lifted by the current jump."""
        return self.y - self.jump_height


@dataclass
class Obstacle:
    kind: ObstacleKind
    x: float
    y: float
    width: int
    height: int

    @property
    def color(self) -> str:
        return OBSTACLE_SPECS[self.kind.value][2]


@dataclass
class Collectible:
    kind: CollectibleKind
    x: float
    y: float
    width: int = COLLECTIBLE_SIZE
    height: int = COLLECTIBLE_SIZE
    pulse: float = 0.0              # Phase of the pulsing animation

    @property
    def color(self) -> str:
        return COLLECTIBLE_COLORS[self.kind.value]


@dataclass
class Enemy:
    x: float
    y: float
    speed: float
    width: int = ENEMY_WIDTH
    height: int = ENEMY_HEIGHT

    @property
    def color(self) -> str:
        return ENEMY_COLOR


@dataclass
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    color: str
    life: int


@dataclass(frozen=True)
class ActivePowerUp:
    """A timed effect. expires_at is on the simulation clock (ms of play time)."""
    kind: PowerUpKind
    name: str
    icon: str
    expires_at: float


# ---------- Progress & Scores ----------

@dataclass
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    unlocked: bool = False
    progress: Optional[int] = None
    target: Optional[int] = None

    @property
    def tracks_progress(self) -> bool:
        return self.target is not None

    def to_record(self) -> "AchievementRecord":
        """Prepares the persisted form: id, unlock flag and progress when tracked."""
        return AchievementRecord(
            id=self.id,
            unlocked=self.unlocked,
            progress=self.progress if self.tracks_progress else None,
        )

    def restore(self, record: "AchievementRecord"):
        """Applies saved state; progress is capped at the target."""
        self.unlocked = record.unlocked
        if self.tracks_progress and record.progress is not None:
            self.progress = max(0, min(self.target, record.progress))


def make_achievements() -> List[Achievement]:
    """Builds a fresh, fully locked copy of the achievement catalog."""
    return [
        Achievement(
            id=ach_id, title=title, description=description, icon=icon,
            progress=0 if target is not None else None, target=target
        )
        for ach_id, title, description, icon, target in ACHIEVEMENT_CATALOG
    ]


@dataclass(frozen=True)
class HighScoreEntry:
    score: int
    distance: int
    time: int                       # Seconds of play
    date: str

    def to_dict(self) -> dict:
        return {"score": self.score, "distance": self.distance, "time": self.time, "date": self.date}

    @classmethod
    def from_dict(cls, data: dict) -> "HighScoreEntry":
        return cls(
            score=int(data["score"]),
            distance=int(data["distance"]),
            time=int(data["time"]),
            date=str(data["date"]),
        )


def insert_high_score(scores: List[HighScoreEntry], entry: HighScoreEntry) -> List[HighScoreEntry]:
    """Returns a new top list with entry added, sorted by score and cut to the limit."""
    ranked = sorted([*scores, entry], key=lambda s: s.score, reverse=True)
    return ranked[:MAX_HIGH_SCORES]


@dataclass
class Settings:
    sound: bool = True
    vibration: bool = True
    difficulty: str = "normal"

    def to_dict(self) -> dict:
        return {"sound": self.sound, "vibration": self.vibration, "difficulty": self.difficulty}

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Overlays saved values on the defaults; unknown keys are ignored."""
        settings = cls()
        if "sound" in data:
            settings.sound = bool(data["sound"])
        if "vibration" in data:
            settings.vibration = bool(data["vibration"])
        if data.get("difficulty") in DIFFICULTY_SPAWN_SCALE:
            settings.difficulty = data["difficulty"]
        return settings


@dataclass(frozen=True)
class AchievementRecord:
    """Persisted unlock state of one catalog entry."""
    id: str
    unlocked: bool
    progress: Optional[int] = None


@dataclass
class SaveData:
    """Everything kept between sessions, stored as one JSON blob."""
    high_scores: List[HighScoreEntry] = field(default_factory=list)
    achievements: List[AchievementRecord] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)

    def to_dict(self) -> dict:
        achievements = []
        for record in self.achievements:
            saved = {"id": record.id, "unlocked": record.unlocked}
            if record.progress is not None:
                saved["progress"] = record.progress
            achievements.append(saved)
        return {
            "highScores": [s.to_dict() for s in self.high_scores],
            "achievements": achievements,
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SaveData":
        """
        Parses a saved blob. Malformed records raise KeyError, TypeError, ValueError
        or OverflowError (int() of a JSON Infinity).
        """
        scores = [HighScoreEntry.from_dict(s) for s in data.get("highScores") or []]
        scores = sorted(scores, key=lambda s: s.score, reverse=True)[:MAX_HIGH_SCORES]
        achievements = [
            AchievementRecord(
                id=str(a["id"]),
                unlocked=bool(a["unlocked"]),
                progress=int(a["progress"]) if a.get("progress") is not None else None,
            )
            for a in data.get("achievements") or []
        ]
        settings = data.get("settings")
        return cls(
            high_scores=scores,
            achievements=achievements,
            settings=Settings.from_dict(settings if isinstance(settings, dict) else {}),
        )


# ---------- Render Snapshot ----------

@dataclass(frozen=True)
class EffectView:
    kind: PowerUpKind
    icon: str
    seconds_left: int


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of the world handed to the renderer each frame."""
    state: SessionState
    player: Player
    obstacles: Tuple[Obstacle, ...]
    collectibles: Tuple[Collectible, ...]
    enemies: Tuple[Enemy, ...]
    particles: Tuple[Particle, ...]
    score: int
    distance: float
    health: int
    speed: float
    effects: Tuple[EffectView, ...]
    high_scores: Tuple[HighScoreEntry, ...] = ()
    achievements: Tuple[Achievement, ...] = ()
    lanes: Tuple[float, ...] = LANES

    def to_hud_state(self) -> Dict[str, object]:
        """Prepares the HUD values in display form."""
        return {
            "score": f"{self.score:,}",
            "distance": f"{int(self.distance)}m",
            "health": max(0, self.health),
            "effects": [f"{e.icon} {e.seconds_left}s" for e in self.effects],
        }
