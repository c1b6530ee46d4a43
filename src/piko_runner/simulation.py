"""
simulation.py: The runner world simulation, advanced one tick per frame by the host shell.
"""

import logging
import math
import random
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, List, Optional

from .constants import (
    BOOST_MESSAGE, BOOST_MULTIPLIER, BIRD_MIN_Y, BIRD_Y_RANGE, COLLECTIBLE_MIN_Y,
    COLLECTIBLE_PULSE_STEP, COLLECTIBLE_SPAWN_RATE, COLLECTIBLE_Y_RANGE, CURRENCY_SCORE,
    DIFFICULTY_SPAWN_SCALE, ENEMY_DAMAGE, ENEMY_HIT_MESSAGE, ENEMY_SPAWN_OFFSET,
    ENEMY_SPAWN_RATE, ENEMY_SPEED_BONUS, ENEMY_Y, GROUND_OBSTACLE_Y, HAPTIC_ACHIEVEMENT_MS,
    HAPTIC_CLICK_MS, HAPTIC_DAMAGE_MS, HEALTH_MESSAGE, HEALTH_PICKUP, HEALTH_POWERUP,
    HIGH_SCORE_THRESHOLD, HIT_PARTICLE_COLOR, MAX_FRAME_DELTA_MS, MAX_HEALTH,
    MESSAGE_DURATION_MS, OBSTACLE_DAMAGE, OBSTACLE_SPAWN_RATE, OBSTACLE_SPECS,
    PARTICLE_BURST, PARTICLE_LIFE,
    PARTICLE_MAX_VELOCITY, POWERUP_SPECS, QUOTES, RESET_MESSAGE, SCREEN_WIDTH,
    SPAWN_JITTER, SPEED_UP_INCREMENT, SPEED_UP_INTERVAL, SPEED_UP_MESSAGE, START_SPEED,
    STARTUP_DELAY_MS, SURVIVOR_DISTANCE, UNTOUCHABLE_DISTANCE
)
from .data_models import (
    Achievement, ActivePowerUp, Collectible, CollectibleKind, EffectView, Enemy,
    HighScoreEntry, Intent, Obstacle, ObstacleKind, Particle, Player, PowerUpKind,
    SaveData, SessionState, Settings, Snapshot, insert_high_score, make_achievements
)
from .feedback import NullFeedback, NullNotifier
from .physics_core import PhysicsCore
from .save_store import SaveStore
from .session_fsm import SessionFSM

logger = logging.getLogger(__name__)


@dataclass
class RunnerSimulation(PhysicsCore):
    """
    The single owner of runner state. The host shell calls tick() once per frame
    and hands the collaborators in; nothing here schedules itself.
    """
    store: Optional[SaveStore] = None
    audio: Any = field(default_factory=NullFeedback)
    notifier: Any = field(default_factory=NullNotifier)
    rng: random.Random = field(default_factory=random.Random)

    # Session
    player: Player = field(default_factory=Player)
    score: int = 0
    health: int = MAX_HEALTH
    distance: float = 0.0
    base_speed: float = START_SPEED
    speed_multiplier: float = 1.0
    clock_ms: float = 0.0                   # Simulated play time of this session
    tick_count: int = 0
    next_speed_up: float = SPEED_UP_INTERVAL

    obstacles: List[Obstacle] = field(default_factory=list)
    collectibles: List[Collectible] = field(default_factory=list)
    enemies: List[Enemy] = field(default_factory=list)
    particles: List[Particle] = field(default_factory=list)
    power_ups: Dict[PowerUpKind, ActivePowerUp] = field(default_factory=dict)

    # Kept between sessions
    high_scores: List[HighScoreEntry] = field(default_factory=list)
    achievements: List[Achievement] = field(default_factory=make_achievements)
    settings: Settings = field(default_factory=Settings)

    loading_ms: float = 0.0
    fsm: SessionFSM = field(default_factory=SessionFSM, repr=False)
    pending_lane_step: int = 0              # Last lane intent since the previous tick
    pending_jump: bool = False
    skip_next_delta: bool = False

    def __post_init__(self):
        if self.store is not None:
            self.load_data()

    # ---------- Properties ----------

    @property
    def state(self) -> SessionState:
        return self.fsm.session_state

    @property
    def speed(self) -> float:
        """Current world speed; a boost scales the base speed without touching it."""
        return self.base_speed * self.speed_multiplier

    def achievement(self, achievement_id: str) -> Achievement:
        for ach in self.achievements:
            if ach.id == achievement_id:
                return ach
        raise KeyError(achievement_id)

    # ---------- Collaborator helpers ----------

    def _play(self, tag: str):
        if self.settings.sound:
            self.audio.play(tag)

    def _vibrate(self, duration_ms: int):
        if self.settings.vibration:
            self.audio.vibrate(duration_ms)

    def _notify(self, text: str, duration_ms: int = MESSAGE_DURATION_MS):
        self.notifier.show(text, duration_ms)

    def _quote(self, category: str) -> str:
        return self.rng.choice(QUOTES[category])

    def ui_click(self):
        """Feedback for a menu button press."""
        self._play("click")
        self._vibrate(HAPTIC_CLICK_MS)

    # ---------- Session Lifecycle ----------

    def start(self) -> bool:
        """Begins a fresh session from the menu or the game-over screen."""
        if not self.fsm.try_send("begin"):
            return False

        self.score = 0
        self.health = MAX_HEALTH
        self.distance = 0.0
        self.base_speed = START_SPEED
        self.speed_multiplier = 1.0
        self.clock_ms = 0.0
        self.tick_count = 0
        self.next_speed_up = SPEED_UP_INTERVAL
        self.player = Player()

        self.obstacles = []
        self.collectibles = []
        self.enemies = []
        self.particles = []
        self.power_ups.clear()

        self.pending_lane_step = 0
        self.pending_jump = False
        self.skip_next_delta = True

        logger.info("Session started")
        self._notify(self._quote("start"))
        self.unlock_achievement("first_run")
        self._play("start")
        return True

    def pause(self) -> bool:
        if not self.fsm.try_send("pause"):
            return False
        logger.info("Session paused at distance %.0f", self.distance)
        return True

    def resume(self) -> bool:
        if not self.fsm.try_send("resume"):
            return False
        self.skip_next_delta = True
        logger.info("Session resumed")
        return True

    def end(self) -> Optional[HighScoreEntry]:
        """Finishes the session and records its high-score entry."""
        if not self.fsm.try_send("finish"):
            return None

        entry = HighScoreEntry(
            score=self.score,
            distance=int(self.distance),
            time=int(self.clock_ms // 1000),
            date=date.today().isoformat(),
        )
        self.high_scores = insert_high_score(self.high_scores, entry)
        self.save_data()

        logger.info("Session over: score=%d distance=%d time=%ds", entry.score, entry.distance, entry.time)
        self._notify(self._quote("gameover"))
        self._play("gameover")
        return entry

    def leave(self) -> bool:
        """Returns from the game-over screen to the menu."""
        return self.fsm.try_send("leave")

    # ---------- Input ----------

    def submit(self, intent: Intent):
        """
        Buffers an intent for the next tick. The last lane and jump intents win;
        Pause takes effect immediately.
        """
        if intent is Intent.PAUSE:
            self.pause()
            return
        if self.state is not SessionState.PLAYING:
            return
        if intent is Intent.MOVE_LEFT:
            self.pending_lane_step = -1
        elif intent is Intent.MOVE_RIGHT:
            self.pending_lane_step = 1
        elif intent is Intent.JUMP:
            self.pending_jump = True

    def move_left(self) -> bool:
        return self._move(-1)

    def move_right(self) -> bool:
        return self._move(1)

    def _move(self, step: int) -> bool:
        if self.state is not SessionState.PLAYING:
            return False
        target = self.lane_target(self.player, step)
        if target is None:
            return False
        self.player.target_x = target
        self._play("move")
        return True

    def jump(self) -> bool:
        if self.state is not SessionState.PLAYING:
            return False
        if not self.start_jump(self.player):
            return False
        self._play("jump")
        return True

    def _apply_pending_intents(self):
        if self.pending_lane_step:
            self._move(self.pending_lane_step)
        if self.pending_jump:
            self.jump()
        self.pending_lane_step = 0
        self.pending_jump = False

    # ---------- Main Step ----------

    def tick(self, delta_ms: float):
        """
        Advances the world by one frame. Outside Playing no simulated time passes;
        while Loading the delta counts toward the startup delay instead.
        """
        state = self.state
        if state is SessionState.LOADING:
            self.loading_ms += delta_ms
            if self.loading_ms >= STARTUP_DELAY_MS and self.fsm.try_send("ready"):
                logger.info("Loading finished")
            return
        if state is not SessionState.PLAYING:
            return

        if self.skip_next_delta:
            delta_ms = 0.0
            self.skip_next_delta = False
        self.clock_ms += min(max(delta_ms, 0.0), MAX_FRAME_DELTA_MS)
        self.tick_count += 1

        # 1. Inputs observed since the last tick
        self._apply_pending_intents()

        # 2. Distance, score and difficulty
        self._advance_distance()

        # 3. Player motion
        self.ease_toward_target(self.player)
        self.step_jump(self.player)

        # 4. Spawn and move the world
        self._spawn_objects()
        self._update_objects()

        # 5. Collisions, timed effects and achievements
        self._check_collisions()
        self._update_power_ups()
        self._check_achievements()

        # 6. Game over is checked last
        if self.health <= 0:
            self.end()

    def _advance_distance(self):
        self.distance += self.speed
        self.score += int(math.floor(self.speed))

        if self.distance >= self.next_speed_up:
            self.next_speed_up += SPEED_UP_INTERVAL
            self.base_speed += SPEED_UP_INCREMENT
            logger.debug("Speed up to %.2f at distance %.0f", self.speed, self.distance)
            self._notify(SPEED_UP_MESSAGE)

    # ---------- Spawning ----------

    def _spawn_objects(self):
        """Three independent trials per tick, scaled by speed and difficulty."""
        scale = DIFFICULTY_SPAWN_SCALE[self.settings.difficulty]

        if self.rng.random() < OBSTACLE_SPAWN_RATE * (self.speed / 2) * scale:
            self.spawn_obstacle()

        if self.rng.random() < COLLECTIBLE_SPAWN_RATE * scale:
            self.spawn_collectible()

        if self.rng.random() < ENEMY_SPAWN_RATE * (self.speed / 3) * scale:
            self.spawn_enemy()

    def spawn_obstacle(self) -> Obstacle:
        kind = self.rng.choice(list(ObstacleKind))
        width, height, _ = OBSTACLE_SPECS[kind.value]
        if kind is ObstacleKind.BIRD:
            y = BIRD_MIN_Y + self.rng.random() * BIRD_Y_RANGE
        else:
            y = GROUND_OBSTACLE_Y
        obstacle = Obstacle(
            kind=kind, x=SCREEN_WIDTH + self.rng.random() * SPAWN_JITTER, y=y,
            width=width, height=height
        )
        self.obstacles.append(obstacle)
        return obstacle

    def spawn_collectible(self) -> Collectible:
        kind = self.rng.choice(list(CollectibleKind))
        collectible = Collectible(
            kind=kind,
            x=SCREEN_WIDTH + self.rng.random() * SPAWN_JITTER,
            y=COLLECTIBLE_MIN_Y + self.rng.random() * COLLECTIBLE_Y_RANGE,
        )
        self.collectibles.append(collectible)
        return collectible

    def spawn_enemy(self) -> Enemy:
        enemy = Enemy(
            x=SCREEN_WIDTH + ENEMY_SPAWN_OFFSET, y=ENEMY_Y, speed=self.speed + ENEMY_SPEED_BONUS
        )
        self.enemies.append(enemy)
        return enemy

    def spawn_particles(self, x: float, y: float, color: str):
        for _ in range(PARTICLE_BURST):
            self.particles.append(Particle(
                x=x, y=y,
                vx=(self.rng.random() - 0.5) * 2 * PARTICLE_MAX_VELOCITY,
                vy=(self.rng.random() - 0.5) * 2 * PARTICLE_MAX_VELOCITY,
                color=color,
                life=PARTICLE_LIFE,
            ))

    # ---------- World Update ----------

    def _update_objects(self):
        speed = self.speed

        for obstacle in self.obstacles:
            obstacle.x -= speed
        self.obstacles = [o for o in self.obstacles if not self.is_off_screen(o)]

        for collectible in self.collectibles:
            collectible.x -= speed
            collectible.pulse += COLLECTIBLE_PULSE_STEP
        self.collectibles = [c for c in self.collectibles if not self.is_off_screen(c)]

        for enemy in self.enemies:
            enemy.x -= enemy.speed
        self.enemies = [e for e in self.enemies if not self.is_off_screen(e)]

        for particle in self.particles:
            particle.x += particle.vx
            particle.y += particle.vy
            particle.life -= 1
        self.particles = [p for p in self.particles if p.life > 0]

    def _check_collisions(self):
        if self.player.invincible:
            return

        # Obstacles and enemies stay in the world after a hit
        for obstacle in self.obstacles:
            if self.check_collision(self.player, obstacle):
                self.take_damage(OBSTACLE_DAMAGE)
                self._notify(self._quote("damage"))
                self.spawn_particles(obstacle.x, obstacle.y, HIT_PARTICLE_COLOR)

        for enemy in self.enemies:
            if self.check_collision(self.player, enemy):
                self.take_damage(ENEMY_DAMAGE)
                self._notify(ENEMY_HIT_MESSAGE)
                self.spawn_particles(enemy.x, enemy.y, enemy.color)

        remaining = []
        for collectible in self.collectibles:
            if self.check_collision(self.player, collectible):
                self.collect(collectible)
                self.spawn_particles(collectible.x, collectible.y, collectible.color)
            else:
                remaining.append(collectible)
        self.collectibles = remaining

    # ---------- Health, Pickups & Power-ups ----------

    def take_damage(self, amount: int):
        self.health = max(0, self.health - amount)
        self._play("damage")
        self._vibrate(HAPTIC_DAMAGE_MS)

    def heal(self, amount: int):
        self.health = min(MAX_HEALTH, self.health + amount)

    def collect(self, collectible: Collectible):
        """Applies the pickup effect of a collectible."""
        if collectible.kind is CollectibleKind.CURRENCY:
            self.score += CURRENCY_SCORE
            self._notify(self._quote("collect"))
            self.advance_achievement("collector", 1)
        elif collectible.kind is CollectibleKind.HEALTH:
            self.heal(HEALTH_PICKUP)
            self._notify(HEALTH_MESSAGE)
        elif collectible.kind is CollectibleKind.BOOST:
            self.activate_power_up(PowerUpKind.SPEED)
            self._notify(BOOST_MESSAGE)
            self.advance_achievement("speedster", 1)
        self._play("collect")

    def activate_power_up(self, kind: PowerUpKind) -> ActivePowerUp:
        """
        Records the effect with a fresh expiry, replacing any running one of the
        same kind, and applies it. A second speed boost only extends the timer.
        """
        name, icon, duration = POWERUP_SPECS[kind.value]
        power_up = ActivePowerUp(kind=kind, name=name, icon=icon, expires_at=self.clock_ms + duration)
        self.power_ups[kind] = power_up

        if kind is PowerUpKind.SPEED:
            self.speed_multiplier = BOOST_MULTIPLIER
        elif kind is PowerUpKind.INVINCIBILITY:
            self.player.invincible = True
        elif kind is PowerUpKind.HEALTH:
            self.heal(HEALTH_POWERUP)
        return power_up

    def _update_power_ups(self):
        for kind, power_up in list(self.power_ups.items()):
            if self.clock_ms < power_up.expires_at:
                continue
            del self.power_ups[kind]

            if kind is PowerUpKind.SPEED:
                self.speed_multiplier = 1.0
            elif kind is PowerUpKind.INVINCIBILITY:
                self.player.invincible = False

    # ---------- Achievements ----------

    def _check_achievements(self):
        if self.distance >= SURVIVOR_DISTANCE:
            self.unlock_achievement("survivor")
        if self.distance >= UNTOUCHABLE_DISTANCE and self.health == MAX_HEALTH:
            self.unlock_achievement("untouchable")
        if self.score >= HIGH_SCORE_THRESHOLD:
            self.unlock_achievement("high_score")

    def unlock_achievement(self, achievement_id: str) -> bool:
        """Unlocks once; returns False when it was already unlocked."""
        ach = self.achievement(achievement_id)
        if ach.unlocked:
            return False
        ach.unlocked = True

        logger.info("Achievement unlocked: %s", ach.id)
        self._notify(f"\U0001f396 {ach.title} unlocked!")
        self._play("achievement")
        self._vibrate(HAPTIC_ACHIEVEMENT_MS)
        self.save_data()
        return True

    def advance_achievement(self, achievement_id: str, amount: int) -> bool:
        """Adds progress to a counting achievement; unlocks it on reaching the target."""
        ach = self.achievement(achievement_id)
        if ach.unlocked or not ach.tracks_progress:
            return False

        ach.progress = min(ach.target, ach.progress + amount)
        if ach.progress >= ach.target:
            self.unlock_achievement(achievement_id)
        else:
            self.save_data()
        return True

    # ---------- Persistence ----------

    def load_data(self):
        data = self.store.load()
        self.high_scores = list(data.high_scores)
        self.settings = data.settings
        by_id = {record.id: record for record in data.achievements}
        for ach in self.achievements:
            if ach.id in by_id:
                ach.restore(by_id[ach.id])

    def save_data(self) -> bool:
        if self.store is None:
            return False
        return self.store.save(SaveData(
            high_scores=list(self.high_scores),
            achievements=[ach.to_record() for ach in self.achievements],
            settings=replace(self.settings),
        ))

    def update_settings(
        self, *, sound: Optional[bool] = None, vibration: Optional[bool] = None,
        difficulty: Optional[str] = None
    ) -> Settings:
        if difficulty is not None:
            if difficulty not in DIFFICULTY_SPAWN_SCALE:
                raise ValueError(f"Unknown difficulty: {difficulty!r}")
            self.settings.difficulty = difficulty
        if sound is not None:
            self.settings.sound = sound
        if vibration is not None:
            self.settings.vibration = vibration
        self.save_data()
        return self.settings

    def reset_data(self):
        """Wipes high scores and achievement progress. Settings are kept."""
        if self.store is not None:
            self.store.clear()
        self.high_scores = []
        self.achievements = make_achievements()
        self.save_data()
        self._notify(RESET_MESSAGE)
        logger.info("Saved data reset")

    # ---------- Render Snapshot ----------

    def snapshot(self) -> Snapshot:
        """Copies the world so the renderer can't mutate simulation state."""
        effects = tuple(
            EffectView(
                kind=p.kind, icon=p.icon,
                seconds_left=max(0, math.ceil((p.expires_at - self.clock_ms) / 1000)),
            )
            for p in self.power_ups.values()
        )
        return Snapshot(
            state=self.state,
            player=replace(self.player),
            obstacles=tuple(replace(o) for o in self.obstacles),
            collectibles=tuple(replace(c) for c in self.collectibles),
            enemies=tuple(replace(e) for e in self.enemies),
            particles=tuple(replace(p) for p in self.particles),
            score=self.score,
            distance=self.distance,
            health=self.health,
            speed=self.speed,
            effects=effects,
            high_scores=tuple(self.high_scores),
            achievements=tuple(replace(a) for a in self.achievements),
        )
