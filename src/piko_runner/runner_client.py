#!/usr/bin/env python3
"""
runner_client.py

Desktop shell for the runner: owns the pygame window, the frame loop and the
collaborators, and feeds the simulation one tick per rendered frame.
"""

import logging
import math
from typing import Optional

import pygame

from .constants import (
    DIFFICULTY_SPAWN_SCALE, LANES, PARTICLE_LIFE, RENDER_FPS, SCREEN_HEIGHT, SCREEN_WIDTH
)
from .controls import SwipeTracker, key_intent
from .data_models import SessionState, Snapshot
from .feedback import MessageBoard, NullFeedback, ToneFeedback
from .save_store import SaveStore
from .simulation import RunnerSimulation

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
GREY = (160, 170, 185)
BACKGROUND = (26, 32, 44)
PLAYER_COLOR = pygame.Color("#00f6ff")
HEALTH_COLOR = (102, 187, 106)

# ----------------- Game Client (input / rendering) -----------------

class RunnerClient:
    def __init__(self, store: SaveStore, *, seed: Optional[int] = None, mute: bool = False):
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("Piko Runner")

        self.messages = MessageBoard()
        audio = NullFeedback() if mute else ToneFeedback()
        self.sim = RunnerSimulation(store=store, audio=audio, notifier=self.messages)
        if seed is not None:
            self.sim.rng.seed(seed)

        self.swipes = SwipeTracker()
        self.screen_name = "menu"           # menu | scores | achievements | settings
        self.confirm_reset = False

        self.clock = pygame.time.Clock()
        self.large_font = pygame.font.Font(None, 40)
        self.font = pygame.font.Font(None, 24)

    def run(self):
        """The main client execution loop."""
        running = True
        while running:
            delta_ms = self.clock.tick(RENDER_FPS)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                else:
                    self._handle_event(event)

            self.sim.tick(delta_ms)
            self.messages.advance(delta_ms)
            self._draw(self.sim.snapshot())

        if self.sim.state in (SessionState.PLAYING, SessionState.PAUSED):
            self.sim.end()
        pygame.quit()

    # ---------- Input ----------

    def _handle_event(self, event: pygame.event.Event):
        state = self.sim.state

        if event.type == pygame.WINDOWFOCUSLOST and state is SessionState.PLAYING:
            logger.debug("Window lost focus, pausing")
            self.sim.pause()
            return

        if state is SessionState.PLAYING:
            intent = key_intent(event) or self.swipes.handle(event)
            if intent is not None:
                self.sim.submit(intent)
            return

        if event.type != pygame.KEYDOWN:
            return

        if state is SessionState.PAUSED:
            self._paused_key(event.key)
        elif state is SessionState.GAME_OVER:
            self._game_over_key(event.key)
        elif state is SessionState.IDLE:
            self._menu_key(event.key)

    def _paused_key(self, key: int):
        if key in (pygame.K_ESCAPE, pygame.K_RETURN):
            self.sim.ui_click()
            self.sim.resume()
        elif key == pygame.K_q:
            self.sim.ui_click()
            self.sim.end()

    def _game_over_key(self, key: int):
        if key == pygame.K_RETURN:
            self.sim.ui_click()
            self.sim.start()
        elif key == pygame.K_ESCAPE:
            self.sim.ui_click()
            self.sim.leave()
            self.screen_name = "menu"

    def _menu_key(self, key: int):
        if self.screen_name != "menu":
            if key == pygame.K_ESCAPE:
                self.sim.ui_click()
                self.screen_name = "menu"
                self.confirm_reset = False
            elif self.screen_name == "settings":
                self._settings_key(key)
            return

        screens = {pygame.K_h: "scores", pygame.K_a: "achievements", pygame.K_s: "settings"}
        if key == pygame.K_RETURN:
            self.sim.ui_click()
            self.sim.start()
        elif key in screens:
            self.sim.ui_click()
            self.screen_name = screens[key]

    def _settings_key(self, key: int):
        settings = self.sim.settings
        if key == pygame.K_1:
            self.sim.update_settings(sound=not settings.sound)
        elif key == pygame.K_2:
            self.sim.update_settings(vibration=not settings.vibration)
        elif key == pygame.K_3:
            levels = list(DIFFICULTY_SPAWN_SCALE)
            nxt = levels[(levels.index(settings.difficulty) + 1) % len(levels)]
            self.sim.update_settings(difficulty=nxt)
        elif key == pygame.K_r:
            # Press twice to wipe saved progress
            if self.confirm_reset:
                self.sim.reset_data()
            self.confirm_reset = not self.confirm_reset
            return
        else:
            return
        self.sim.ui_click()

    # ---------- Rendering ----------

    def _draw(self, snap: Snapshot):
        screen = self.screen
        screen.fill(BACKGROUND)

        if snap.state is SessionState.LOADING:
            self._centered("Loading...", SCREEN_HEIGHT // 2, self.large_font)
        elif snap.state is SessionState.IDLE:
            self._draw_menu(snap)
        else:
            self._draw_world(snap)
            self._draw_hud(snap)
            if snap.state is SessionState.PAUSED:
                self._draw_overlay(["Paused", "Esc / Enter = Resume", "Q = End run"])
            elif snap.state is SessionState.GAME_OVER:
                self._draw_game_over(snap)

        if self.messages.text:
            self._centered(self.messages.text, 140, self.large_font)

        pygame.display.flip()

    def _draw_world(self, snap: Snapshot):
        screen = self.screen

        # Lane dividers
        for left, right in zip(LANES, LANES[1:]):
            x = (left + right) / 2
            for y in range(0, SCREEN_HEIGHT, 40):
                pygame.draw.line(screen, (90, 98, 112), (x, y), (x, y + 20), 2)

        for obstacle in snap.obstacles:
            rect = pygame.Rect(0, 0, obstacle.width, obstacle.height)
            rect.midbottom = (round(obstacle.x), round(obstacle.y))
            pygame.draw.rect(screen, pygame.Color(obstacle.color), rect)

        for collectible in snap.collectibles:
            size = collectible.width * (1 + math.sin(collectible.pulse) * 0.2)
            rect = pygame.Rect(0, 0, round(size), round(size))
            rect.center = (round(collectible.x), round(collectible.y))
            pygame.draw.rect(screen, pygame.Color(collectible.color), rect)

        for enemy in snap.enemies:
            rect = pygame.Rect(0, 0, enemy.width, enemy.height)
            rect.midbottom = (round(enemy.x), round(enemy.y))
            pygame.draw.rect(screen, pygame.Color(enemy.color), rect)

        player = snap.player
        rect = pygame.Rect(0, 0, player.width, player.height)
        rect.midbottom = (round(player.x), round(player.feet_y))
        if player.invincible:
            pygame.draw.rect(screen, WHITE, rect.inflate(8, 8), 2)
        pygame.draw.rect(screen, PLAYER_COLOR, rect)

        for particle in snap.particles:
            dot = pygame.Surface((4, 4), pygame.SRCALPHA)
            color = pygame.Color(particle.color)
            color.a = max(0, min(255, int(255 * particle.life / PARTICLE_LIFE)))
            dot.fill(color)
            screen.blit(dot, (particle.x - 2, particle.y - 2))

    def _draw_hud(self, snap: Snapshot):
        hud = snap.to_hud_state()
        self.screen.blit(self.large_font.render(hud["score"], True, WHITE), (10, 10))
        self.screen.blit(self.font.render(hud["distance"], True, GREY), (10, 45))

        pygame.draw.rect(self.screen, GREY, (SCREEN_WIDTH - 160, 14, 150, 16), 1)
        pygame.draw.rect(self.screen, HEALTH_COLOR, (SCREEN_WIDTH - 159, 15, int(1.48 * hud["health"]), 14))

        for i, label in enumerate(hud["effects"]):
            self.screen.blit(self.font.render(label, True, WHITE), (SCREEN_WIDTH - 160, 40 + i * 24))

    def _draw_menu(self, snap: Snapshot):
        if self.screen_name == "scores":
            lines = ["High scores"]
            lines += [
                f"#{i + 1}  {s.score:,}  {s.date} - {s.distance}m - {s.time}s"
                for i, s in enumerate(snap.high_scores)
            ] or ["No scores yet"]
        elif self.screen_name == "achievements":
            lines = ["Achievements"]
            for ach in snap.achievements:
                mark = "[x]" if ach.unlocked else "[ ]"
                progress = f" {ach.progress}/{ach.target}" if ach.tracks_progress and not ach.unlocked else ""
                lines.append(f"{mark} {ach.title}{progress}")
        elif self.screen_name == "settings":
            s = self.sim.settings
            lines = [
                "Settings",
                f"1  Sound: {'on' if s.sound else 'off'}",
                f"2  Vibration: {'on' if s.vibration else 'off'}",
                f"3  Difficulty: {s.difficulty}",
                "R  Reset data" + ("  (press R again)" if self.confirm_reset else ""),
            ]
        else:
            lines = ["PIKO RUNNER", "Enter = Play", "H = High scores", "A = Achievements", "S = Settings"]
        if self.screen_name != "menu":
            lines.append("Esc = Back")

        for i, line in enumerate(lines):
            font = self.large_font if i == 0 else self.font
            self._centered(line, 220 + i * 36, font)

    def _draw_game_over(self, snap: Snapshot):
        best = snap.high_scores[0].score if snap.high_scores else snap.score
        self._draw_overlay([
            "Game over",
            f"Score: {snap.score:,}",
            f"Distance: {int(snap.distance)}m",
            f"Best: {best:,}",
            "Enter = Play again | Esc = Menu",
        ])

    def _draw_overlay(self, lines):
        shade = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT), pygame.SRCALPHA)
        shade.fill((0, 0, 0, 160))
        self.screen.blit(shade, (0, 0))
        for i, line in enumerate(lines):
            font = self.large_font if i == 0 else self.font
            self._centered(line, SCREEN_HEIGHT // 2 - 80 + i * 36, font)

    def _centered(self, text: str, y: int, font: pygame.font.Font):
        surf = font.render(text, True, WHITE)
        self.screen.blit(surf, (SCREEN_WIDTH // 2 - surf.get_width() // 2, y))
