from __future__ import annotations

import pytest

from conftest import EagerRandom, FixedRandom, QuietRandom, RecordingFeedback, RecordingNotifier
from piko_runner.constants import (
    ENEMY_HIT_MESSAGE, ENEMY_Y, GROUND_OBSTACLE_Y, HIT_PARTICLE_COLOR, LANES, MAX_HIGH_SCORES,
    PARTICLE_BURST, SPEED_UP_INCREMENT, SPEED_UP_MESSAGE, STARTUP_DELAY_MS
)
from piko_runner.data_models import (
    Collectible, CollectibleKind, Enemy, HighScoreEntry, Intent, Obstacle, ObstacleKind,
    PowerUpKind, SessionState, insert_high_score
)
from piko_runner.save_store import SaveStore
from piko_runner.simulation import RunnerSimulation


def _car_on_player(sim: RunnerSimulation) -> Obstacle:
    return Obstacle(kind=ObstacleKind.CAR, x=sim.player.x, y=GROUND_OBSTACLE_Y, width=60, height=40)


def _pickup_on_player(sim: RunnerSimulation, kind: CollectibleKind) -> Collectible:
    return Collectible(kind=kind, x=sim.player.x, y=sim.player.y - 20)


# ---------- Lifecycle ----------

def test_loading_becomes_idle_after_startup_delay(store: SaveStore) -> None:
    sim = RunnerSimulation(store=store, rng=QuietRandom())
    assert sim.state is SessionState.LOADING

    sim.tick(STARTUP_DELAY_MS / 2)
    assert sim.state is SessionState.LOADING
    sim.tick(STARTUP_DELAY_MS / 2)
    assert sim.state is SessionState.IDLE


def test_idle_ticks_do_not_simulate(sim: RunnerSimulation) -> None:
    for _ in range(10):
        sim.tick(16)
    assert sim.distance == 0
    assert sim.tick_count == 0


def test_start_resets_session_and_unlocks_first_run(
    sim: RunnerSimulation, audio: RecordingFeedback
) -> None:
    sim.score = 999
    sim.health = 10
    sim.obstacles.append(_car_on_player(sim))

    assert sim.start()
    assert sim.state is SessionState.PLAYING
    assert sim.score == 0
    assert sim.health == 100
    assert sim.speed == 2.0
    assert sim.obstacles == []
    assert sim.achievement("first_run").unlocked
    assert "start" in audio.sounds


def test_invalid_transitions_are_ignored(sim: RunnerSimulation) -> None:
    assert sim.pause() is False
    assert sim.resume() is False
    assert sim.end() is None
    assert sim.leave() is False
    assert sim.jump() is False
    assert sim.move_left() is False
    assert sim.state is SessionState.IDLE

    sim.start()
    assert sim.start() is False
    assert sim.resume() is False
    assert sim.state is SessionState.PLAYING


def test_pause_freezes_world_and_resume_skips_paused_time(playing: RunnerSimulation) -> None:
    playing.tick(16)
    playing.tick(16)
    distance, clock = playing.distance, playing.clock_ms

    assert playing.pause()
    for _ in range(5):
        playing.tick(16)
    assert playing.distance == distance

    assert playing.resume()
    playing.tick(60_000)
    assert playing.clock_ms == clock
    assert playing.distance > distance


def test_end_from_pause_and_restart(playing: RunnerSimulation, store: SaveStore) -> None:
    playing.tick(16)
    playing.pause()
    entry = playing.end()

    assert entry is not None
    assert playing.state is SessionState.GAME_OVER
    assert store.load().high_scores == [entry]

    assert playing.start()
    assert playing.state is SessionState.PLAYING
    playing.end()
    assert playing.leave()
    assert playing.state is SessionState.IDLE


def test_elapsed_time_counts_play_clock(playing: RunnerSimulation) -> None:
    playing.tick(16)
    for _ in range(25):
        playing.tick(100)
    entry = playing.end()
    assert entry.time == 2


# ---------- Player motion & intents ----------

def test_move_left_then_right_returns_to_middle_lane(
    playing: RunnerSimulation, audio: RecordingFeedback
) -> None:
    assert playing.player.lane == 1
    assert playing.move_left()
    assert playing.move_right()

    assert playing.player.lane == 1
    assert playing.player.target_x == LANES[1]
    assert audio.sounds.count("move") == 2


def test_move_at_boundary_is_noop(playing: RunnerSimulation, audio: RecordingFeedback) -> None:
    assert playing.move_left()
    assert playing.move_left() is False
    assert playing.player.target_x == LANES[0]
    assert audio.sounds.count("move") == 1


def test_submitted_intents_apply_on_next_tick_last_wins(
    playing: RunnerSimulation, audio: RecordingFeedback
) -> None:
    playing.submit(Intent.MOVE_LEFT)
    playing.submit(Intent.MOVE_RIGHT)
    playing.submit(Intent.JUMP)
    playing.submit(Intent.JUMP)
    assert playing.player.target_x == LANES[1]

    playing.tick(16)
    assert playing.player.target_x == LANES[2]
    assert playing.player.is_jumping
    assert audio.sounds.count("jump") == 1


def test_pause_intent_pauses_immediately(playing: RunnerSimulation) -> None:
    playing.submit(Intent.PAUSE)
    assert playing.state is SessionState.PAUSED


def test_player_eases_into_new_lane(playing: RunnerSimulation) -> None:
    playing.move_right()
    for _ in range(20):
        playing.tick(16)
    assert playing.player.x == LANES[2]


# ---------- Distance, speed & spawning ----------

def test_speed_up_fires_once_at_500(playing: RunnerSimulation, notifier: RecordingNotifier) -> None:
    for _ in range(249):
        playing.tick(16)
    assert playing.distance == 498
    assert playing.speed == 2.0

    playing.tick(16)
    assert playing.distance == 500
    assert playing.speed == 2.5
    assert notifier.messages.count(SPEED_UP_MESSAGE) == 1

    for _ in range(20):
        playing.tick(16)
    assert playing.speed == 2.5
    assert notifier.messages.count(SPEED_UP_MESSAGE) == 1


def test_score_accrues_by_whole_speed(playing: RunnerSimulation) -> None:
    playing.base_speed = 2.5
    playing.tick(16)
    playing.tick(16)
    assert playing.score == 4
    assert playing.distance == 5.0


def test_spawns_enter_from_the_right_and_leave_on_the_left(store: SaveStore) -> None:
    sim = RunnerSimulation(store=store, rng=EagerRandom())
    sim.tick(STARTUP_DELAY_MS)
    sim.start()
    sim.tick(16)

    assert len(sim.obstacles) == 1
    assert len(sim.collectibles) == 1
    assert len(sim.enemies) == 1
    assert sim.enemies[0].speed == pytest.approx(sim.speed + 1)
    assert sim.obstacles[0].x > 300

    sim.rng = QuietRandom()
    # right edge reaches 0 after this tick's move
    sim.obstacles[0].x = -28.0
    sim.tick(16)
    assert sim.obstacles == []


@pytest.mark.parametrize("difficulty, spawned", [("easy", 0), ("normal", 0), ("hard", 1)])
def test_difficulty_scales_spawn_chance(sim: RunnerSimulation, difficulty: str, spawned: int) -> None:
    # Obstacle chance at speed 2: easy 0.015, normal 0.02, hard 0.025
    sim.update_settings(difficulty=difficulty)
    sim.start()
    sim.rng = FixedRandom(0.02)
    sim.tick(16)

    assert len(sim.obstacles) == spawned
    assert sim.collectibles == []
    assert sim.enemies == []


def test_particles_expire(playing: RunnerSimulation) -> None:
    playing.spawn_particles(100, 100, "#ffffff")
    assert len(playing.particles) == PARTICLE_BURST
    for _ in range(30):
        playing.tick(16)
    assert playing.particles == []


# ---------- Collisions ----------

def test_obstacle_persists_and_hits_again(
    playing: RunnerSimulation, audio: RecordingFeedback
) -> None:
    car = _car_on_player(playing)
    playing.obstacles.append(car)

    playing.tick(16)
    assert playing.health == 80
    assert car in playing.obstacles
    assert len(playing.particles) == PARTICLE_BURST

    playing.tick(16)
    assert playing.health == 60
    assert audio.sounds.count("damage") == 2
    assert audio.vibrations.count(200) == 2


def test_obstacle_hit_particles_use_hit_colour(playing: RunnerSimulation) -> None:
    playing.obstacles.append(Obstacle(
        kind=ObstacleKind.CONSTRUCTION, x=playing.player.x, y=GROUND_OBSTACLE_Y, width=60, height=40
    ))
    playing.tick(16)
    assert {p.color for p in playing.particles} == {HIT_PARTICLE_COLOR}


def test_enemy_hit_does_more_damage(playing: RunnerSimulation, notifier: RecordingNotifier) -> None:
    playing.enemies.append(Enemy(x=playing.player.x, y=ENEMY_Y, speed=3.0))
    playing.tick(16)
    assert playing.health == 70
    assert ENEMY_HIT_MESSAGE in notifier.messages
    assert len(playing.enemies) == 1


def test_invincibility_skips_collisions_until_it_expires(playing: RunnerSimulation) -> None:
    playing.activate_power_up(PowerUpKind.INVINCIBILITY)
    playing.obstacles.append(_car_on_player(playing))
    playing.tick(16)
    assert playing.health == 100

    for _ in range(30):
        playing.tick(100)
    assert not playing.player.invincible
    assert PowerUpKind.INVINCIBILITY not in playing.power_ups


def test_lethal_tick_ends_session_once(playing: RunnerSimulation, store: SaveStore) -> None:
    for _ in range(5):
        playing.obstacles.append(_car_on_player(playing))

    playing.tick(16)

    assert playing.health == 0
    assert playing.state is SessionState.GAME_OVER
    assert len(playing.high_scores) == 1
    assert len(store.load().high_scores) == 1

    playing.tick(16)
    assert len(playing.high_scores) == 1


def test_health_is_clamped(playing: RunnerSimulation) -> None:
    playing.take_damage(250)
    assert playing.health == 0
    playing.heal(500)
    assert playing.health == 100


# ---------- Pickups & power-ups ----------

def test_currency_pickup_scores_and_is_removed(
    playing: RunnerSimulation, audio: RecordingFeedback
) -> None:
    coin = _pickup_on_player(playing, CollectibleKind.CURRENCY)
    playing.collectibles.append(coin)
    playing.tick(16)

    assert playing.collectibles == []
    assert playing.score == 100 + 2
    assert playing.achievement("collector").progress == 1
    assert "collect" in audio.sounds


def test_health_pickup_caps_at_full(playing: RunnerSimulation) -> None:
    playing.health = 90
    playing.collect(_pickup_on_player(playing, CollectibleKind.HEALTH))
    assert playing.health == 100


def test_boost_multiplies_then_restores_speed(playing: RunnerSimulation) -> None:
    playing.collectibles.append(_pickup_on_player(playing, CollectibleKind.BOOST))
    playing.tick(16)
    assert playing.speed == pytest.approx(3.0)
    assert PowerUpKind.SPEED in playing.power_ups

    for _ in range(49):
        playing.tick(100)
    assert playing.speed == pytest.approx(3.0)

    playing.tick(100)
    assert playing.speed == pytest.approx(2.0)
    assert playing.power_ups == {}

    playing.tick(100)
    assert playing.speed == pytest.approx(2.0)


def test_speed_up_during_boost_survives_expiry(playing: RunnerSimulation) -> None:
    playing.activate_power_up(PowerUpKind.SPEED)
    playing.distance = 499
    playing.tick(16)
    assert playing.base_speed == pytest.approx(2.0 + SPEED_UP_INCREMENT)
    assert playing.speed == pytest.approx((2.0 + SPEED_UP_INCREMENT) * 1.5)

    for _ in range(50):
        playing.tick(100)
    assert playing.power_ups == {}
    assert playing.speed == pytest.approx(2.0 + SPEED_UP_INCREMENT)


def test_second_boost_replaces_timer_instead_of_stacking(playing: RunnerSimulation) -> None:
    first = playing.activate_power_up(PowerUpKind.SPEED)
    playing.tick(16)
    playing.tick(100)
    second = playing.activate_power_up(PowerUpKind.SPEED)

    assert playing.speed == pytest.approx(3.0)
    assert second.expires_at > first.expires_at
    assert len(playing.power_ups) == 1


def test_health_power_up_is_instant(playing: RunnerSimulation) -> None:
    playing.health = 50
    playing.activate_power_up(PowerUpKind.HEALTH)
    assert playing.health == 80
    assert PowerUpKind.HEALTH in playing.power_ups

    playing.tick(16)
    assert PowerUpKind.HEALTH not in playing.power_ups


def test_snapshot_lists_effects_and_is_detached(playing: RunnerSimulation) -> None:
    playing.activate_power_up(PowerUpKind.SPEED)
    snap = playing.snapshot()

    assert snap.state is SessionState.PLAYING
    assert [e.seconds_left for e in snap.effects] == [5]
    assert snap.to_hud_state()["distance"] == "0m"

    snap.player.x = -1
    assert playing.player.x == LANES[1]


# ---------- Achievements ----------

def test_survivor_unlocks_exactly_once(playing: RunnerSimulation, notifier: RecordingNotifier) -> None:
    playing.distance = 999
    playing.next_speed_up = 10_000
    for _ in range(10):
        playing.tick(16)

    assert playing.achievement("survivor").unlocked
    unlock_messages = [m for m in notifier.messages if "Survivor" in m]
    assert len(unlock_messages) == 1


def test_untouchable_needs_full_health(playing: RunnerSimulation) -> None:
    playing.distance = 500
    playing.next_speed_up = 10_000
    playing.health = 90
    playing.tick(16)
    assert not playing.achievement("untouchable").unlocked

    playing.health = 100
    playing.tick(16)
    assert playing.achievement("untouchable").unlocked


def test_high_score_achievement(playing: RunnerSimulation) -> None:
    playing.score = 9_999
    playing.tick(16)
    assert playing.achievement("high_score").unlocked


def test_collector_unlocks_at_target_and_stops_counting(
    playing: RunnerSimulation, audio: RecordingFeedback
) -> None:
    for _ in range(49):
        playing.collect(_pickup_on_player(playing, CollectibleKind.CURRENCY))
    assert not playing.achievement("collector").unlocked

    playing.collect(_pickup_on_player(playing, CollectibleKind.CURRENCY))
    playing.collect(_pickup_on_player(playing, CollectibleKind.CURRENCY))

    collector = playing.achievement("collector")
    assert collector.unlocked
    assert collector.progress == 50
    # first_run at start plus collector
    assert audio.sounds.count("achievement") == 2


def test_speedster_counts_boosts(playing: RunnerSimulation) -> None:
    for _ in range(10):
        playing.collect(_pickup_on_player(playing, CollectibleKind.BOOST))
    assert playing.achievement("speedster").unlocked
    assert playing.speed == pytest.approx(3.0)


def test_unknown_achievement_is_a_programming_error(playing: RunnerSimulation) -> None:
    with pytest.raises(KeyError):
        playing.unlock_achievement("no_such_thing")


# ---------- Scores, settings & data ----------

def test_high_score_list_stays_bounded_and_sorted() -> None:
    scores: list[HighScoreEntry] = []
    for value in [5, 90, 12, 400, 7, 33, 250, 1, 64, 128, 3, 999, 47]:
        scores = insert_high_score(scores, HighScoreEntry(value, value, 1, "2026-01-01"))
        assert len(scores) <= MAX_HIGH_SCORES
        assert [s.score for s in scores] == sorted((s.score for s in scores), reverse=True)

    assert scores[0].score == 999
    assert len(scores) == MAX_HIGH_SCORES


def test_many_sessions_keep_top_ten(sim: RunnerSimulation) -> None:
    for i in range(12):
        sim.start()
        sim.score = i * 10
        sim.end()
    assert len(sim.high_scores) == MAX_HIGH_SCORES
    assert sim.high_scores[0].score == 110
    assert sim.high_scores[-1].score == 20


def test_sound_and_vibration_settings_gate_feedback(
    playing: RunnerSimulation, audio: RecordingFeedback
) -> None:
    playing.update_settings(sound=False, vibration=False)
    audio.sounds.clear()
    audio.vibrations.clear()

    playing.move_left()
    playing.take_damage(10)
    assert audio.sounds == []
    assert audio.vibrations == []


def test_update_settings_persists_and_validates(sim: RunnerSimulation, store: SaveStore) -> None:
    sim.update_settings(difficulty="hard")
    assert store.load().settings.difficulty == "hard"

    with pytest.raises(ValueError):
        sim.update_settings(difficulty="nightmare")


def test_reset_data_clears_scores_and_achievements(sim: RunnerSimulation, store: SaveStore) -> None:
    sim.start()
    sim.end()
    sim.update_settings(sound=False)
    assert sim.achievement("first_run").unlocked

    sim.reset_data()

    assert sim.high_scores == []
    assert not sim.achievement("first_run").unlocked
    saved = store.load()
    assert saved.high_scores == []
    assert saved.settings.sound is False
