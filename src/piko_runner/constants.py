"""
constants.py: Centralized configuration for the runner world and its content.
"""

# -------- Timing Config --------
STARTUP_DELAY_MS = 2000         # Loading screen time before the menu shows
MAX_FRAME_DELTA_MS = 100.0      # Longest frame gap fed into the simulation
RENDER_FPS = 60

# -------- Game World Config --------
SCREEN_WIDTH = 390
SCREEN_HEIGHT = 844
LANES = (130.0, 195.0, 260.0)   # Player x for each of the three lanes
START_LANE = 1
LANE_MATCH_TOLERANCE = 10.0

# -------- Player Config --------
PLAYER_BASELINE_Y = 700.0     # Ground line the player stands on
PLAYER_WIDTH = 30
PLAYER_HEIGHT = 40
PLAYER_MOVE_STEP = 8.0          # Horizontal easing per tick
JUMP_POWER = 15.0               # Initial upward speed of a jump
GRAVITY = 0.8                   # Subtracted from jump speed every tick

MAX_HEALTH = 100
OBSTACLE_DAMAGE = 20
ENEMY_DAMAGE = 30

# -------- World Speed Config --------
START_SPEED = 2.0
SPEED_UP_INTERVAL = 500.0       # Distance between difficulty steps
SPEED_UP_INCREMENT = 0.5
BOOST_MULTIPLIER = 1.5

# -------- Spawn Config --------
OBSTACLE_SPAWN_RATE = 0.02      # Scaled by speed / 2
COLLECTIBLE_SPAWN_RATE = 0.015
ENEMY_SPAWN_RATE = 0.005        # Scaled by speed / 3
SPAWN_JITTER = 100.0
DIFFICULTY_SPAWN_SCALE = {
    "easy": 0.75,
    "normal": 1.0,
    "hard": 1.25,
}

# kind -> (width, height, colour)
OBSTACLE_SPECS = {
    "car": (60, 40, "#ff4757"),
    "construction": (60, 40, "#ffa726"),
    "bird": (25, 20, "#795548"),
}
GROUND_OBSTACLE_Y = 700.0
BIRD_MIN_Y = 400.0
BIRD_Y_RANGE = 200.0

COLLECTIBLE_SIZE = 20
COLLECTIBLE_MIN_Y = 500.0
COLLECTIBLE_Y_RANGE = 200.0
COLLECTIBLE_PULSE_STEP = 0.2
COLLECTIBLE_COLORS = {
    "currency": "#00f6ff",
    "health": "#66bb6a",
    "boost": "#a855f7",
}

ENEMY_WIDTH = 35
ENEMY_HEIGHT = 45
ENEMY_Y = 700.0
ENEMY_SPAWN_OFFSET = 50.0
ENEMY_SPEED_BONUS = 1.0
ENEMY_COLOR = "#ff6b6b"

# -------- Particle Config --------
PARTICLE_BURST = 8
PARTICLE_LIFE = 30
PARTICLE_MAX_VELOCITY = 3.0
HIT_PARTICLE_COLOR = "#ff4757"       # Obstacle hits, whatever the obstacle kind

# -------- Scoring & Effects Config --------
CURRENCY_SCORE = 100
HEALTH_PICKUP = 20
HEALTH_POWERUP = 30

# kind -> (name, icon, duration ms)
POWERUP_SPECS = {
    "speed": ("Speed rush", "⚡", 5000),
    "invincibility": ("Ghost mode", "\U0001f47b", 3000),
    "health": ("Med kit", "\U0001f489", 0),
}

# -------- Feedback Config --------
HAPTIC_CLICK_MS = 50
HAPTIC_DAMAGE_MS = 200
HAPTIC_ACHIEVEMENT_MS = 300
MESSAGE_DURATION_MS = 2000

# Tone frequency per feedback tag (Hz)
TONE_FREQUENCIES = {
    "click": 800,
    "collect": 1200,
    "damage": 300,
    "jump": 600,
    "move": 400,
    "start": 1000,
    "gameover": 200,
    "achievement": 1500,
}
DEFAULT_TONE = 440
TONE_LENGTH_MS = 200

QUOTES = {
    "start": ["Let's roll!", "Tonight's going to be a ride!", "Time for action!"],
    "collect": ["Nice pickup!", "That saves the night!", "Perfect!"],
    "damage": ["That hurt!", "Watch where you run!", "Ouch!"],
    "gameover": ["They caught you!", "Take another street next time!", "Game over!"],
}
SPEED_UP_MESSAGE = "Faster!"
ENEMY_HIT_MESSAGE = "The patrol got you!"
HEALTH_MESSAGE = "Health restored!"
BOOST_MESSAGE = "Speed boost!"
RESET_MESSAGE = "Data reset!"

# -------- Achievements & Scores Config --------
# (id, title, description, icon, progress target or None)
ACHIEVEMENT_CATALOG = (
    ("first_run", "First getaway", "Start your first run", "\U0001f3c3", None),
    ("collector", "Collector", "Pick up 50 coins", "\U0001f4b0", 50),
    ("survivor", "Survivor", "Run 1000 metres", "\U0001f3c3", None),
    ("speedster", "Speedster", "Trigger 10 speed boosts", "⚡", 10),
    ("untouchable", "Untouchable", "Reach 500 metres at full health", "\U0001f6e1", None),
    ("high_score", "Record holder", "Score more than 10,000", "\U0001f451", None),
)
SURVIVOR_DISTANCE = 1000.0
UNTOUCHABLE_DISTANCE = 500.0
HIGH_SCORE_THRESHOLD = 10000

MAX_HIGH_SCORES = 10

# -------- Persistence Config --------
DB_FILE = "piko_runner.db"
SAVE_KEY = "pikoGame"
