"""
physics_core.py: The shared, deterministic kinematic functions and collision logic.
"""

from typing import NamedTuple, Optional, Union

from .constants import GRAVITY, JUMP_POWER, LANES, PLAYER_MOVE_STEP
from .data_models import Collectible, Enemy, Obstacle, Player

Entity = Union[Obstacle, Collectible, Enemy]


class Box(NamedTuple):
    left: float
    top: float
    right: float
    bottom: float


class PhysicsCore:
    """
    Per-tick player kinematics and box collision, independent of wall time.
    """

    LANES = LANES
    MOVE_STEP = PLAYER_MOVE_STEP

    def lane_target(self, player: Player, step: int) -> Optional[float]:
        """
        Returns the x of the lane `step` lanes away from the player's target lane,
        or None when that lane does not exist.
        """
        current = player.lane
        if current is None:
            return None
        index = current + step
        if 0 <= index < len(self.LANES):
            return self.LANES[index]
        return None

    def ease_toward_target(self, player: Player):
        """Moves x toward target_x by a fixed step without overshooting."""
        if player.x < player.target_x:
            player.x = min(player.x + self.MOVE_STEP, player.target_x)
        elif player.x > player.target_x:
            player.x = max(player.x - self.MOVE_STEP, player.target_x)

    def start_jump(self, player: Player) -> bool:
        """Launches a jump. Returns False (and changes nothing) while airborne."""
        if player.is_jumping:
            return False
        player.is_jumping = True
        player.jump_speed = JUMP_POWER
        return True

    def step_jump(self, player: Player):
        """One tick of the ballistic arc; lands the player once height drops to 0."""
        if not player.is_jumping:
            return

        player.jump_height += player.jump_speed
        player.jump_speed -= GRAVITY

        if player.jump_height <= 0:
            player.jump_height = 0.0
            player.jump_speed = 0.0
            player.is_jumping = False

    def hitbox(self, thing: Union[Player, Entity]) -> Box:
        """
        World-space box of a sprite. The player, obstacles and enemies are anchored
        at their bottom centre; collectibles at their centre.
        """
        half_w = thing.width / 2
        if isinstance(thing, Player):
            bottom = thing.feet_y
            return Box(thing.x - half_w, bottom - thing.height, thing.x + half_w, bottom)
        if isinstance(thing, Collectible):
            half_h = thing.height / 2
            return Box(thing.x - half_w, thing.y - half_h, thing.x + half_w, thing.y + half_h)
        return Box(thing.x - half_w, thing.y - thing.height, thing.x + half_w, thing.y)

    def check_collision(self, player: Player, entity: Entity) -> bool:
        """Axis-aligned box overlap using the jump-adjusted player position."""
        a = self.hitbox(player)
        b = self.hitbox(entity)
        return a.left < b.right and a.right > b.left and a.top < b.bottom and a.bottom > b.top

    def is_off_screen(self, entity: Entity) -> bool:
        """True once the entity's right edge has passed the left boundary."""
        return self.hitbox(entity).right <= 0
