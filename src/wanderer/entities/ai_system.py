"""
AI system for hostile creatures.
"""

import logging
import math
from typing import TYPE_CHECKING, Optional, Tuple

from wanderer.world.fov import can_see

if TYPE_CHECKING:
    from wanderer.core.ecs import Entity
    from wanderer.world.game_world import World

logger = logging.getLogger(__name__)

# Scanned row-major: the first best candidate wins ties
NEIGHBOUR_OFFSETS = [
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
]


class SimpleAI:
    """Greedy chaser: step to the neighbour closest to a visible player.

    This is not pathfinding, so creatures can stall against concave walls.
    """

    kind = "simple"

    def choose_step(
        self, owner: "Entity", target: "Entity", world: "World"
    ) -> Optional[Tuple[int, int]]:
        """Passable neighbour minimising distance to the target, or None."""
        best = None
        best_distance = math.inf
        for dx, dy in NEIGHBOUR_OFFSETS:
            nx, ny = owner.x + dx, owner.y + dy
            if not world.tile_map.is_walkable(nx, ny):
                continue
            distance = math.hypot(nx - target.x, ny - target.y)
            if distance < best_distance:
                best_distance = distance
                best = (nx, ny)
        return best

    def take_turn(self, owner: "Entity", world: "World"):
        """Advance this creature by one tick."""
        player = world.player
        if player is None or owner.fighter is None:
            return

        if not can_see(
            world.tile_map, owner.x, owner.y, player.x, player.y, world.config.aggro_range
        ):
            return

        step = self.choose_step(owner, player, world)
        if step is None:
            return

        if step == player.position:
            world.combat.attack(owner, player)
        else:
            logger.debug("%r steps to %s", owner, step)
            world.move_entity(owner, *step)


class AISystem:
    """Runs one decision for every creature in the world."""

    def update(self, world: "World"):
        """Update AI for all creatures in registry order."""
        for entity in world.creatures():
            if world.game_over:
                break
            # Skip anything removed earlier in this pass
            if entity not in world.entity_manager or entity.ai is None:
                continue
            entity.ai.take_turn(entity, world)
