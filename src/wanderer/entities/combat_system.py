"""
Combat resolution: attacks, deaths, experience rewards and loot drops.
"""

import logging
import math
from typing import TYPE_CHECKING

from wanderer.core.ecs import Entity
from wanderer.entities.components import LEVEL_UP_GRANT
from wanderer.entities.entities import roll_loot_drop

if TYPE_CHECKING:
    from wanderer.world.game_world import World

logger = logging.getLogger(__name__)


def calculate_damage(attack: float, defense: float, draw: float) -> int:
    """
    Damage for one hit given a uniform draw in [0, 1).

    At least 1 damage always lands and the random bonus is 0-2.
    """
    return max(1, math.floor(attack - defense / 2) + math.floor(draw * 3))


class CombatSystem:
    """Resolves attacks between fighters in a world."""

    def __init__(self, world: "World"):
        self.world = world

    def attack(self, attacker: Entity, target: Entity) -> int:
        """Hit `target` once. Death is resolved before this returns."""
        if attacker.fighter is None or target.fighter is None:
            return 0
        if target.fighter.is_dead:
            return 0

        damage = calculate_damage(
            attacker.fighter.attack, target.fighter.defense, self.world.rng.random()
        )
        target.fighter.take_damage(damage)

        self.world.log.add(
            f"{attacker.char} hits {target.char} for {damage} damage!", (200, 200, 200)
        )
        logger.debug(
            "%r hit %r for %d (hp now %d)", attacker, target, damage, target.fighter.hp
        )

        if target.fighter.is_dead:
            self.die(target)
        return damage

    def die(self, entity: Entity):
        """Handle the death of an entity."""
        name = entity.char.upper()
        self.world.log.add(f"{name} is dead!", (255, 100, 100))

        if entity.is_player:
            # The corpse stays where it fell
            self.world.log.add("GAME OVER", (255, 50, 50))
            self.world.game_over = True
            logger.info("Player died at %s", entity.position)
            return

        self.reward_kill()
        self.drop_loot(entity, name)
        self.world.remove_entity(entity)

    def reward_kill(self):
        """Grant kill XP to the player."""
        player = self.world.player
        if player is None:
            return

        config = self.world.config
        amount = config.xp_reward_base + math.floor(
            self.world.rng.random() * config.xp_reward_spread
        )
        self.grant_xp(player, amount)

    def grant_xp(self, player: Entity, amount: int):
        """Give XP to the player and announce any level ups."""
        leveling = player.leveling
        grant = LEVEL_UP_GRANT
        gained = leveling.gain_xp(amount, player.fighter, grant)
        self.world.log.add(f"+{amount} XP!", (100, 255, 100))

        for level in range(leveling.level - gained + 1, leveling.level + 1):
            self.world.log.add(
                f"LEVEL UP! Lv {level} (+{grant.hp}HP, +{grant.attack}ATK, +{grant.defense}DEF)",
                (255, 215, 0),
            )

    def drop_loot(self, entity: Entity, name: str):
        """Roll the drop chance and place any loot at the entity's position."""
        rng = self.world.rng
        if rng.random() >= self.world.config.loot_drop_chance:
            return

        item_id = roll_loot_drop(rng.random())
        if item_id is None:
            return

        item = self.world.factory.create_item(item_id)
        self.world.add_entity(self.world.factory.create_item_entity(entity.x, entity.y, item))
        self.world.log.add(f"{name} drops a {item.name}!", (255, 215, 0))
