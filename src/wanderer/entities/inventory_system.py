"""
Inventory system: pickup, drop, use and equip for the player.

Every action returns True when it changed world state (and so costs a
turn) and False when it was rejected with a log message.
"""

import logging
from typing import TYPE_CHECKING

from wanderer.entities.components import Item

if TYPE_CHECKING:
    from wanderer.entities.entities import ItemEntity, Player
    from wanderer.world.game_world import World

logger = logging.getLogger(__name__)


class InventorySystem:
    """Item management for the player entity."""

    def __init__(self, world: "World"):
        self.world = world

    def pickup(self, player: "Player", item_entity: "ItemEntity") -> bool:
        """Move a ground item into the inventory, removing it from the world."""
        item = item_entity.item
        if not player.inventory.add(item):
            self.world.log.add("Inventory full!", (255, 100, 100))
            return False

        self.world.remove_entity(item_entity)
        self.world.log.add(f"You pick up the {item.name}.", (100, 255, 100))
        return True

    def drop(self, player: "Player", index: int) -> bool:
        item = player.inventory.get(index)
        if item is None:
            self.world.log.add("Invalid slot.", (150, 150, 150))
            return False

        if item.equipped:
            self.unequip(player, item)

        player.inventory.remove(index)
        self.world.add_entity(self.world.factory.create_item_entity(player.x, player.y, item))
        self.world.log.add(f"You drop the {item.name}.", (200, 200, 200))
        return True

    def use(self, player: "Player", index: int) -> bool:
        item = player.inventory.get(index)
        if item is None:
            self.world.log.add("Invalid slot.", (150, 150, 150))
            return False

        if not item.use(player):
            self.world.log.add(f"The {item.name} does nothing.", (150, 150, 150))
            return False

        if item.is_consumable:
            player.inventory.remove(index)
            self.world.log.add(f"You consume the {item.name}.", (100, 255, 100))
        return True

    def equip(self, player: "Player", index: int) -> bool:
        item = player.inventory.get(index)
        if item is None:
            self.world.log.add("Invalid slot.", (150, 150, 150))
            return False

        slot = item.slot
        if slot is None:
            self.world.log.add(f"Can't equip {item.name}.", (150, 150, 150))
            return False

        old = player.equipment.get(slot)
        if old is not None:
            self.unequip(player, old)

        player.equipment.set(slot, item)
        item.equipped = True
        self.apply_equip_bonus(player, item, True)
        self.world.log.add(f"You equip the {item.name}.", (100, 200, 255))
        return True

    def unequip(self, player: "Player", item: Item):
        slot = player.equipment.slot_of(item)
        if slot is None:
            return
        player.equipment.set(slot, None)
        item.equipped = False
        self.apply_equip_bonus(player, item, False)
        logger.debug("Unequipped %s from %s", item.name, slot)

    @staticmethod
    def apply_equip_bonus(player: "Player", item: Item, equip: bool):
        if item.bonus is None:
            return
        sign = 1 if equip else -1
        player.fighter.attack += sign * item.bonus.attack
        player.fighter.defense += sign * item.bonus.defense
