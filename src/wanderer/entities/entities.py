from typing import Any, Dict, List, Optional, Tuple

from wanderer.core.ecs import Entity
from wanderer.data.loader import DATA_LOADER
from wanderer.entities.ai_system import SimpleAI
from wanderer.entities.components import (
    Equipment,
    Fighter,
    Inventory,
    Item,
    ItemType,
    Leveling,
    StatBonus,
)
from wanderer.exceptions import DefinitionError

# Loot Configuration: (item_id, weight) walked in order on a single draw
LOOT_TABLE: List[Tuple[str, int]] = [
    ("health_potion", 40),
    ("iron_sword", 20),
    ("leather_armor", 20),
    ("apple", 20),
]

# Items that may appear on the floor of a freshly generated world
FLOOR_ITEMS = ["health_potion", "iron_sword", "leather_armor", "apple"]


def roll_loot_drop(draw: float, table: List[Tuple[str, int]] = LOOT_TABLE) -> Optional[str]:
    """
    Pick an item id from a cumulative-weight table using one uniform draw in [0, 1).

    Boundaries go to the earlier entry.
    """
    total = sum(weight for _, weight in table)
    if total <= 0:
        return None

    point = draw * total
    cumulative = 0
    for item_id, weight in table:
        cumulative += weight
        if point <= cumulative:
            return item_id
    return None


class Player(Entity):
    """The player character."""

    __slots__ = ["leveling", "inventory", "equipment"]

    def __init__(
        self,
        x: int,
        y: int,
        attack: int = 6,
        defense: float = 2,
        max_hp: int = 20,
        inventory_capacity: int = 26,
    ):
        super().__init__(x, y, char="@", color=(255, 255, 0), name="you")
        self.is_player = True
        self.fighter = Fighter(attack, defense, max_hp, owner=self)
        self.leveling = Leveling()
        self.inventory = Inventory(capacity=inventory_capacity)
        self.equipment = Equipment()


class Creature(Entity):
    """A hostile creature driven by the AI system."""

    __slots__ = ["creature_type"]

    def __init__(self, x: int, y: int, creature_type: str, name: str, char: str, color):
        super().__init__(x, y, char=char, color=color, name=name)
        self.creature_type = creature_type
        self.is_enemy = True


class ItemEntity(Entity):
    """An item lying on the ground."""

    __slots__ = ["item"]

    def __init__(self, x: int, y: int, item: Item):
        super().__init__(x, y, char=item.char, color=item.color, name=item.name)
        self.item = item


def _heal_effect(amount: int):
    def effect(consumer: Entity):
        if consumer.fighter is not None:
            consumer.fighter.heal(amount)

    return effect


class EntityFactory:
    """Factory for creating entities and items from data definitions."""

    def __init__(self, loader=DATA_LOADER):
        self.loader = loader

    def create_player(self, x: int, y: int, config=None) -> Player:
        """Create a player entity, using stats from the config if given."""
        if config is None:
            return Player(x, y)
        return Player(
            x,
            y,
            attack=config.player_attack,
            defense=config.player_defense,
            max_hp=config.player_max_hp,
            inventory_capacity=config.inventory_capacity,
        )

    def create_creature(self, x: int, y: int, creature_type: str = "goblin") -> Creature:
        """Create a hostile creature entity."""
        data = self._definition(self.loader.get_monster_data, creature_type, "creature")

        creature = Creature(
            x,
            y,
            creature_type=creature_type,
            name=data.get("name", "Unknown"),
            char=data.get("char", "?"),
            color=tuple(data.get("fg_color", [255, 255, 255])),
        )
        hp = data.get("health", 1)
        creature.fighter = Fighter(data.get("attack", 0), data.get("defense", 0), hp, owner=creature)
        if data.get("ai_type", "simple") == "simple":
            creature.ai = SimpleAI()
        return creature

    def create_item(self, item_id: str) -> Item:
        """Create an inventory item from its definition."""
        data = self._definition(self.loader.get_item_data, item_id, "item")

        item_type = ItemType(data.get("type", "potion"))
        use_effect = None
        if data.get("heal_amount"):
            use_effect = _heal_effect(data["heal_amount"])

        bonus = None
        if data.get("attack_bonus") or data.get("defense_bonus"):
            bonus = StatBonus(
                attack=data.get("attack_bonus", 0), defense=data.get("defense_bonus", 0)
            )

        return Item(
            item_id=item_id,
            name=data.get("name", "Item"),
            char=data.get("char", "?"),
            color=tuple(data.get("fg_color", [255, 255, 255])),
            item_type=item_type,
            use_effect=use_effect,
            bonus=bonus,
        )

    def create_item_entity(self, x: int, y: int, item: Item) -> ItemEntity:
        return ItemEntity(x, y, item)

    @staticmethod
    def _definition(getter, key: str, kind: str) -> Dict[str, Any]:
        data = getter(key)
        if not data:
            raise DefinitionError(f"No {kind} definition for {key!r}")
        return data
