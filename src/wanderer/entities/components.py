"""
Component definitions owned by entities.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

if TYPE_CHECKING:
    from wanderer.core.ecs import Entity

INVENTORY_LETTERS = "abcdefghijklmnopqrstuvwxyz"


@dataclass(slots=True)
class StatGrant:
    """Stat increase applied on level up."""

    hp: int = 3
    attack: int = 1
    defense: float = 0.5


LEVEL_UP_GRANT = StatGrant()


@dataclass(slots=True)
class Fighter:
    """Combat component: attack, defense and health.

    ``hp`` is kept within ``[0, max_hp]`` by every mutator here.
    """

    attack: int
    defense: float
    max_hp: int
    hp: Optional[int] = None
    owner: Optional["Entity"] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.max_hp <= 0:
            raise ValueError("max_hp must be positive")
        if self.hp is None:
            self.hp = self.max_hp
        self.hp = max(0, min(self.hp, self.max_hp))

    @property
    def is_dead(self) -> bool:
        return self.hp <= 0

    def take_damage(self, amount: int) -> int:
        """Subtract damage, never dropping below zero. Returns damage applied."""
        before = self.hp
        self.hp = max(0, self.hp - amount)
        return before - self.hp

    def heal(self, amount: int) -> int:
        """Restore health up to max_hp. Returns the amount actually healed."""
        before = self.hp
        self.hp = min(self.hp + amount, self.max_hp)
        return self.hp - before

    def level_up(self, grant: StatGrant):
        self.attack += grant.attack
        self.defense += grant.defense
        self.max_hp += grant.hp
        self.hp = self.max_hp


def xp_threshold(level: int) -> int:
    """XP needed to reach `level` (geometric, factor 1.6)."""
    return math.floor(10 * 1.6 ** (level - 1))


@dataclass(slots=True)
class Leveling:
    """Progression component tracking level and accumulated XP."""

    level: int = 1
    xp: int = 0

    @property
    def current_threshold(self) -> int:
        return xp_threshold(self.level)

    @property
    def next_threshold(self) -> int:
        return xp_threshold(self.level + 1)

    def gain_xp(
        self, amount: int, fighter: Optional[Fighter] = None, grant: StatGrant = LEVEL_UP_GRANT
    ) -> int:
        """Add XP and apply every level up it pays for. Returns levels gained."""
        if amount < 0:
            raise ValueError("XP gains cannot be negative")

        self.xp += amount
        gained = 0
        while self.xp >= self.next_threshold:
            self.level += 1
            gained += 1
            if fighter is not None:
                fighter.level_up(grant)
        return gained

    def get_progress(self) -> float:
        """Fraction of the way from the current level to the next, in [0, 1]."""
        current, nxt = self.current_threshold, self.next_threshold
        return max(0.0, min(1.0, (self.xp - current) / (nxt - current)))


class ItemType(str, Enum):
    POTION = "potion"
    WEAPON = "weapon"
    ARMOR = "armor"
    FOOD = "food"


CONSUMABLE_TYPES = (ItemType.POTION, ItemType.FOOD)
EQUIPMENT_SLOTS = ("weapon", "armor")


@dataclass(frozen=True, slots=True)
class StatBonus:
    attack: int = 0
    defense: float = 0


@dataclass(slots=True, eq=False)
class Item:
    """A pickup. Everything except ``equipped`` is fixed after creation."""

    item_id: str
    name: str
    char: str
    color: Tuple[int, int, int]
    item_type: ItemType
    use_effect: Optional[Callable[["Entity"], None]] = field(default=None, repr=False)
    bonus: Optional[StatBonus] = None
    equipped: bool = False

    @property
    def slot(self) -> Optional[str]:
        """Equipment slot this item occupies, if any."""
        if self.item_type == ItemType.WEAPON:
            return "weapon"
        if self.item_type == ItemType.ARMOR:
            return "armor"
        return None

    @property
    def is_consumable(self) -> bool:
        return self.item_type in CONSUMABLE_TYPES

    def use(self, consumer: "Entity") -> bool:
        """Apply the use effect. Returns False if the item has none."""
        if self.use_effect is None:
            return False
        self.use_effect(consumer)
        return True


@dataclass(slots=True)
class Inventory:
    """Ordered item list addressed by letters a-z."""

    capacity: int = len(INVENTORY_LETTERS)
    items: List[Item] = field(default_factory=list)

    def __post_init__(self):
        if not 0 < self.capacity <= len(INVENTORY_LETTERS):
            raise ValueError(f"Inventory capacity must be 1..{len(INVENTORY_LETTERS)}")
        if len(self.items) > self.capacity:
            raise ValueError("Too many items for inventory capacity")

    @property
    def is_full(self) -> bool:
        return len(self.items) >= self.capacity

    def add(self, item: Item) -> bool:
        if self.is_full:
            return False
        self.items.append(item)
        return True

    def get(self, index: int) -> Optional[Item]:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    def remove(self, index: int) -> Item:
        return self.items.pop(index)

    def index_of(self, item: Item) -> int:
        for i, candidate in enumerate(self.items):
            if candidate is item:
                return i
        return -1

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


def letter_for_index(index: int) -> str:
    return INVENTORY_LETTERS[index]


def index_for_letter(letter: str) -> Optional[int]:
    """Map 'a'-'z' to 0-25; anything else gives None."""
    if len(letter) != 1:
        return None
    index = INVENTORY_LETTERS.find(letter.lower())
    return index if index >= 0 else None


@dataclass(slots=True)
class Equipment:
    """One weapon and one armor slot, each empty or holding an inventory item."""

    weapon: Optional[Item] = None
    armor: Optional[Item] = None

    def get(self, slot: str) -> Optional[Item]:
        if slot not in EQUIPMENT_SLOTS:
            raise ValueError(f"Unknown equipment slot: {slot}")
        return getattr(self, slot)

    def set(self, slot: str, item: Optional[Item]):
        if slot not in EQUIPMENT_SLOTS:
            raise ValueError(f"Unknown equipment slot: {slot}")
        setattr(self, slot, item)

    def slot_of(self, item: Item) -> Optional[str]:
        for slot in EQUIPMENT_SLOTS:
            if getattr(self, slot) is item:
                return slot
        return None

    def equipped_items(self) -> List[Item]:
        return [item for item in (self.weapon, self.armor) if item is not None]
