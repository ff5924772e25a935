"""
The World: terrain plus live entities, and the per-tick creature update.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from wanderer.config import GameConfig
from wanderer.core.ecs import Entity, EntityManager
from wanderer.core.message_log import MessageLog
from wanderer.core.spatial import SpatialIndex
from wanderer.entities.ai_system import AISystem
from wanderer.entities.combat_system import CombatSystem
from wanderer.entities.entities import FLOOR_ITEMS, EntityFactory, ItemEntity, Player
from wanderer.entities.inventory_system import InventorySystem
from wanderer.world.map import TILE_FLOOR, TileMap

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class EntityView:
    x: int
    y: int
    char: str
    color: Color
    name: str


@dataclass(frozen=True, slots=True)
class StatBlock:
    hp: int
    max_hp: int
    attack: int
    defense: float
    level: int
    xp: int
    next_xp: int
    progress: float
    inventory_size: int
    inventory_capacity: int
    weapon: Optional[str]
    armor: Optional[str]
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class WorldSnapshot:
    """Read-only copy of the state a renderer needs."""

    tiles: np.ndarray
    entities: Tuple[EntityView, ...]
    stats: Optional[StatBlock]
    log: Tuple[str, ...]
    game_over: bool


class World:
    """Owns the tile map and the live entity collection."""

    def __init__(
        self,
        tile_map: TileMap,
        rng: np.random.Generator,
        message_log: Optional[MessageLog] = None,
        config: Optional[GameConfig] = None,
    ):
        self.config = config or GameConfig()
        self.tile_map = tile_map
        self.rng = rng
        self.log = message_log if message_log is not None else MessageLog(self.config.log_max_lines)

        self.entity_manager = EntityManager()
        self.spatial_index = SpatialIndex(self.entity_manager)
        self.factory = EntityFactory()

        self.combat = CombatSystem(self)
        self.inventory = InventorySystem(self)
        self.ai_system = AISystem()

        self.player: Optional[Player] = None
        self.game_over = False

    @classmethod
    def generate(
        cls,
        config: GameConfig,
        rng: np.random.Generator,
        message_log: Optional[MessageLog] = None,
    ) -> "World":
        """Create a fresh cave world with the player and its inhabitants."""
        tile_map = TileMap(config.world_width, config.world_height)
        tile_map.generate(
            rng,
            wall_probability=config.wall_probability,
            steps=config.smoothing_steps,
            threshold=config.smoothing_threshold,
            foliage_probability=config.foliage_probability,
        )

        world = cls(tile_map, rng, message_log, config)
        world.spawn_player(tile_map.width // 2, tile_map.height // 2)
        world.populate()
        return world

    @property
    def width(self) -> int:
        return self.tile_map.width

    @property
    def height(self) -> int:
        return self.tile_map.height

    def add_entity(self, entity: Entity, eid: Optional[int] = None) -> int:
        eid = self.entity_manager.add_entity(entity, eid)
        if entity.is_player:
            self.player = entity
        return eid

    def remove_entity(self, entity: Entity):
        if entity.eid is None:
            return
        self.entity_manager.destroy_entity(entity.eid)
        if entity is self.player:
            self.player = None

    def move_entity(self, entity: Entity, x: int, y: int):
        self.entity_manager.move_entity(entity, x, y)

    def get_entities_at(self, x: int, y: int) -> List[Entity]:
        return self.spatial_index.get_entities_at(x, y)

    def get_item_at(self, x: int, y: int) -> Optional[ItemEntity]:
        for entity in self.get_entities_at(x, y):
            if isinstance(entity, ItemEntity):
                return entity
        return None

    def get_enemy_at(self, x: int, y: int) -> Optional[Entity]:
        for entity in self.get_entities_at(x, y):
            if entity.is_enemy:
                return entity
        return None

    def creatures(self) -> List[Entity]:
        return [entity for entity in self.entity_manager if entity.is_enemy]

    def find_spawn_position(self, x: int, y: int, max_radius: Optional[int] = None) -> Tuple[int, int]:
        """Nearest passable tile to (x, y), searching outward in square rings."""
        if max_radius is None:
            max_radius = max(self.width, self.height)

        for r in range(0, max_radius + 1):
            for dy in range(-r, r + 1):
                for dx in range(-r, r + 1):
                    if max(abs(dx), abs(dy)) != r:
                        continue
                    if self.tile_map.is_walkable(x + dx, y + dy):
                        return x + dx, y + dy

        logger.warning("No passable tile near (%d, %d); spawning in place", x, y)
        return x, y

    def spawn_player(self, x: int, y: int) -> Player:
        start_x, start_y = self.find_spawn_position(x, y)
        player = self.factory.create_player(start_x, start_y, self.config)
        self.add_entity(player)
        logger.debug("Player created at (%d, %d)", start_x, start_y)
        return player

    def populate(self):
        """Scatter creatures and floor items over floor tiles."""
        creature_count = 0
        item_count = 0
        occupied = self.player.position if self.player else None

        floor = list(self.tile_map.positions_of(TILE_FLOOR))
        creature_rolls = self.rng.random(len(floor))
        for (x, y), roll in zip(floor, creature_rolls):
            if (x, y) != occupied and roll < self.config.creature_spawn_chance:
                self.add_entity(self.factory.create_creature(x, y, "goblin"))
                creature_count += 1

        item_rolls = self.rng.random(len(floor))
        for (x, y), roll in zip(floor, item_rolls):
            if (x, y) != occupied and roll < self.config.item_spawn_chance:
                item_id = FLOOR_ITEMS[int(self.rng.integers(len(FLOOR_ITEMS)))]
                item = self.factory.create_item(item_id)
                self.add_entity(self.factory.create_item_entity(x, y, item))
                item_count += 1

        logger.debug("Spawned %d creatures and %d items", creature_count, item_count)

    def update(self):
        """Advance every creature once."""
        if self.game_over:
            return
        self.ai_system.update(self)

    def stat_block(self) -> Optional[StatBlock]:
        player = self.player
        if player is None:
            return None

        fighter, leveling = player.fighter, player.leveling
        weapon, armor = player.equipment.weapon, player.equipment.armor
        return StatBlock(
            hp=fighter.hp,
            max_hp=fighter.max_hp,
            attack=fighter.attack,
            defense=fighter.defense,
            level=leveling.level,
            xp=leveling.xp,
            next_xp=leveling.next_threshold,
            progress=leveling.get_progress(),
            inventory_size=len(player.inventory),
            inventory_capacity=player.inventory.capacity,
            weapon=weapon.name if weapon else None,
            armor=armor.name if armor else None,
            x=player.x,
            y=player.y,
        )

    def snapshot(self) -> WorldSnapshot:
        """Copy out everything a renderer needs; nothing returned aliases live state."""
        views = tuple(
            EntityView(e.x, e.y, e.char, e.color, e.name) for e in self.entity_manager
        )
        return WorldSnapshot(
            tiles=self.tile_map.copy_tiles(),
            entities=views,
            stats=self.stat_block(),
            log=tuple(self.log.lines()),
            game_over=self.game_over,
        )
