"""
Versioned save snapshots of a World and its player.

A snapshot is a plain dict (JSON compatible) validated by pydantic models on
the way back in. Restoring builds a brand new World; the caller swaps it in
only once the whole snapshot has been accepted.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import numpy as np
from pydantic import BaseModel, StrictInt, ValidationError

from wanderer.config import GameConfig
from wanderer.core.message_log import MessageLog
from wanderer.entities.ai_system import SimpleAI
from wanderer.entities.components import (
    EQUIPMENT_SLOTS,
    Fighter,
    Inventory,
    Item,
    ItemType,
    StatBonus,
)
from wanderer.entities.entities import Creature, ItemEntity
from wanderer.exceptions import DefinitionError, SaveError, SnapshotVersionError
from wanderer.world.game_world import World
from wanderer.world.map import TileMap, TileType

logger = logging.getLogger(__name__)

SAVE_VERSION = 1
SUPPORTED_VERSIONS = (SAVE_VERSION,)


class BonusRecord(BaseModel):
    attack: int = 0
    defense: float = 0


class ItemRecord(BaseModel):
    item_id: str
    name: str
    item_type: ItemType
    bonus: Optional[BonusRecord] = None
    equipped: bool = False


class FighterRecord(BaseModel):
    attack: int
    defense: float
    hp: int
    max_hp: int


class LevelingRecord(BaseModel):
    level: int = 1
    xp: int = 0


class PlayerRecord(BaseModel):
    eid: int
    x: int
    y: int
    fighter: FighterRecord
    leveling: LevelingRecord
    inventory_capacity: int = 26
    inventory: List[ItemRecord] = []
    # slot -> index into inventory
    equipment: Dict[str, Optional[int]] = {}


class EntityRecord(BaseModel):
    eid: int
    kind: Literal["creature", "item"]
    x: int
    y: int
    creature_type: Optional[str] = None
    fighter: Optional[FighterRecord] = None
    ai: Optional[str] = None
    item: Optional[ItemRecord] = None


class WorldRecord(BaseModel):
    width: int
    height: int
    tiles: List[List[int]]
    entities: List[EntityRecord] = []
    next_eid: int = 0
    game_over: bool = False
    rng_state: Optional[Dict[str, Any]] = None


class SaveRecord(BaseModel):
    version: StrictInt
    player: PlayerRecord
    world: WorldRecord


class SaveStorage:
    """Interface for where save blobs live."""

    def write(self, blob: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def read(self) -> Union[str, bytes]:  # pragma: no cover - interface
        raise NotImplementedError


class FileSaveStorage(SaveStorage):
    """Stores one save blob as a JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def write(self, blob: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(blob)
        os.replace(tmp_path, self.path)

    def read(self) -> bytes:
        with open(self.path, "rb") as f:
            return f.read()


class InMemorySaveStorage(SaveStorage):
    """Keeps the last save blob in memory. Raises FileNotFoundError when empty."""

    def __init__(self) -> None:
        self.blob: Optional[str] = None

    def write(self, blob: str) -> None:
        self.blob = blob

    def read(self) -> str:
        if self.blob is None:
            raise FileNotFoundError("No save in memory")
        return self.blob


def _item_record(item: Item) -> ItemRecord:
    bonus = None
    if item.bonus is not None:
        bonus = BonusRecord(attack=item.bonus.attack, defense=item.bonus.defense)
    return ItemRecord(
        item_id=item.item_id,
        name=item.name,
        item_type=item.item_type,
        bonus=bonus,
        equipped=item.equipped,
    )


def _fighter_record(fighter: Fighter) -> FighterRecord:
    return FighterRecord(
        attack=fighter.attack, defense=fighter.defense, hp=fighter.hp, max_hp=fighter.max_hp
    )


class SaveSystem:
    """Converts worlds to snapshots and back."""

    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config or GameConfig()

    # Serialization -------------------------------------------------------

    def serialize(self, world: World) -> Dict[str, Any]:
        """Build a versioned snapshot dict of the world and player."""
        player = world.player
        if player is None:
            raise SaveError("Cannot save a world without a player")

        inventory = player.inventory
        equipment = {}
        for slot in EQUIPMENT_SLOTS:
            item = player.equipment.get(slot)
            equipment[slot] = inventory.index_of(item) if item is not None else None

        player_record = PlayerRecord(
            eid=player.eid,
            x=player.x,
            y=player.y,
            fighter=_fighter_record(player.fighter),
            leveling=LevelingRecord(level=player.leveling.level, xp=player.leveling.xp),
            inventory_capacity=inventory.capacity,
            inventory=[_item_record(item) for item in inventory],
            equipment=equipment,
        )

        entities = []
        for entity in world.entity_manager:
            if entity.is_player:
                continue
            if isinstance(entity, ItemEntity):
                entities.append(
                    EntityRecord(
                        eid=entity.eid, kind="item", x=entity.x, y=entity.y,
                        item=_item_record(entity.item),
                    )
                )
            elif isinstance(entity, Creature):
                entities.append(
                    EntityRecord(
                        eid=entity.eid,
                        kind="creature",
                        x=entity.x,
                        y=entity.y,
                        creature_type=entity.creature_type,
                        fighter=_fighter_record(entity.fighter) if entity.fighter else None,
                        ai=entity.ai.kind if entity.ai else None,
                    )
                )

        world_record = WorldRecord(
            width=world.width,
            height=world.height,
            tiles=world.tile_map.tiles.tolist(),
            entities=entities,
            next_eid=world.entity_manager.next_id,
            game_over=world.game_over,
            rng_state=world.rng.bit_generator.state,
        )

        record = SaveRecord(version=SAVE_VERSION, player=player_record, world=world_record)
        return record.model_dump(mode="json")

    def dumps(self, world: World) -> str:
        return json.dumps(self.serialize(world))

    # Deserialization -----------------------------------------------------

    def deserialize(
        self,
        data: Dict[str, Any],
        rng: Optional[np.random.Generator] = None,
        message_log: Optional[MessageLog] = None,
    ) -> World:
        """Rebuild a World from a snapshot dict, or raise SaveError."""
        if not isinstance(data, dict):
            raise SaveError("Snapshot must be a mapping")

        version = data.get("version")
        # bool and float tags compare equal to 1 but are not valid
        if type(version) is not int or version not in SUPPORTED_VERSIONS:
            raise SnapshotVersionError(version)

        try:
            record = SaveRecord.model_validate(data)
        except ValidationError as e:
            raise SaveError(f"Malformed snapshot: {e}") from e

        try:
            return self._build_world(record, rng, message_log)
        except DefinitionError as e:
            raise SaveError(f"Snapshot references unknown data: {e}") from e
        except ValueError as e:
            raise SaveError(f"Inconsistent snapshot: {e}") from e

    def loads(
        self,
        blob: Union[str, bytes],
        rng: Optional[np.random.Generator] = None,
        message_log: Optional[MessageLog] = None,
    ) -> World:
        """Parse a stored JSON blob; undecodable bytes are a SaveError."""
        try:
            if isinstance(blob, bytes):
                blob = blob.decode("utf-8")
            data = json.loads(blob)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SaveError(f"Unreadable snapshot: {e}") from e
        return self.deserialize(data, rng, message_log)

    def _build_world(
        self,
        record: SaveRecord,
        rng: Optional[np.random.Generator],
        message_log: Optional[MessageLog],
    ) -> World:
        wr = record.world
        tiles = np.array(wr.tiles, dtype=np.int64)
        if tiles.shape != (wr.height, wr.width):
            raise ValueError(f"tile grid is {tiles.shape}, expected {(wr.height, wr.width)}")
        valid = [int(t) for t in TileType]
        if tiles.size and not np.isin(tiles, valid).all():
            raise ValueError("tile grid contains unknown tile ids")

        tile_map = TileMap(wr.width, wr.height)
        tile_map.replace_tiles(tiles.astype(np.uint8))

        rng = self._restore_rng(wr.rng_state, rng)
        world = World(tile_map, rng, message_log, self.config)
        factory = world.factory

        # Player
        pr = record.player
        player = factory.create_player(pr.x, pr.y, self.config)
        player.fighter = self._restore_fighter(pr.fighter, player)
        player.leveling.level = pr.leveling.level
        player.leveling.xp = pr.leveling.xp
        if pr.leveling.level < 1 or pr.leveling.xp < 0:
            raise ValueError("invalid leveling state")

        player.inventory = Inventory(capacity=pr.inventory_capacity)
        if len(pr.inventory) > pr.inventory_capacity:
            raise ValueError("inventory exceeds capacity")
        for item_record in pr.inventory:
            item = self._restore_item(factory, item_record)
            item.equipped = False
            player.inventory.items.append(item)

        # Re-resolve equipment against the restored inventory
        for slot, index in pr.equipment.items():
            if slot not in EQUIPMENT_SLOTS:
                raise ValueError(f"unknown equipment slot {slot!r}")
            if index is None:
                continue
            item = player.inventory.get(index)
            if item is None or item.slot != slot:
                raise ValueError(f"equipment slot {slot!r} points at invalid index {index}")
            player.equipment.set(slot, item)
            item.equipped = True

        world.add_entity(player, pr.eid)

        for er in wr.entities:
            if er.kind == "item":
                if er.item is None:
                    raise ValueError(f"item entity {er.eid} has no item")
                item = self._restore_item(factory, er.item)
                item.equipped = False
                world.add_entity(factory.create_item_entity(er.x, er.y, item), er.eid)
            else:
                creature = factory.create_creature(er.x, er.y, er.creature_type or "goblin")
                if er.fighter is not None:
                    creature.fighter = self._restore_fighter(er.fighter, creature)
                creature.ai = SimpleAI() if er.ai == SimpleAI.kind else None
                world.add_entity(creature, er.eid)

        world.entity_manager.next_id = max(world.entity_manager.next_id, wr.next_eid)
        world.game_over = wr.game_over
        logger.debug("Restored world %dx%d with %d entities", wr.width, wr.height, len(world.entity_manager))
        return world

    @staticmethod
    def _restore_fighter(fr: FighterRecord, owner) -> Fighter:
        if fr.max_hp <= 0 or not 0 <= fr.hp <= fr.max_hp:
            raise ValueError(f"fighter health {fr.hp}/{fr.max_hp} out of range")
        return Fighter(fr.attack, fr.defense, fr.max_hp, hp=fr.hp, owner=owner)

    @staticmethod
    def _restore_item(factory, ir: ItemRecord) -> Item:
        item = factory.create_item(ir.item_id)
        if item.item_type != ir.item_type:
            raise ValueError(f"item {ir.item_id!r} has type {item.item_type.value}, not {ir.item_type.value}")
        item.name = ir.name
        item.bonus = StatBonus(ir.bonus.attack, ir.bonus.defense) if ir.bonus else None
        return item

    @staticmethod
    def _restore_rng(
        state: Optional[Dict[str, Any]], rng: Optional[np.random.Generator]
    ) -> np.random.Generator:
        if state is None:
            return rng if rng is not None else np.random.default_rng()

        restored = np.random.default_rng()
        if state.get("bit_generator") != type(restored.bit_generator).__name__:
            raise ValueError(f"unsupported random generator {state.get('bit_generator')!r}")
        try:
            restored.bit_generator.state = state
        except (TypeError, KeyError) as e:
            raise ValueError(f"bad random generator state: {e}") from e
        return restored
