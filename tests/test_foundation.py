"""
Basic tests to verify the entity registry, spatial index, data loading and config.
"""

from pathlib import Path

import pytest

from wanderer.config import GameConfig
from wanderer.input.handler import InputEvent, InputHandler
from wanderer.core.ecs import Entity
from wanderer.core.message_log import MessageLog
from wanderer.core.spatial import SpatialIndex
from wanderer.exceptions import DefinitionError, SaveError, SnapshotVersionError, WandererError


class TestEntityManager:
    """Test the entity registry."""

    def test_add_entity_assigns_sequential_ids(self, entity_manager):
        """Ids are unique and start at 0."""
        eid1 = entity_manager.add_entity(Entity(0, 0))
        eid2 = entity_manager.add_entity(Entity(1, 1))

        assert eid1 == 0
        assert eid2 == 1
        assert len(entity_manager) == 2

    def test_explicit_id_advances_counter(self, entity_manager):
        """Restoring with an explicit id never lets later ids collide."""
        entity_manager.add_entity(Entity(0, 0), eid=7)
        assert entity_manager.add_entity(Entity(0, 0)) == 8

    def test_duplicate_id_rejected(self, entity_manager):
        """Test reusing a live id raises."""
        entity_manager.add_entity(Entity(0, 0), eid=3)
        with pytest.raises(ValueError):
            entity_manager.add_entity(Entity(1, 1), eid=3)

    def test_destroy_entity(self, entity_manager):
        """Destroyed entities leave the registry and lose their id."""
        entity = Entity(2, 2)
        eid = entity_manager.add_entity(entity)
        entity_manager.destroy_entity(eid)

        assert entity not in entity_manager
        assert entity.eid is None
        assert entity_manager.get(eid) is None

    def test_callbacks_see_old_position(self, entity_manager):
        """Test change callbacks receive the previous position."""
        events = []
        entity_manager.callbacks.append(lambda kind, e, old: events.append((kind, old)))

        entity = Entity(1, 1)
        entity_manager.add_entity(entity)
        entity_manager.move_entity(entity, 2, 1)
        entity_manager.destroy_entity(entity.eid)

        assert events == [("add", None), ("update", (1, 1)), ("remove", (2, 1))]

    def test_iteration_is_insertion_ordered(self, entity_manager):
        """Iteration follows insertion order."""
        entities = [Entity(i, 0) for i in range(5)]
        for entity in entities:
            entity_manager.add_entity(entity)
        assert list(entity_manager) == entities


class TestSpatialIndex:
    """Test position lookups stay in sync with the registry."""

    def test_tracks_moves_and_removals(self, entity_manager):
        """Test the index follows moves and removals."""
        index = SpatialIndex(entity_manager)
        entity = Entity(3, 4)
        entity_manager.add_entity(entity)
        assert index.get_entities_at(3, 4) == [entity]

        entity_manager.move_entity(entity, 5, 5)
        assert index.get_entities_at(3, 4) == []
        assert index.get_entities_at(5, 5) == [entity]

        entity_manager.destroy_entity(entity.eid)
        assert index.get_entities_at(5, 5) == []

    def test_rebuild_picks_up_existing_entities(self, entity_manager):
        """An index built late still sees earlier entities."""
        entity = Entity(1, 2)
        entity_manager.add_entity(entity)
        index = SpatialIndex(entity_manager)
        assert index.get_entities_at(1, 2) == [entity]


class TestDataLoading:
    """Test the JSON definitions."""

    def test_goblin_definition(self, data_loader):
        """Test the goblin stats."""
        goblin = data_loader.get_monster_data("goblin")
        assert goblin["health"] == 6
        assert goblin["attack"] == 4
        assert goblin["defense"] == 1
        assert goblin["char"] == "g"

    def test_item_definitions(self, data_loader):
        """Test item heal amounts and bonuses."""
        assert data_loader.get_item_data("health_potion")["heal_amount"] == 8
        assert data_loader.get_item_data("apple")["heal_amount"] == 2
        assert data_loader.get_item_data("iron_sword")["attack_bonus"] == 3
        assert data_loader.get_item_data("leather_armor")["defense_bonus"] == 2

    def test_tile_definitions(self, data_loader):
        """Test tile walkability flags."""
        assert data_loader.get_tile_data(1)["walkable"] is True
        assert data_loader.get_tile_data(2)["walkable"] is False
        assert data_loader.get_tile_data(4)["walkable"] is True

    def test_unknown_ids(self, data_loader):
        """Unknown ids return None."""
        assert data_loader.get_item_data("excalibur") is None
        assert data_loader.get_monster_data("dragon") is None

    def test_cache_is_reused_until_cleared(self, data_loader):
        """Test JSON files are cached until clear_cache()."""
        first = data_loader.load_json("items")
        assert data_loader.load_json("items") is first

        data_loader.clear_cache()
        assert data_loader.load_json("items") is not first

    def test_factory_rejects_unknown_item(self, world):
        """Test creating an undefined item raises DefinitionError."""
        with pytest.raises(DefinitionError):
            world.factory.create_item("excalibur")


class TestConfig:
    """Test configuration defaults and TOML loading."""

    def test_defaults(self):
        """Test the built-in defaults."""
        config = GameConfig()
        assert (config.world_width, config.world_height) == (128, 128)
        assert config.wall_probability == 0.44
        assert config.player_attack == 6
        assert config.player_max_hp == 20
        assert config.log_max_lines == 30

    def test_load_from_toml(self, tmp_path):
        """Test values are read from each TOML section."""
        path = tmp_path / "config.toml"
        path.write_text(
            '[game]\nworld_width = 40\nseed = 9\n\n'
            '[paths]\nsave = "elsewhere.json"\n\n'
            '[controls.movement]\nw = [0, -1]\n'
        )
        config = GameConfig.load_from_toml(str(path))

        assert config.world_width == 40
        assert config.seed == 9
        assert config.save_path == "elsewhere.json"
        assert config.controls["movement"]["w"] == [0, -1]

    def test_shipped_config(self):
        """The bundled config.toml loads and maps keys."""
        path = Path(__file__).resolve().parent.parent / "config.toml"
        config = GameConfig.load_from_toml(str(path))

        assert config.save_path == "saves/wanderer.json"
        handler = InputHandler(config.controls)
        assert handler.map_key_to_event("k") == InputEvent.move(0, -1)
        assert handler.map_key_to_event("?") == InputEvent.command("help")

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test a missing file falls back to defaults."""
        config = GameConfig.load_from_toml(str(tmp_path / "nope.toml"))
        assert config.world_width == 128

    def test_malformed_file_uses_defaults(self, tmp_path):
        """Broken TOML falls back to defaults."""
        path = tmp_path / "config.toml"
        path.write_text("[game\nworld_width = ")
        assert GameConfig.load_from_toml(str(path)).world_width == 128


class TestMessageLog:
    """Test the bounded message log."""

    def test_bounded(self):
        """Test old lines fall off the front."""
        log = MessageLog(maxlen=3)
        for i in range(5):
            log.add(f"line {i}")
        assert log.lines() == ["line 2", "line 3", "line 4"]
        assert log.last == "line 4"

    def test_clear(self):
        """Test clearing the log."""
        log = MessageLog()
        log.add("hello")
        log.clear()
        assert len(log) == 0
        assert log.last == ""


class TestExceptions:
    """Test the error types."""

    def test_hierarchy(self):
        """Test the exception hierarchy."""
        assert issubclass(SnapshotVersionError, SaveError)
        assert issubclass(SaveError, WandererError)
        assert issubclass(DefinitionError, KeyError)

    def test_version_error_message(self):
        """The version error keeps the offending tag."""
        error = SnapshotVersionError(3)
        assert error.version == 3
        assert "3" in str(error)
