"""
Pytest configuration and shared fixtures for Wanderer tests.
"""

from collections import deque

import numpy as np
import pytest

from wanderer.config import GameConfig
from wanderer.core.ecs import EntityManager
from wanderer.core.engine import GameEngine
from wanderer.core.message_log import MessageLog
from wanderer.data.loader import DATA_LOADER
from wanderer.data.save import InMemorySaveStorage
from wanderer.world.game_world import World
from wanderer.world.map import create_map_from_string


class ScriptedRandom:
    """Stand-in random source that returns queued draws, then `default`."""

    def __init__(self, values=(), default=0.0):
        self.values = deque(values)
        self.default = default

    def random(self, size=None):
        if size is not None:
            return np.array([self._next() for _ in range(int(np.prod(size)))]).reshape(size)
        return self._next()

    def integers(self, high):
        return 0

    def queue(self, *values):
        self.values.extend(values)

    def _next(self):
        if self.values:
            return self.values.popleft()
        return self.default


def open_rows(width=20, height=20):
    """ASCII rows for an all-floor map."""
    return ["." * width for _ in range(height)]


@pytest.fixture
def config():
    """Small world settings for tests."""
    return GameConfig(world_width=20, world_height=20, seed=1234)


@pytest.fixture
def rng():
    """A seeded numpy Generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def entity_manager():
    """Create a fresh EntityManager for testing."""
    return EntityManager()


@pytest.fixture
def data_loader():
    """Get the shared DATA_LOADER instance."""
    return DATA_LOADER


@pytest.fixture
def make_world(config):
    """Build an unpopulated world from ASCII rows with the player placed at `player`."""

    def _make(rows=None, player=(10, 10), random_source=None):
        tile_map = create_map_from_string(rows or open_rows())
        source = random_source if random_source is not None else np.random.default_rng(1234)
        world = World(tile_map, source, MessageLog(config.log_max_lines), config)
        if player is not None:
            world.spawn_player(*player)
        return world

    return _make


@pytest.fixture
def world(make_world):
    """20x20 open floor world with the player at the centre."""
    return make_world()


@pytest.fixture
def scripted_world(make_world):
    """Like `world`, but every random draw comes from a ScriptedRandom."""
    return make_world(random_source=ScriptedRandom())


@pytest.fixture
def engine(world, config):
    """Engine around the open world, saving to memory."""
    return GameEngine(config, world=world, storage=InMemorySaveStorage())


@pytest.fixture
def goblin_at(world):
    """Place a goblin in `world` at the given cell."""

    def _place(x, y, target_world=None):
        target = target_world or world
        goblin = target.factory.create_creature(x, y, "goblin")
        target.add_entity(goblin)
        return goblin

    return _place
