"""
Main game engine for the dungeon simulation.

The engine owns the session: the World, the random generator, the turn clock
and the message log. It never renders and never reads the keyboard; callers
submit InputEvents and read back WorldSnapshots.
"""

import logging
from typing import Optional

import numpy as np

from wanderer.commands.parser import CommandParser
from wanderer.config import GameConfig
from wanderer.core.clock import TurnClock, TurnState
from wanderer.core.message_log import MessageLog
from wanderer.data.save import FileSaveStorage, SaveStorage, SaveSystem
from wanderer.exceptions import SaveError
from wanderer.input.handler import InputEvent
from wanderer.world.game_world import World, WorldSnapshot
from wanderer.world.map import TileType

logger = logging.getLogger(__name__)

CARDINAL_DIRECTIONS = {(0, -1), (0, 1), (-1, 0), (1, 0)}

BLOCKED_MESSAGES = {
    TileType.WATER: "You can't swim yet.",
    TileType.WALL: "A wall blocks your way.",
}


class GameEngine:
    """Turn dispatcher: applies one player action, then advances every creature."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        world: Optional[World] = None,
        storage: Optional[SaveStorage] = None,
    ):
        self.config = config or GameConfig()
        if seed is None:
            seed = self.config.seed

        self.clock = TurnClock()
        self.parser = CommandParser(self)
        self.save_system = SaveSystem(self.config)
        self.storage = storage if storage is not None else FileSaveStorage(self.config.save_path)

        if world is not None:
            self.world = world
            self.rng = world.rng
            self.message_log = world.log
        else:
            self.rng = np.random.default_rng(seed)
            self.message_log = MessageLog(self.config.log_max_lines)
            self.world = World.generate(self.config, self.rng, self.message_log)
            self.log("Welcome, wanderer. Type 'help' for commands.", (255, 255, 0))

        if self.world.game_over:
            self.clock.end_game()

    @property
    def player(self):
        return self.world.player

    @property
    def game_over(self) -> bool:
        return self.world.game_over

    def log(self, text: str, color: tuple = (255, 255, 255)):
        """Add a message to the game event log."""
        self.message_log.add(text, color)

    # Input queue ---------------------------------------------------------

    def submit(self, event: InputEvent):
        """Queue an event; it is applied on the next call to process_turn."""
        if self.clock.state == TurnState.GAME_OVER and event.action_type == "move":
            logger.debug("Dropping %s after game over", event)
            return
        self.clock.schedule_action(event)

    def process_turn(self) -> bool:
        """Apply the next queued event, if any. Returns True if a turn was taken."""
        event = self.clock.next_action()
        if event is None:
            return False
        return self.execute(event)

    def process_all(self) -> int:
        """Drain the queue one turn at a time. Returns the number of turns taken."""
        taken = 0
        while self.clock.pending:
            if self.process_turn():
                taken += 1
        return taken

    # Dispatch ------------------------------------------------------------

    def execute(self, event: InputEvent) -> bool:
        """Apply one event immediately."""
        if event.action_type == "move":
            return self.move_player(event.dx, event.dy)
        if event.action_type == "command":
            return self.parser.handle(event.text)
        logger.warning("Ignoring unknown event type %r", event.action_type)
        return False

    def command(self, text: str) -> bool:
        return self.execute(InputEvent.command(text))

    def end_player_turn(self):
        """Advance all creatures once after a successful player action."""
        self.clock.start_enemy_turn()
        self.world.update()
        self.clock.end_turn()
        if self.world.game_over:
            self.clock.end_game()

    def move_player(self, dx: int, dy: int) -> bool:
        """Move the player one cell, picking up, attacking or bumping as needed."""
        player = self.player
        if player is None or self.game_over:
            self.log("You are dead.", (150, 150, 150))
            return False

        if (dx, dy) not in CARDINAL_DIRECTIONS:
            logger.debug("Rejected non-cardinal move (%d, %d)", dx, dy)
            return False

        world = self.world
        new_x = player.x + dx
        new_y = player.y + dy

        item_entity = world.get_item_at(new_x, new_y)
        if item_entity is not None:
            if not world.inventory.pickup(player, item_entity):
                return False
            self.end_player_turn()
            return True

        enemy = world.get_enemy_at(new_x, new_y)
        if enemy is not None:
            world.combat.attack(player, enemy)
            self.end_player_turn()
            return True

        tile_map = world.tile_map
        if tile_map.is_walkable(new_x, new_y):
            world.move_entity(player, new_x, new_y)
            if tile_map.get(new_x, new_y) == TileType.FOLIAGE:
                self.log("You push through foliage.", (0, 200, 0))
            self.end_player_turn()
            return True

        tile = tile_map.get(new_x, new_y)
        self.log(BLOCKED_MESSAGES.get(tile, "You can't go that way."), (150, 150, 150))
        return False

    # Session -------------------------------------------------------------

    def snapshot(self) -> WorldSnapshot:
        return self.world.snapshot()

    def new_game(self, seed: Optional[int] = None):
        """Replace the world with a freshly generated one."""
        self.rng = np.random.default_rng(seed)
        self.message_log.clear()
        self.world = World.generate(self.config, self.rng, self.message_log)
        self.clock.reset()
        self.log("A new journey begins.", (255, 255, 0))

    def save_game(self) -> bool:
        blob = self.save_system.dumps(self.world)
        self.storage.write(blob)
        self.log("Game saved.", (100, 255, 100))
        logger.debug("Saved %d bytes", len(blob))
        return True

    def load_game(self) -> bool:
        """Restore the last save; the current world is untouched on failure."""
        try:
            blob = self.storage.read()
        except FileNotFoundError:
            self.log("No save found.", (255, 100, 100))
            return False

        try:
            world = self.save_system.loads(blob, message_log=self.message_log)
        except SaveError as e:
            logger.warning("Rejected save: %s", e)
            self.log("Save file is corrupt or incompatible.", (255, 100, 100))
            return False

        self.world = world
        self.rng = world.rng
        self.clock.reset()
        if world.game_over:
            self.clock.end_game()
        self.log("Game loaded.", (100, 255, 100))
        return True
