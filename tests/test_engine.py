"""
Tests for the turn dispatcher, text commands and input handling.
"""

import numpy as np

from wanderer.config import GameConfig
from wanderer.core.clock import TurnClock, TurnState
from wanderer.core.engine import GameEngine
from wanderer.data.save import InMemorySaveStorage
from wanderer.input.handler import InputEvent, InputHandler
from wanderer.world.map import TILE_FOLIAGE, TILE_WALL, TILE_WATER


def entity_positions(engine):
    return [(e.x, e.y, e.char) for e in engine.snapshot().entities]


class TestMovement:
    """Test how movement resolves."""

    def test_move_onto_floor(self, engine):
        """Test a move onto floor succeeds and takes a turn."""
        assert engine.move_player(0, -1)
        assert engine.player.position == (10, 9)
        assert engine.clock.turn == 1

    def test_wall_rejects(self, engine):
        """Walls reject the move without spending a turn."""
        engine.world.tile_map.set(11, 10, TILE_WALL)

        assert not engine.move_player(1, 0)

        assert engine.player.position == (10, 10)
        assert engine.message_log.last == "A wall blocks your way."
        assert engine.clock.turn == 0

    def test_water_rejects(self, engine):
        """Test water is impassable."""
        engine.world.tile_map.set(9, 10, TILE_WATER)
        assert not engine.move_player(-1, 0)
        assert engine.message_log.last == "You can't swim yet."

    def test_map_edge_rejects(self, make_world, config):
        """Test moving off the map is rejected."""
        world = make_world(["..", ".."], player=(0, 0))
        engine = GameEngine(config, world=world, storage=InMemorySaveStorage())

        assert not engine.move_player(-1, 0)
        assert engine.player.position == (0, 0)

    def test_foliage_logs_entry(self, engine):
        """Foliage is walkable and logs a message."""
        engine.world.tile_map.set(10, 11, TILE_FOLIAGE)

        assert engine.move_player(0, 1)

        assert engine.player.position == (10, 11)
        assert engine.message_log.last == "You push through foliage."

    def test_diagonal_rejected(self, engine):
        """Only cardinal moves are accepted."""
        assert not engine.move_player(1, 1)
        assert engine.player.position == (10, 10)

    def test_bump_attacks_enemy(self, engine, goblin_at):
        """Test moving into a creature attacks it."""
        goblin = goblin_at(10, 9)

        assert engine.move_player(0, -1)

        assert engine.player.position == (10, 10)
        assert goblin.fighter.hp < 6

    def test_creatures_advance_after_success(self, engine, goblin_at):
        """Test creatures act after a successful player move."""
        goblin = goblin_at(15, 10)
        engine.move_player(0, -1)
        assert goblin.position != (15, 10)

    def test_creatures_wait_after_rejection(self, engine, goblin_at):
        """A rejected move does not advance the world."""
        goblin = goblin_at(15, 10)
        engine.world.tile_map.set(10, 9, TILE_WALL)

        engine.move_player(0, -1)

        assert goblin.position == (15, 10)


class TestCommands:
    """Test the free-text command set."""

    def test_unknown_command(self, engine):
        """Test unknown commands are reported and change nothing."""
        before = entity_positions(engine)

        assert not engine.command("dance wildly")

        assert engine.message_log.last == "Unknown command: dance"
        assert entity_positions(engine) == before
        assert engine.clock.turn == 0

    def test_blank_command_is_ignored(self, engine):
        """Blank input logs nothing."""
        count = len(engine.message_log)
        assert not engine.command("   ")
        assert len(engine.message_log) == count

    def test_directions(self, engine):
        """Test direction words, case-insensitive, with and without "go"."""
        engine.command("north")
        engine.command("EAST")
        engine.command("go s")
        engine.command("go w")
        assert engine.player.position == (10, 10)
        assert engine.clock.turn == 4

    def test_go_without_direction(self, engine):
        """Test bare "go" asks for a direction."""
        assert not engine.command("go")
        assert engine.message_log.last == "Go where? (n, s, e, w)"

    def test_look(self, engine):
        """Test "look" describes the tile underfoot."""
        engine.command("look")
        assert engine.message_log.last == "You stand on floor."

    def test_stats(self, engine):
        """Test the stats line."""
        engine.command("stats")
        assert engine.message_log.last == "Lv 1 | XP 0/16 | HP 20/20 | ATK 6 | DEF 2"

    def test_clear(self, engine):
        """Test "clear" empties the message log."""
        engine.command("help")
        engine.command("clear")
        assert len(engine.message_log) == 0

    def test_inventory_listing(self, engine):
        """Test the inventory listing marks equipped items."""
        engine.command("i")
        assert engine.message_log.last == "Empty."

        player = engine.player
        player.inventory.add(engine.world.factory.create_item("health_potion"))
        player.inventory.add(engine.world.factory.create_item("iron_sword"))
        engine.command("equip b")
        engine.command("inventory")

        assert engine.message_log.lines()[-2:] == ["a) Health Potion", "b) Iron Sword (eq)"]

    def test_slot_commands_need_a_letter(self, engine):
        """Test slot commands print usage without an argument."""
        assert not engine.command("use")
        assert engine.message_log.last == "Use: use/drop/equip <a-z>"

    def test_slot_out_of_range(self, engine):
        """Empty or non-letter slots are invalid."""
        assert not engine.command("drop c")
        assert engine.message_log.last == "Invalid slot."
        assert not engine.command("drop 7")
        assert engine.message_log.last == "Invalid slot."

    def test_use_takes_a_turn(self, engine, goblin_at):
        """Test using an item lets creatures act."""
        goblin = goblin_at(15, 10)
        engine.player.inventory.add(engine.world.factory.create_item("apple"))

        assert engine.command("use a")

        assert len(engine.player.inventory) == 0
        assert engine.clock.turn == 1
        assert goblin.position == (14, 10)

    def test_drop_places_item_under_player(self, engine):
        """Test a dropped item lands on the player's cell."""
        engine.player.inventory.add(engine.world.factory.create_item("apple"))
        assert engine.command("drop a")
        assert engine.world.get_item_at(10, 10).item.name == "Apple"

        engine.command("look")
        assert engine.message_log.last == "There is a Apple here."


class TestGameOver:
    """Test that death is terminal for gameplay."""

    def kill_player(self, engine):
        engine.player.fighter.hp = 0
        engine.world.game_over = True
        engine.clock.end_game()

    def test_moves_rejected(self, engine):
        """Test a dead player cannot move."""
        self.kill_player(engine)

        assert not engine.move_player(0, -1)
        assert engine.player.position == (10, 10)
        assert not engine.command("north")
        assert engine.message_log.last == "You are dead."

    def test_inventory_actions_rejected(self, engine):
        """Inventory commands are refused after death."""
        engine.player.inventory.add(engine.world.factory.create_item("apple"))
        self.kill_player(engine)

        assert not engine.command("use a")
        assert len(engine.player.inventory) == 1

    def test_meta_commands_still_work(self, engine):
        """Test stats still report after death."""
        self.kill_player(engine)
        engine.command("stats")
        assert engine.message_log.last.startswith("Lv 1")

    def test_queued_moves_are_dropped(self, engine):
        """Test moves submitted after death are discarded."""
        self.kill_player(engine)
        engine.submit(InputEvent.move(0, -1))
        assert engine.clock.pending == 0

    def test_death_during_turn_ends_game(self, engine, goblin_at):
        """Test dying on a creature's turn moves the clock to GAME_OVER."""
        goblin_at(11, 10)
        engine.player.fighter.hp = 1

        engine.move_player(0, -1)

        assert engine.game_over
        assert engine.clock.state == TurnState.GAME_OVER


class TestQueue:
    """Test queued input drained one event per turn."""

    def test_one_event_per_turn(self, engine):
        """Test each turn consumes exactly one queued event."""
        for _ in range(3):
            engine.submit(InputEvent.move(1, 0))
        assert engine.clock.pending == 3

        assert engine.process_turn()
        assert engine.player.position == (11, 10)
        assert engine.clock.pending == 2

        assert engine.process_all() == 2
        assert engine.player.position == (13, 10)

    def test_empty_queue(self, engine):
        """Nothing to process on an empty queue."""
        assert not engine.process_turn()

    def test_commands_queue_too(self, engine):
        """Test only turn-taking commands count as processed turns."""
        engine.submit(InputEvent.command("look"))
        engine.submit(InputEvent.command("north"))
        assert engine.process_all() == 1
        assert engine.player.position == (10, 9)


class TestTurnClock:
    """Test turn phase transitions."""

    def test_end_turn(self):
        """Test a full turn returns control to the player."""
        clock = TurnClock()
        clock.start_enemy_turn()
        clock.end_turn()
        assert clock.turn == 1
        assert clock.state == TurnState.PLAYER_TURN

    def test_game_over_sticks(self):
        """GAME_OVER survives end_turn and clears on reset."""
        clock = TurnClock()
        clock.end_game()
        clock.end_turn()
        assert clock.state == TurnState.GAME_OVER
        clock.reset()
        assert clock.state == TurnState.PLAYER_TURN


class TestInputHandler:
    """Test key mapping."""

    def test_vi_keys(self):
        """Test the default vi-style movement keys."""
        handler = InputHandler()
        assert handler.map_key_to_event("h") == InputEvent.move(-1, 0)
        assert handler.map_key_to_event("j") == InputEvent.move(0, 1)
        assert handler.map_key_to_event("q") is None

    def test_configured_controls(self):
        """Configured controls replace the defaults."""
        handler = InputHandler(
            {"movement": {"w": [0, -1]}, "actions": {"i": "inventory"}}
        )
        assert handler.map_key_to_event("w") == InputEvent.move(0, -1)
        assert handler.map_key_to_event("h") is None
        assert handler.map_key_to_event("i") == InputEvent.command("inventory")

    def test_parse_line(self):
        """Test typed lines become trimmed commands."""
        handler = InputHandler()
        assert handler.parse_line("  use a ") == InputEvent.command("use a")
        assert handler.parse_line("   ") is None


class TestSeededEngine:
    """Test that a fixed seed gives a reproducible game."""

    def test_same_seed_same_game(self):
        """Test two engines with one seed stay in lockstep."""
        config = GameConfig(world_width=30, world_height=30)
        moves = [(1, 0), (0, 1), (-1, 0), (0, -1), (1, 0)]

        engines = [GameEngine(config, seed=99, storage=InMemorySaveStorage()) for _ in range(2)]
        for engine in engines:
            for dx, dy in moves:
                engine.move_player(dx, dy)

        a, b = (engine.snapshot() for engine in engines)
        assert np.array_equal(a.tiles, b.tiles)
        assert a.entities == b.entities
        assert a.stats == b.stats
        assert a.log == b.log

    def test_new_game_replaces_world(self, engine):
        """Test new_game builds a fresh world and resets the clock."""
        old_world = engine.world
        engine.new_game(seed=5)

        assert engine.world is not old_world
        assert engine.clock.turn == 0
        assert engine.message_log.last == "A new journey begins."
