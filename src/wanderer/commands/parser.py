"""
Free-text command parser.

Each command handler returns True when it took a game turn. Rejected or
informational commands only write to the message log.
"""

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, NamedTuple, Optional

from wanderer.entities.components import index_for_letter, letter_for_index

if TYPE_CHECKING:
    from wanderer.core.engine import GameEngine

logger = logging.getLogger(__name__)

DIRECTIONS = {
    "n": (0, -1),
    "north": (0, -1),
    "s": (0, 1),
    "south": (0, 1),
    "e": (1, 0),
    "east": (1, 0),
    "w": (-1, 0),
    "west": (-1, 0),
}

HELP_LINES = [
    "Commands:",
    "  north/south/east/west, go <n|s|e|w> - move",
    "  look - describe your surroundings",
    "  inventory (i) - list carried items",
    "  use/drop/equip <a-z> - act on an inventory slot",
    "  stats - show your character",
    "  clear - clear the log",
    "  save/load - save or restore the game",
]

INFO_COLOR = (200, 200, 200)
ERROR_COLOR = (150, 150, 150)


class Command(NamedTuple):
    handler: Callable[[List[str]], bool]
    allowed_when_dead: bool = False


class CommandParser:
    """Maps command lines onto engine and world actions."""

    def __init__(self, engine: "GameEngine"):
        self.engine = engine
        self.commands: Dict[str, Command] = {
            "help": Command(self.cmd_help, True),
            "look": Command(self.cmd_look, True),
            "go": Command(self.cmd_go),
            "north": Command(lambda args: self.engine.move_player(0, -1)),
            "south": Command(lambda args: self.engine.move_player(0, 1)),
            "east": Command(lambda args: self.engine.move_player(1, 0)),
            "west": Command(lambda args: self.engine.move_player(-1, 0)),
            "clear": Command(self.cmd_clear, True),
            "inventory": Command(self.cmd_inventory, True),
            "i": Command(self.cmd_inventory, True),
            "use": Command(self.cmd_use),
            "drop": Command(self.cmd_drop),
            "equip": Command(self.cmd_equip),
            "stats": Command(self.cmd_stats, True),
            "save": Command(self.cmd_save),
            "load": Command(self.cmd_load, True),
        }

    @property
    def world(self):
        return self.engine.world

    def log(self, text: str, color: tuple = INFO_COLOR):
        self.engine.log(text, color)

    def handle(self, line: str) -> bool:
        """Run one command line. Returns True if it took a turn."""
        parts = line.strip().lower().split()
        if not parts:
            return False

        name, args = parts[0], parts[1:]
        command = self.commands.get(name)
        if command is None:
            self.log(f"Unknown command: {name}", ERROR_COLOR)
            return False

        if self.engine.game_over and not command.allowed_when_dead:
            self.log("You are dead.", ERROR_COLOR)
            return False

        logger.debug("Command %s %s", name, args)
        return command.handler(args)

    def parse_index(self, args: List[str]) -> Optional[int]:
        """Turn a slot letter into an inventory index, logging any problem."""
        if len(args) != 1:
            self.log("Use: use/drop/equip <a-z>", ERROR_COLOR)
            return None

        index = index_for_letter(args[0])
        if index is None or index >= len(self.world.player.inventory):
            self.log("Invalid slot.", ERROR_COLOR)
            return None
        return index

    # Informational -------------------------------------------------------

    def cmd_help(self, args: List[str]) -> bool:
        for line in HELP_LINES:
            self.log(line, INFO_COLOR)
        return False

    def cmd_look(self, args: List[str]) -> bool:
        player = self.world.player
        self.log(f"You stand on {self.world.tile_map.tile_name(player.x, player.y)}.")
        item_entity = self.world.get_item_at(player.x, player.y)
        if item_entity is not None:
            self.log(f"There is a {item_entity.item.name} here.")
        return False

    def cmd_clear(self, args: List[str]) -> bool:
        self.engine.message_log.clear()
        return False

    def cmd_inventory(self, args: List[str]) -> bool:
        inventory = self.world.player.inventory
        if not len(inventory):
            self.log("Empty.")
            return False

        for i, item in enumerate(inventory):
            suffix = " (eq)" if item.equipped else ""
            self.log(f"{letter_for_index(i)}) {item.name}{suffix}")
        return False

    def cmd_stats(self, args: List[str]) -> bool:
        stats = self.world.stat_block()
        self.log(
            f"Lv {stats.level} | XP {stats.xp}/{stats.next_xp} | HP {stats.hp}/{stats.max_hp}"
            f" | ATK {stats.attack} | DEF {stats.defense:g}",
            (255, 255, 0),
        )
        return False

    # Actions -------------------------------------------------------------

    def cmd_go(self, args: List[str]) -> bool:
        if len(args) != 1 or args[0] not in DIRECTIONS:
            self.log("Go where? (n, s, e, w)", ERROR_COLOR)
            return False
        dx, dy = DIRECTIONS[args[0]]
        return self.engine.move_player(dx, dy)

    def _inventory_action(self, args: List[str], action) -> bool:
        index = self.parse_index(args)
        if index is None:
            return False
        if not action(self.world.player, index):
            return False
        self.engine.end_player_turn()
        return True

    def cmd_use(self, args: List[str]) -> bool:
        return self._inventory_action(args, self.world.inventory.use)

    def cmd_drop(self, args: List[str]) -> bool:
        return self._inventory_action(args, self.world.inventory.drop)

    def cmd_equip(self, args: List[str]) -> bool:
        return self._inventory_action(args, self.world.inventory.equip)

    def cmd_save(self, args: List[str]) -> bool:
        self.engine.save_game()
        return False

    def cmd_load(self, args: List[str]) -> bool:
        self.engine.load_game()
        return False
