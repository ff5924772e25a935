from enum import IntEnum
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from wanderer.data.loader import DATA_LOADER


class TileType(IntEnum):
    """Cell kinds stored in the tile grid."""

    VOID = 0
    FLOOR = 1
    WALL = 2
    WATER = 3
    FOLIAGE = 4


# Tile types represented as integers for memory efficiency
TILE_VOID = TileType.VOID
TILE_FLOOR = TileType.FLOOR
TILE_WALL = TileType.WALL
TILE_WATER = TileType.WATER
TILE_FOLIAGE = TileType.FOLIAGE

# Legend used by from_strings()/to_strings()
CHAR_MAP = {
    " ": TILE_VOID,
    ".": TILE_FLOOR,
    "#": TILE_WALL,
    "~": TILE_WATER,
    '"': TILE_FOLIAGE,
}
CHAR_FOR_TILE = {tile: char for char, tile in CHAR_MAP.items()}


class Tile:
    """Static description of a single tile kind."""

    __slots__ = ["tile_type", "name", "walkable", "transparent", "char", "fg_color", "bg_color"]

    def __init__(
        self,
        tile_type: int,
        name: str,
        walkable: bool,
        transparent: bool,
        char: str,
        fg_color: Tuple[int, int, int],
        bg_color: Optional[Tuple[int, int, int]] = None,
    ):
        self.tile_type = tile_type
        self.name = name
        self.walkable = walkable
        self.transparent = transparent
        self.char = char
        self.fg_color = fg_color
        self.bg_color = bg_color


def load_tile_definitions() -> Dict[int, Tile]:
    """Build Tile objects from the packaged tile data."""
    definitions = {}
    tiles_data = DATA_LOADER.load_json("tiles")

    for key, data in tiles_data.items():
        tile_id = int(key)
        definitions[tile_id] = Tile(
            tile_type=tile_id,
            name=data.get("name", "unknown"),
            walkable=data.get("walkable", False),
            transparent=data.get("transparent", False),
            char=data.get("char", "?"),
            fg_color=tuple(data.get("fg", [255, 255, 255])),
            bg_color=tuple(data["bg"]) if data.get("bg") else None,
        )
    return definitions


class TileMap:
    """The static terrain grid of a world.

    Dimensions are fixed at construction. Reads outside the grid return
    ``TILE_VOID`` and writes outside the grid are ignored, so callers never
    need their own bounds checks.
    """

    def __init__(self, width: int, height: int, fill: int = TILE_VOID):
        if width <= 0 or height <= 0:
            raise ValueError("TileMap dimensions must be positive")
        self._width = int(width)
        self._height = int(height)
        # tiles[y, x]
        self.tiles = np.full((self._height, self._width), int(fill), dtype=np.uint8)
        self.tile_definitions = load_tile_definitions()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def get(self, x: int, y: int) -> TileType:
        """Return the tile kind at (x, y), or VOID outside the grid."""
        if self.in_bounds(x, y):
            return TileType(int(self.tiles[y, x]))
        return TILE_VOID

    def set(self, x: int, y: int, tile: int):
        """Set the tile kind at (x, y). Out-of-bounds writes are no-ops."""
        if self.in_bounds(x, y):
            self.tiles[y, x] = int(tile)

    def replace_tiles(self, tiles: np.ndarray):
        """Overwrite the whole grid with an array of the same shape."""
        if tiles.shape != self.tiles.shape:
            raise ValueError(
                f"Tile grid shape {tiles.shape} does not match map {self.tiles.shape}"
            )
        self.tiles = tiles.astype(np.uint8, copy=True)

    def definition(self, x: int, y: int) -> Tile:
        return self.tile_definitions[int(self.get(x, y))]

    def is_walkable(self, x: int, y: int) -> bool:
        """Check if a tile is passable (floor or foliage)."""
        return self.definition(x, y).walkable

    def is_wall(self, x: int, y: int) -> bool:
        return self.get(x, y) == TILE_WALL

    def tile_name(self, x: int, y: int) -> str:
        return self.definition(x, y).name

    def positions_of(self, *tile_types: int) -> Iterable[Tuple[int, int]]:
        """Yield cells holding any of `tile_types`, in row-major order."""
        ys, xs = np.nonzero(np.isin(self.tiles, [int(t) for t in tile_types]))
        for y, x in zip(ys.tolist(), xs.tolist()):
            yield x, y

    def generate(self, rng: np.random.Generator, **params):
        """Fill the grid with a cave produced by the cellular automaton."""
        from wanderer.world.generator import generate_cave_system

        self.replace_tiles(generate_cave_system(self._width, self._height, rng, **params))

    def copy_tiles(self) -> np.ndarray:
        tiles = self.tiles.copy()
        tiles.flags.writeable = False
        return tiles

    def to_strings(self) -> list[str]:
        """Render the grid with the ASCII legend, one string per row."""
        return [
            "".join(CHAR_FOR_TILE[TileType(int(t))] for t in row) for row in self.tiles
        ]

    def load_from_string(self, map_data: list[str]):
        """Load map data from a list of strings."""
        for y, row in enumerate(map_data):
            if y >= self._height:
                break
            for x, char in enumerate(row):
                if x >= self._width:
                    break
                # Default to floor for unknown chars
                self.tiles[y, x] = CHAR_MAP.get(char, TILE_FLOOR)


def create_map_from_string(map_data: list[str]) -> TileMap:
    """Create a TileMap from a string definition."""
    if not map_data:
        raise ValueError("Map definition is empty")

    height = len(map_data)
    width = max(len(row) for row in map_data)

    tile_map = TileMap(width, height)
    tile_map.load_from_string(map_data)
    return tile_map
