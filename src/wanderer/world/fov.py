"""
Line of sight helpers.
Creatures only engage the player along an unobstructed Bresenham line.
"""

import math
from typing import List, Tuple

from wanderer.world.map import TileMap


def bresenham_line(x0: int, y0: int, x1: int, y1: int) -> List[Tuple[int, int]]:
    """
    Return the cells of the discrete line from (x0, y0) to (x1, y1).

    Both endpoints are included and the first element is always the start.
    """
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy
    x, y = x0, y0

    path = []
    while True:
        path.append((x, y))
        if x == x1 and y == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy
    return path


def has_line_of_sight(tile_map: TileMap, x0: int, y0: int, x1: int, y1: int) -> bool:
    """True when no cell after the start of the line is a wall."""
    for x, y in bresenham_line(x0, y0, x1, y1)[1:]:
        if tile_map.is_wall(x, y):
            return False
    return True


def can_see(
    tile_map: TileMap, x0: int, y0: int, x1: int, y1: int, max_distance: float
) -> bool:
    """Line of sight gated by a Euclidean range."""
    if math.hypot(x1 - x0, y1 - y0) > max_distance:
        return False
    return has_line_of_sight(tile_map, x0, y0, x1, y1)
