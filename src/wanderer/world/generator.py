"""
Procedural cave generation using a cellular automaton.
"""

import logging

import numpy as np

from wanderer.world.map import TILE_FLOOR, TILE_FOLIAGE, TILE_WALL

logger = logging.getLogger(__name__)


def count_wall_neighbours(walls: np.ndarray) -> np.ndarray:
    """
    Count, for every cell, how many of its 8 neighbours are walls.
    Off-grid neighbours are padded with 0 so they never count as walls.
    """
    padded = np.pad(walls, 1, mode="constant", constant_values=0)

    return (
        padded[0:-2, 0:-2]
        + padded[0:-2, 1:-1]
        + padded[0:-2, 2:]  # Top row
        + padded[1:-1, 0:-2]
        + padded[1:-1, 2:]  # Middle row
        + padded[2:, 0:-2]
        + padded[2:, 1:-1]
        + padded[2:, 2:]  # Bottom row
    )


def _cellular_automata_step(walls: np.ndarray, threshold: int) -> np.ndarray:
    """A cell becomes wall when at least `threshold` neighbours are walls, else floor."""
    neighbours = count_wall_neighbours(walls)
    return (neighbours >= threshold).astype(np.uint8)


def apply_cellular_automata(
    walls: np.ndarray, threshold: int = 5, steps: int = 5
) -> np.ndarray:
    """
    Apply the smoothing rule `steps` times to a 0/1 wall mask.
    Every pass reads only the previous generation.
    """
    current = walls.astype(np.uint8, copy=True)
    for _ in range(steps):
        current = _cellular_automata_step(current, threshold)
    return current


def seed_walls(
    width: int, height: int, rng: np.random.Generator, wall_probability: float = 0.44
) -> np.ndarray:
    """Random 0/1 mask where each cell is a wall with `wall_probability`."""
    return (rng.random((height, width)) < wall_probability).astype(np.uint8)


def scatter_foliage(
    terrain: np.ndarray, rng: np.random.Generator, probability: float = 0.04
) -> np.ndarray:
    """Turn a random share of floor cells into foliage."""
    rolls = rng.random(terrain.shape)
    result = terrain.copy()
    result[(terrain == TILE_FLOOR) & (rolls < probability)] = TILE_FOLIAGE
    return result


def generate_cave_system(
    width: int,
    height: int,
    rng: np.random.Generator,
    wall_probability: float = 0.44,
    steps: int = 5,
    threshold: int = 5,
    foliage_probability: float = 0.04,
) -> np.ndarray:
    """
    Generate a cave-like terrain grid.

    The same generator state always yields the same grid. No connectivity
    pass is applied, so isolated pockets may exist.
    """
    walls = seed_walls(width, height, rng, wall_probability)
    smoothed = apply_cellular_automata(walls, threshold=threshold, steps=steps)

    terrain = np.where(smoothed == 1, TILE_WALL, TILE_FLOOR).astype(np.uint8)
    terrain = scatter_foliage(terrain, rng, foliage_probability)

    logger.debug(
        "Generated %dx%d cave: %d walls, %d foliage",
        width,
        height,
        int(np.count_nonzero(terrain == TILE_WALL)),
        int(np.count_nonzero(terrain == TILE_FOLIAGE)),
    )
    return terrain
