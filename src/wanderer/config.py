"""
Configuration settings for the Wanderer simulation.
"""

import logging
import os
from typing import Any, Dict, Optional

import toml
from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class GameConfig(BaseModel):
    """Configuration settings for a game session."""

    # Game Metadata
    game_title: str = "Wanderer"
    version: str = "0.1.0"

    # World settings
    world_width: int = 128
    world_height: int = 128
    seed: Optional[int] = None

    # Cave generation
    wall_probability: float = 0.44
    smoothing_steps: int = 5
    smoothing_threshold: int = 5  # Wall neighbours needed to stay/become wall
    foliage_probability: float = 0.04

    # Population
    creature_spawn_chance: float = 0.03
    item_spawn_chance: float = 0.015

    # Player settings
    player_attack: int = 6
    player_defense: float = 2
    player_max_hp: int = 20
    inventory_capacity: int = 26

    # Creatures and rewards
    aggro_range: float = 10.0
    loot_drop_chance: float = 0.6
    xp_reward_base: int = 10
    xp_reward_spread: int = 5

    # Message log
    log_max_lines: int = 30

    # Paths
    save_path: str = "saves/wanderer.json"
    paths: Dict[str, str] = {}

    # Controls
    controls: Dict[str, Any] = {}

    model_config = ConfigDict(extra="allow")

    @classmethod
    def load_from_toml(cls, path: str = "config.toml") -> "GameConfig":
        """Load configuration from a TOML file."""
        if not os.path.exists(path):
            logger.warning("Config file %s not found. Using defaults.", path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = toml.load(f)

            # Flatten game settings for Pydantic
            game_settings = data.get("game", {})
            config = cls(**game_settings)

            # Attach complex structures
            config.paths = data.get("paths", {})
            config.controls = data.get("controls", {})
            if "save" in config.paths:
                config.save_path = config.paths["save"]

            return config
        except (OSError, toml.TomlDecodeError, ValidationError) as e:
            logger.warning("Error loading config %s: %s. Using defaults.", path, e)
            return cls()
