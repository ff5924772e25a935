"""
Data loading system for the game.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


class DataLoader:
    """Handles loading game definitions from JSON files."""

    def __init__(self, data_dir: Union[str, Path] = STATIC_DIR):
        self.data_dir = Path(data_dir)
        self._cache: Dict[str, Any] = {}

    def load_json(self, filename: str) -> Dict[str, Any]:
        """Load data from a JSON file."""
        if f"json_{filename}" in self._cache:
            return self._cache[f"json_{filename}"]

        filepath = self.data_dir / f"{filename}.json"
        if not filepath.exists():
            raise FileNotFoundError(f"Data file not found: {filepath}")

        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        logger.debug("Loaded %d definitions from %s", len(data), filepath)
        self._cache[f"json_{filename}"] = data
        return data

    def get_item_data(self, item_id: str) -> Optional[Dict[str, Any]]:
        """Get data for a specific item."""
        try:
            items_data = self.load_json("items")
            return items_data.get(item_id)
        except FileNotFoundError:
            return None

    def get_monster_data(self, monster_id: str) -> Optional[Dict[str, Any]]:
        """Get data for a specific monster."""
        try:
            monsters_data = self.load_json("monsters")
            return monsters_data.get(monster_id)
        except FileNotFoundError:
            return None

    def get_tile_data(self, tile_id: int) -> Optional[Dict[str, Any]]:
        """Get data for a specific tile type."""
        try:
            tiles_data = self.load_json("tiles")
            return tiles_data.get(str(int(tile_id)))
        except FileNotFoundError:
            return None

    def clear_cache(self):
        """Clear the data cache."""
        self._cache.clear()


# Global data loader instance
DATA_LOADER = DataLoader()
