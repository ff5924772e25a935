"""
Spatial indexing for entities.
Supports incremental updates via EntityManager callbacks.
"""

from collections import defaultdict
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from wanderer.core.ecs import Entity, EntityManager


class SpatialIndex:
    """A grid-based spatial index over the entities of an EntityManager.

    Cells keep entities in insertion order so lookups are deterministic.
    """

    def __init__(self, entity_manager: "EntityManager"):
        self.entity_manager = entity_manager
        # (x, y) -> {eid: entity}
        self.pos_to_entities: Dict[Tuple[int, int], Dict[int, "Entity"]] = defaultdict(dict)

        # Register callback
        self.entity_manager.callbacks.append(self.on_entity_change)
        self.rebuild()

    def on_entity_change(
        self, change_type: str, entity: "Entity", old_pos: Optional[Tuple[int, int]]
    ):
        """Handle entity changes incrementally."""
        if change_type in ("remove", "update") and old_pos is not None:
            cell = self.pos_to_entities.get(old_pos)
            if cell is not None:
                cell.pop(entity.eid, None)
                if not cell:
                    del self.pos_to_entities[old_pos]

        if change_type in ("add", "update"):
            self.pos_to_entities[entity.position][entity.eid] = entity

    def rebuild(self):
        """Rebuild the index from scratch."""
        self.pos_to_entities.clear()
        for entity in self.entity_manager:
            self.pos_to_entities[entity.position][entity.eid] = entity

    def get_entities_at(self, x: int, y: int) -> List["Entity"]:
        """Get all entities at a specific position."""
        cell = self.pos_to_entities.get((x, y))
        if not cell:
            return []
        return list(cell.values())
