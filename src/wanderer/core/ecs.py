"""
Entity base class and the registry that owns live entities.

Entities carry their components as typed attributes (``fighter``, ``ai``)
rather than a dictionary keyed by component name, so a missing component is
simply ``None``.
"""

from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Tuple

if TYPE_CHECKING:
    from wanderer.entities.ai_system import SimpleAI
    from wanderer.entities.components import Fighter

Color = Tuple[int, int, int]

# (change_type, entity, old_position) -> None
EntityCallback = Callable[[str, "Entity", Optional[Tuple[int, int]]], None]


class Entity:
    """An actor or object placed in the world."""

    __slots__ = [
        "eid",
        "x",
        "y",
        "char",
        "color",
        "name",
        "is_player",
        "is_enemy",
        "fighter",
        "ai",
    ]

    def __init__(
        self,
        x: int,
        y: int,
        char: str = "?",
        color: Color = (255, 255, 255),
        name: str = "thing",
    ):
        self.eid: Optional[int] = None
        self.x = x
        self.y = y
        self.char = char
        self.color = color
        self.name = name
        self.is_player = False
        self.is_enemy = False
        self.fighter: Optional["Fighter"] = None
        self.ai: Optional["SimpleAI"] = None

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def __repr__(self):
        return f"<{type(self).__name__} {self.name!r} eid={self.eid} at ({self.x}, {self.y})>"


class EntityManager:
    """Registry of live entities, keyed by a stable integer id.

    Iteration follows insertion order, which keeps creature turns
    deterministic for a given seed.
    """

    __slots__ = ["entities", "next_id", "callbacks"]

    def __init__(self):
        self.entities: Dict[int, Entity] = {}
        self.next_id = 0
        # Callback list for system notifications (e.g., spatial index)
        self.callbacks: List[EntityCallback] = []

    def add_entity(self, entity: Entity, eid: Optional[int] = None) -> int:
        """Register an entity and return its id.

        An explicit ``eid`` is used when restoring a snapshot.
        """
        if entity.eid is not None and entity.eid in self.entities:
            raise ValueError(f"Entity {entity.eid} is already registered")

        if eid is None:
            eid = self.next_id
        elif eid in self.entities:
            raise ValueError(f"Entity id {eid} already in use")

        self.next_id = max(self.next_id, eid + 1)
        entity.eid = eid
        self.entities[eid] = entity

        for callback in self.callbacks:
            callback("add", entity, None)
        return eid

    def destroy_entity(self, eid: int):
        """Remove an entity from the registry."""
        entity = self.entities.pop(eid, None)
        if entity is None:
            return

        for callback in self.callbacks:
            callback("remove", entity, entity.position)
        entity.eid = None

    def move_entity(self, entity: Entity, x: int, y: int):
        """Change an entity's position and notify listeners."""
        old_pos = entity.position
        if old_pos == (x, y):
            return
        entity.x = x
        entity.y = y
        if entity.eid in self.entities:
            for callback in self.callbacks:
                callback("update", entity, old_pos)

    def get(self, eid: int) -> Optional[Entity]:
        return self.entities.get(eid)

    def __contains__(self, entity: Entity) -> bool:
        return entity.eid is not None and self.entities.get(entity.eid) is entity

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self.entities.values()))

    def __len__(self) -> int:
        return len(self.entities)
