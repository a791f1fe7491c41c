"""Entity — a hazard or actor in the synthetic scene.

Entity is a *flat dataclass*: every hazard type shares the same fields
and type-specific behaviour lives in lookup tables (``SPAWN_PROFILES``)
and in the scoring rules, not in a class hierarchy.  A boulder is just
an entity with a negative ``vz``; a cliff edge is a wide one.

Coordinates:
  x — lateral offset from the observer's centreline (render units)
  z — downrange distance, decreasing as the observer approaches

EntityStore is the sole owner of live entities.  Other components receive
them per substep and must not hold references across ticks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

MAX_CONFIDENCE = 0.99
DEFAULT_COLOR = "#f87171"


class EntityType(str, Enum):
    CAR = "CAR"
    PEDESTRIAN = "PEDESTRIAN"
    OBSTACLE = "OBSTACLE"
    BOULDER = "BOULDER"
    WATERFALL = "WATERFALL"
    LOG = "LOG"
    CLIFF_EDGE = "CLIFF_EDGE"


# Hazard types the spawner draws from, with their kinematics and extent.
# Format: (vz, width, height)
SPAWN_PROFILES: dict[EntityType, tuple[float, float, float]] = {
    EntityType.BOULDER:    (-8.0,  2.5,  1.8),   # rockfall, closes on its own
    EntityType.WATERFALL:  (0.0,   2.5, 15.0),
    EntityType.LOG:        (0.0,   2.5,  1.8),
    EntityType.CLIFF_EDGE: (0.0,  30.0,  1.8),
}

HAZARD_TYPES: tuple[EntityType, ...] = tuple(SPAWN_PROFILES)


@dataclass
class Entity:
    """A single synthetic detection."""

    id: int
    type: EntityType
    x: float
    z: float
    vx: float = 0.0
    vz: float = 0.0
    width: float = 2.5
    height: float = 1.8
    confidence: float = 0.3
    hazard_score: float = 0.0
    color: str = DEFAULT_COLOR

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "position": {"x": round(self.x, 3), "z": round(self.z, 3)},
            "velocity": {"vx": self.vx, "vz": self.vz},
            "extent": {"width": self.width, "height": self.height},
            "confidence": round(self.confidence, 4),
            "hazard_score": self.hazard_score,
            "color": self.color,
        }


def depth_sorted(entities: list[Entity]) -> list[Entity]:
    """Return *entities* farthest first (non-increasing z) for compositing."""
    return sorted(entities, key=lambda e: e.z, reverse=True)


class EntityStore:
    """Live entity set keyed by id, in insertion order."""

    def __init__(self) -> None:
        self._entities: dict[int, Entity] = {}

    def add(self, entity: Entity) -> None:
        self._entities[entity.id] = entity

    def get(self, entity_id: int) -> Entity | None:
        return self._entities.get(entity_id)

    def all(self) -> list[Entity]:
        return list(self._entities.values())

    def cull(self, threshold: float) -> list[Entity]:
        """Remove every entity at or below *threshold* downrange; return them."""
        removed = [e for e in self._entities.values() if e.z <= threshold]
        for e in removed:
            del self._entities[e.id]
        return removed

    def clear(self) -> None:
        self._entities.clear()

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))
