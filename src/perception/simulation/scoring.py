"""HazardScorer — rule-table danger scoring.

Rules are evaluated in order for every live entity on every substep.  A
rule that fires overwrites ``hazard_score``; when no rule fires the prior
score stands (scores are not reset between passes).

  BOULDER     vz < -5      -> 0.95   fast-approaching rockfall
  WATERFALL   |x| < 3      -> 0.90   centreline obstruction
  CLIFF_EDGE  z < 30       -> 1.00   imminent drop

Entities above ``log_threshold`` raise a CRIT event-log entry.  With
the ``crossing`` policy an entity logs once when it rises above the
threshold and re-arms only after dropping back to or below it; the
``every_tick`` policy logs on every pass it spends above threshold.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, Callable

from perception.comms.event_log import LogLevel
from .entity import Entity, EntityType

if TYPE_CHECKING:
    from .context import SimulationContext


class HazardLogPolicy(str, Enum):
    CROSSING = "crossing"
    EVERY_TICK = "every_tick"


# (type, condition, score)
HazardRule = tuple[EntityType, Callable[[Entity], bool], float]

HAZARD_RULES: list[HazardRule] = [
    (EntityType.BOULDER, lambda e: e.vz < -5, 0.95),
    (EntityType.WATERFALL, lambda e: abs(e.x) < 3, 0.9),
    (EntityType.CLIFF_EDGE, lambda e: e.z < 30, 1.0),
]


def score_entity(entity: Entity, rules: list[HazardRule] = HAZARD_RULES) -> float:
    """Apply *rules* to *entity* in place and return its score."""
    for hazard_type, condition, score in rules:
        if entity.type is hazard_type and condition(entity):
            entity.hazard_score = score
    return entity.hazard_score


class HazardScorer:
    """Scores every entity and reports the ones above threshold."""

    def __init__(
        self,
        log_threshold: float = 0.8,
        policy: HazardLogPolicy | str = HazardLogPolicy.CROSSING,
        rules: list[HazardRule] | None = None,
    ) -> None:
        self.log_threshold = log_threshold
        self.policy = HazardLogPolicy(policy)
        self.rules = rules if rules is not None else HAZARD_RULES
        self._alerted: set[int] = set()

    def step(self, ctx: SimulationContext) -> list[Entity]:
        """Score all entities; return those above the log threshold."""
        hot: list[Entity] = []
        live: set[int] = set()
        for e in ctx.entities:
            live.add(e.id)
            score = score_entity(e, self.rules)
            if score <= self.log_threshold:
                self._alerted.discard(e.id)
                continue
            hot.append(e)
            if self.policy is HazardLogPolicy.CROSSING and e.id in self._alerted:
                continue
            self._alerted.add(e.id)
            ctx.event_log.append(f"HAZARD {e.type.value} @ {math.floor(e.z + 0.5)}m", LogLevel.CRIT)
        # Forget culled entities
        self._alerted &= live
        return hot
