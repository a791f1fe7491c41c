"""SpawnPolicy — stochastic hazard introduction at the far boundary.

Each substep is one Bernoulli trial, so the expected number of spawns
depends on how many substeps have run and not on how often the host
refreshes.

New hazards appear at ``spawn_distance`` downrange with low confidence,
modelling detections that firm up as the observer closes in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from perception.comms.event_log import LogLevel
from .entity import HAZARD_TYPES, SPAWN_PROFILES, Entity, EntityType

if TYPE_CHECKING:
    from .context import SimulationContext

INITIAL_CONFIDENCE = 0.3
_LATERAL_DRIFT = 0.15  # max |vx|


class SpawnPolicy:
    """Draws at most one new hazard per substep."""

    def __init__(
        self,
        probability: float = 0.008,
        spawn_distance: float = 220.0,
        lateral_spread: float = 12.0,
    ) -> None:
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"spawn probability must be in [0, 1], got {probability}")
        self.probability = probability
        self.spawn_distance = spawn_distance
        self.lateral_spread = lateral_spread
        self.spawned = 0

    def step(self, ctx: SimulationContext) -> Entity | None:
        """Run one trial; return the spawned entity, if any."""
        if ctx.rng.random() >= self.probability:
            return None
        hazard = ctx.rng.choice(HAZARD_TYPES)
        return self.spawn(ctx, hazard)

    def spawn(self, ctx: SimulationContext, hazard: EntityType) -> Entity:
        """Create *hazard* at the boundary, register it and log it."""
        vz, width, height = SPAWN_PROFILES[hazard]
        half = self.lateral_spread / 2.0
        entity = Entity(
            id=ctx.next_id(),
            type=hazard,
            x=ctx.rng.uniform(-half, half),
            z=self.spawn_distance,
            vx=ctx.rng.uniform(-_LATERAL_DRIFT, _LATERAL_DRIFT),
            vz=vz,
            width=width,
            height=height,
            confidence=INITIAL_CONFIDENCE,
            hazard_score=0.0,
        )
        ctx.entities.add(entity)
        ctx.event_log.append(f"HAZARD {hazard.value}", LogLevel.CRIT)
        self.spawned += 1
        return entity
