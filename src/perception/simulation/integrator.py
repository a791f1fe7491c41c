"""Integrator — per-substep kinematics, ego-speed ramp and culling."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .entity import MAX_CONFIDENCE, Entity

if TYPE_CHECKING:
    from .context import SimulationContext

KMH_TO_MS = 1.0 / 3.6
CONFIDENCE_GAIN = 0.02  # per substep


class Integrator:
    """Advances every live entity by one substep.

    Closing speed is ``ego_speed/3.6 - vz``: a hazard with its own
    negative ``vz`` (a rolling boulder) closes faster than the observer
    alone would close on it.
    """

    def __init__(
        self,
        max_speed: float = 112.0,
        acceleration: float = 1.2,
        cull_threshold: float = -10.0,
    ) -> None:
        self.max_speed = max_speed
        self.acceleration = acceleration  # km/h gained per simulated second
        self.cull_threshold = cull_threshold

    def step(self, ctx: SimulationContext, dt: float) -> list[Entity]:
        """Integrate *dt* seconds; return the entities culled this substep."""
        ctx.ego_speed = min(self.max_speed, ctx.ego_speed + self.acceleration * dt)
        ego_ms = ctx.ego_speed * KMH_TO_MS

        for e in ctx.entities:
            e.z -= (ego_ms - e.vz) * dt
            e.x += e.vx * dt
            e.confidence = min(MAX_CONFIDENCE, e.confidence + CONFIDENCE_GAIN)

        return ctx.entities.cull(self.cull_threshold)
