"""PerceptionEngine — owner of the simulation context and its pipeline.

Architecture
------------
The engine owns one :class:`SimulationContext` (entities, vitals, event
log, ego speed, random source) and wires the per-substep pipeline
around it:

  SimulationClock.tick(now)
    -> K x [SpawnPolicy.step, Integrator.step, HazardScorer.step]
    -> render_scene (depth-sorted) -> apply_spectral_filter (in place)
    -> Vitals.on_frame

Everything above runs synchronously on the event loop thread.  The one
asynchronous operation is ``analyze()``, which hands back an
``asyncio.Task`` from the AdvisoryClient.

State is an explicit IDLE/RUNNING value changed only by ``start()`` and
``stop()``.  Stopping freezes physics, spawning and scoring, but the
clock keeps firing and in-flight advisories still complete, log and
speak.
"""

from __future__ import annotations

import asyncio
import random
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from loguru import logger

from perception.comms.event_log import EventLog, LogLevel
from perception.vision.render import FRAME_HEIGHT, FRAME_WIDTH, new_frame, render_scene
from perception.vision.spectral import apply_spectral_filter
from .clock import DEFAULT_SUBSTEPS, SimulationClock
from .context import SimulationContext
from .entity import Entity, depth_sorted
from .integrator import Integrator
from .scoring import HazardLogPolicy, HazardScorer
from .spawner import SpawnPolicy
from .vitals import Vitals

if TYPE_CHECKING:
    from perception.advisory.client import AdvisoryClient

ONLINE_MESSAGE = "xAI Grok Perception Online"


class EngineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class PerceptionEngine:
    """Runs the hazard-perception loop over an owned simulation context."""

    def __init__(
        self,
        context: SimulationContext | None = None,
        spawner: SpawnPolicy | None = None,
        integrator: Integrator | None = None,
        scorer: HazardScorer | None = None,
        advisory: AdvisoryClient | None = None,
        substeps: int = DEFAULT_SUBSTEPS,
        refresh_hz: float = 60.0,
        frame_size: tuple[int, int] = (FRAME_WIDTH, FRAME_HEIGHT),
        render: bool = True,
    ) -> None:
        self.context = context or SimulationContext()
        self.spawner = spawner or SpawnPolicy()
        self.integrator = integrator or Integrator()
        self.scorer = scorer or HazardScorer()
        self.advisory = advisory
        self.state = EngineState.IDLE
        self.clock = SimulationClock(
            advance=self.substep,
            on_frame=self._on_frame,
            is_active=lambda: self.state is EngineState.RUNNING,
            substeps=substeps,
            refresh_hz=refresh_hz,
        )
        self._render = render
        self._frame = new_frame(*frame_size)
        self._loop_task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, settings, advisory: AdvisoryClient | None = None) -> PerceptionEngine:
        """Build an engine from an ``app.config.Settings``-shaped object."""
        context = SimulationContext(
            event_log=EventLog(settings.event_log_capacity),
            vitals=Vitals(cadence=settings.vitals_cadence),
            rng=random.Random(settings.seed),
        )
        return cls(
            context=context,
            spawner=SpawnPolicy(
                probability=settings.spawn_probability,
                spawn_distance=settings.spawn_distance,
                lateral_spread=settings.lateral_spread,
            ),
            integrator=Integrator(
                max_speed=settings.ego_max_speed,
                acceleration=settings.ego_acceleration,
                cull_threshold=settings.cull_threshold,
            ),
            scorer=HazardScorer(
                log_threshold=settings.hazard_log_threshold,
                policy=HazardLogPolicy(settings.hazard_log_policy),
            ),
            advisory=advisory,
            substeps=settings.substeps,
            refresh_hz=settings.refresh_hz,
            frame_size=(settings.frame_width, settings.frame_height),
        )

    # -- State machine ------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.state is EngineState.RUNNING

    def start(self) -> bool:
        """IDLE -> RUNNING.  Returns False if already running."""
        if self.running:
            return False
        self.context.ego_speed = 0.0
        self.clock.reset()
        self.state = EngineState.RUNNING
        self.context.event_log.append(ONLINE_MESSAGE, LogLevel.SYS)
        logger.info("Perception engine started")
        return True

    def stop(self) -> bool:
        """RUNNING -> IDLE.  Returns False if already idle."""
        if not self.running:
            return False
        self.state = EngineState.IDLE
        logger.info("Perception engine stopped")
        return True

    # -- Pipeline -----------------------------------------------------------

    def substep(self, dt: float) -> None:
        """Spawn, integrate and score once over *dt* seconds."""
        ctx = self.context
        self.spawner.step(ctx)
        self.integrator.step(ctx, dt)
        self.scorer.step(ctx)

    def _on_frame(self, frame: int) -> None:
        if self._render:
            render_scene(self._frame, self.context.entities.all())
            apply_spectral_filter(self._frame)
        self.context.vitals.on_frame(frame, self.context.rng)

    def tick(self, now: float | None = None) -> float:
        return self.clock.tick(now)

    def frame(self) -> np.ndarray:
        """The most recent filtered frame (RGBA)."""
        return self._frame

    # -- Host scheduling ----------------------------------------------------

    def run_forever(self) -> asyncio.Task:
        """Start the refresh loop on the running event loop (idempotent)."""
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.get_running_loop().create_task(self.clock.run())
        return self._loop_task

    async def shutdown(self) -> None:
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

    # -- Advisory -----------------------------------------------------------

    def analyze(self) -> asyncio.Task[str]:
        if self.advisory is None:
            raise RuntimeError("no advisory client configured")
        return self.advisory.analyze(self.context)

    # -- Views --------------------------------------------------------------

    def entities(self) -> list[Entity]:
        """Live entities, farthest first."""
        return depth_sorted(self.context.entities.all())

    def snapshot(self) -> dict:
        ctx = self.context
        return {
            "state": self.state.value,
            "speed": int(ctx.ego_speed),
            "entities": [e.to_dict() for e in self.entities()],
            "vitals": ctx.vitals.to_dict(),
            "stats": self.clock.stats(),
        }
