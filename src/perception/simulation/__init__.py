"""Hazard-perception simulation core.

Package layout:
  entity.py     — Entity dataclass, EntityType, EntityStore
  context.py    — SimulationContext (owned state passed to every component)
  spawner.py    — SpawnPolicy (stochastic hazard spawns)
  integrator.py — Integrator (kinematics, ego-speed ramp, culling)
  scoring.py    — HazardScorer (rule table, hazard events)
  vitals.py     — Vitals (random-walk health gauges)
  clock.py      — SimulationClock (frame pacing, fixed substeps)
  engine.py     — PerceptionEngine (state machine + pipeline wiring)
"""

from .clock import SimulationClock
from .context import SimulationContext
from .engine import EngineState, PerceptionEngine
from .entity import Entity, EntityStore, EntityType, depth_sorted
from .integrator import Integrator
from .scoring import HazardLogPolicy, HazardScorer, score_entity
from .spawner import SpawnPolicy
from .vitals import Gauge, Vitals

__all__ = [
    "EngineState",
    "Entity",
    "EntityStore",
    "EntityType",
    "Gauge",
    "HazardLogPolicy",
    "HazardScorer",
    "Integrator",
    "PerceptionEngine",
    "SimulationClock",
    "SimulationContext",
    "SpawnPolicy",
    "Vitals",
    "depth_sorted",
    "score_entity",
]
