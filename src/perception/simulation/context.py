"""SimulationContext — the single owned bag of mutable simulation state.

Every component (spawner, integrator, scorer, clock) receives the
context explicitly instead of closing over shared arrays, so a test can
build one, hand it a seeded ``random.Random`` and drive components in
isolation.
"""

from __future__ import annotations

import itertools
import random
from dataclasses import dataclass, field

from perception.comms.event_log import EventLog
from .entity import EntityStore
from .vitals import Vitals


@dataclass
class SimulationContext:
    entities: EntityStore = field(default_factory=EntityStore)
    event_log: EventLog = field(default_factory=EventLog)
    vitals: Vitals = field(default_factory=Vitals)
    rng: random.Random = field(default_factory=random.Random)
    ego_speed: float = 0.0  # km/h
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    def next_id(self) -> int:
        return next(self._ids)
