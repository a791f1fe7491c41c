"""Vitals — system health gauges updated by a bounded random walk."""

from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass
class Gauge:
    value: float
    low: float = 0.0
    high: float = 100.0
    step: float = 0.0  # max change per update; 0 = steady

    def walk(self, rng: random.Random) -> float:
        if self.step > 0:
            delta = rng.uniform(-self.step, self.step)
            self.value = max(self.low, min(self.high, self.value + delta))
        return self.value


def default_gauges() -> dict[str, Gauge]:
    return {
        "camera": Gauge(100.0),
        "lidar": Gauge(100.0),
        "compute": Gauge(42.0, low=20.0, high=100.0, step=3.0),
    }


class Vitals:
    """Named gauges in [0, 100], walked every *cadence* frames."""

    def __init__(
        self,
        gauges: dict[str, Gauge] | None = None,
        cadence: int = 14,
    ) -> None:
        self._gauges = gauges if gauges is not None else default_gauges()
        self.cadence = max(1, cadence)

    def on_frame(self, frame: int, rng: random.Random) -> bool:
        """Advance every gauge if *frame* lands on the cadence."""
        if frame % self.cadence != 0:
            return False
        for gauge in self._gauges.values():
            gauge.walk(rng)
        return True

    def get(self, name: str) -> float:
        return self._gauges[name].value

    def to_dict(self) -> dict[str, float]:
        return {name: round(g.value, 2) for name, g in self._gauges.items()}
