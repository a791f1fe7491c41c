"""SimulationClock — frame pacing and fixed substep subdivision.

One ``tick()`` per display refresh.  The elapsed wall time since the
previous tick is split into ``substeps`` equal slices, and each slice
runs spawn -> integrate -> score in that order.  When the engine is idle
the elapsed time is discarded, but the tick still counts a frame and
re-arms.

``run()`` is the host-side scheduling loop: it keeps calling ``tick()``
on the event loop until it is cancelled, whether or not the engine is
running.  A frame that raises is logged and the loop re-arms.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from loguru import logger

DEFAULT_SUBSTEPS = 7


class SimulationClock:
    """Drives *advance(dt)* K times per frame and *on_frame(frame)* once."""

    def __init__(
        self,
        advance: Callable[[float], None],
        on_frame: Callable[[int], None] | None = None,
        is_active: Callable[[], bool] = lambda: True,
        substeps: int = DEFAULT_SUBSTEPS,
        refresh_hz: float = 60.0,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        if substeps < 1:
            raise ValueError(f"substeps must be >= 1, got {substeps}")
        self._advance = advance
        self._on_frame = on_frame
        self._is_active = is_active
        self.substeps = substeps
        self.refresh_hz = refresh_hz
        self._time = time_source
        self._last: float | None = None
        self.frame = 0
        self.substeps_run = 0
        self.fps = 0.0

    def reset(self, now: float | None = None) -> None:
        """Restart dt measurement from *now* (used on engine start)."""
        self._last = self._time() if now is None else now

    def tick(self, now: float | None = None) -> float:
        """Run one frame; return the dt that was simulated (0 when idle)."""
        if now is None:
            now = self._time()
        dt = 0.0 if self._last is None else max(0.0, now - self._last)
        self._last = now
        self.frame += 1
        if dt > 0:
            # Exponential moving average of the refresh rate
            self.fps = 0.9 * self.fps + 0.1 * (1.0 / dt) if self.fps else 1.0 / dt

        simulated = 0.0
        if self._is_active() and dt > 0:
            sub_dt = dt / self.substeps
            for _ in range(self.substeps):
                self._advance(sub_dt)
            self.substeps_run += self.substeps
            simulated = dt

        if self._on_frame is not None:
            self._on_frame(self.frame)
        return simulated

    async def run(self) -> None:
        """Tick once per refresh period until cancelled."""
        period = 1.0 / self.refresh_hz
        self.reset()
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception(f"Simulation frame {self.frame} failed")
            await asyncio.sleep(period)

    def stats(self) -> dict:
        return {
            "frame": self.frame,
            "substeps": self.substeps_run,
            "substeps_per_frame": self.substeps,
            "fps": round(self.fps, 1),
            "effective_hz": round(self.fps * self.substeps, 1),
        }
