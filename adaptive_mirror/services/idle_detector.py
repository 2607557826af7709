"""
Idle Detector — commits gaps of inactivity to the session's idle time.

Polled on a fixed cadence while the session observes. Uses hysteresis:
a gap is opened once inactivity exceeds idle_open_ms, and only committed
on close if it lasted longer than idle_commit_ms.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from adaptive_mirror.config import TrackingConfig
from adaptive_mirror.services.metrics_accumulator import MetricsAccumulator

logger = logging.getLogger(__name__)


class IdleDetector:
    def __init__(
        self,
        accumulator: MetricsAccumulator,
        clock: Callable[[], float],
        config: Optional[TrackingConfig] = None,
    ) -> None:
        self.accumulator = accumulator
        self.clock = clock
        self.config = config or TrackingConfig()
        self.idle_start: Optional[float] = None

    def reset(self) -> None:
        self.idle_start = None

    def shift(self, delta_ms: float) -> None:
        if self.idle_start is not None:
            self.idle_start += delta_ms

    @property
    def is_idle(self) -> bool:
        return self.idle_start is not None

    def poll(self) -> None:
        if not self.accumulator.is_recording():
            return
        last = self.accumulator.last_activity_time
        if last is None:
            return

        now = self.clock()
        since_activity = now - last
        cfg = self.config

        if self.idle_start is not None and since_activity < cfg.idle_resume_ms:
            # The gap runs from the last action before it to the one ending it.
            gap = last - self.idle_start
            if gap > cfg.idle_commit_ms:
                self.accumulator.record_idle_gap(gap)
                logger.debug("Committed idle gap of %.0f ms", gap)
            self.idle_start = None
        elif self.idle_start is None and since_activity > cfg.idle_open_ms:
            self.idle_start = last
