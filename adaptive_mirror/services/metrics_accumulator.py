"""
Metrics Accumulator — turns raw input events into behavioral counters.

The accumulator is the only component allowed to mutate a session's
Metrics. Every recorder checks the recording gate first; while the session
is not observing (or the window is hidden) events are silently dropped.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Callable, Collection, Optional

from adaptive_mirror.config import TrackingConfig
from adaptive_mirror.data.models import Metrics

logger = logging.getLogger(__name__)

BLOCKING_MODIFIERS = frozenset({"ctrl", "meta", "alt"})


@dataclass
class PointerSample:
    x: float = 0.0
    y: float = 0.0
    time: Optional[float] = None
    vx: float = 0.0
    vy: float = 0.0


class MetricsAccumulator:
    """Owns one Metrics instance and the recorder operations that feed it."""

    def __init__(
        self,
        clock: Callable[[], float],
        is_recording: Callable[[], bool],
        config: Optional[TrackingConfig] = None,
    ) -> None:
        self.clock = clock
        self.is_recording = is_recording
        self.config = config or TrackingConfig()
        self._metrics = Metrics()
        self._last = PointerSample()
        self._composing = False
        self.start_time: Optional[float] = None

    # ── Lifecycle ───────────────────────────────────────────────────────────

    def reset(self, now: Optional[float] = None) -> None:
        """Start a fresh window; the activity clock is anchored at `now`."""
        self.start_time = self.clock() if now is None else now
        self._metrics = Metrics(last_activity_time=self.start_time)
        self._last = PointerSample()
        self._composing = False

    def discard(self) -> None:
        self._metrics = Metrics()
        self.start_time = None
        self._last = PointerSample()
        self._composing = False

    def snapshot(self) -> Metrics:
        """A detached copy of the current metrics."""
        return replace(self._metrics)

    @property
    def last_activity_time(self) -> Optional[float]:
        return self._metrics.last_activity_time

    # ── Recorders ───────────────────────────────────────────────────────────

    def record_pointer_sample(self, x: float, y: float, timestamp_ms: float) -> None:
        if not self.is_recording():
            return
        m = self._metrics
        cfg = self.config

        if m.first_activity_time is None:
            m.first_activity_time = timestamp_ms

        last = self._last
        if last.time is not None:
            dt = timestamp_ms - last.time
            if dt > cfg.frame_floor_ms:
                self._process_movement(x, y, dt)
            else:
                # Too soon after the previous sample; keep the old anchor.
                m.last_activity_time = timestamp_ms
                return

        self._last = PointerSample(x=x, y=y, time=timestamp_ms, vx=last.vx, vy=last.vy)
        m.last_activity_time = timestamp_ms

    def end_pointer_stroke(self) -> None:
        """Forget the last sample so no velocity spans two touch strokes."""
        self._last.time = None
        self._last.vx = 0.0
        self._last.vy = 0.0

    def record_scroll(self) -> None:
        if not self.is_recording():
            return
        self._metrics.scroll_count += 1
        self._stamp()

    def record_wheel(self, delta_y: float) -> None:
        if not self.is_recording():
            return
        velocity = abs(delta_y)
        if math.isfinite(velocity) and velocity > self._metrics.max_scroll_velocity:
            self._metrics.max_scroll_velocity = velocity
        self._stamp()

    def record_click(self, is_control_target: bool = False) -> None:
        if not self.is_recording() or is_control_target:
            return
        self._metrics.click_count += 1
        self._stamp()

    def record_keydown(
        self,
        key: str,
        modifiers: Collection[str] = (),
        is_composing: bool = False,
    ) -> None:
        if not self.is_recording():
            return
        if self._composing or is_composing or key == "Dead":
            return
        if key == "Backspace":
            self.record_backspace()
            return
        if len(key) == 1 and key.isprintable() and not (BLOCKING_MODIFIERS & set(modifiers)):
            self._metrics.keystrokes += 1
        self._stamp()

    def record_backspace(self) -> None:
        if not self.is_recording() or self._composing:
            return
        self._metrics.backspaces += 1
        self._stamp()

    def record_input_activity(self) -> None:
        """Key release or text input: activity without a countable action."""
        if not self.is_recording():
            return
        self._stamp()

    def shift_clock(self, delta_ms: float) -> None:
        """Move every activity anchor forward by a hidden interval."""
        if self.start_time is not None:
            self.start_time += delta_ms
        m = self._metrics
        if m.last_activity_time is not None:
            m.last_activity_time += delta_ms
        if m.first_activity_time is not None:
            m.first_activity_time += delta_ms
        if self._last.time is not None:
            self._last.time += delta_ms

    def record_idle_gap(self, duration_ms: float) -> None:
        if duration_ms > 0 and math.isfinite(duration_ms):
            self._metrics.idle_time += duration_ms

    def set_composing(self, active: bool) -> None:
        self._composing = active

    # ── Internal ────────────────────────────────────────────────────────────

    def _process_movement(self, x: float, y: float, dt: float) -> None:
        m = self._metrics
        cfg = self.config
        last = self._last

        dx = x - last.x
        dy = y - last.y
        distance = math.hypot(dx, dy)
        if distance <= 0:
            return

        vx = dx / dt
        vy = dy / dt
        velocity = math.hypot(vx, vy)
        if not math.isfinite(velocity):
            logger.debug("Dropping non-finite pointer velocity (dt=%s)", dt)
            return

        m.mouse_distance += distance
        m.velocity_sum += velocity
        m.velocity_count += 1
        if velocity > m.max_velocity:
            m.max_velocity = velocity

        if distance < cfg.jitter_distance_px and dt < cfg.jitter_interval_ms:
            m.jitter_count += 1

        if last.vx != 0 or last.vy != 0:
            dot = vx * last.vx + vy * last.vy
            if dot < 0 and velocity > cfg.direction_change_speed:
                m.direction_changes += 1

        last.vx = vx
        last.vy = vy

    def _stamp(self) -> None:
        self._metrics.last_activity_time = self.clock()
