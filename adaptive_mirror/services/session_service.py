"""
Session Service — orchestrates the lifecycle of one observation session.

Handles: start, pause/resume on visibility change, completion, abort and
teardown. Owns the accumulator, idle detector, session clock and timer
registry, and invokes the classifier exactly once when a session completes.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Callable, Collection, Optional

from adaptive_mirror.config import Capabilities, MirrorConfig
from adaptive_mirror.data.models import Metrics, Result
from adaptive_mirror.scoring.classifier import FALLBACK_RESULT, classify
from adaptive_mirror.services.idle_detector import IdleDetector
from adaptive_mirror.services.metrics_accumulator import MetricsAccumulator
from adaptive_mirror.services.session_clock import SessionClock, SessionState
from adaptive_mirror.services.timer_registry import TimerRegistry

logger = logging.getLogger(__name__)

SESSION_ID_ALPHABET = string.digits + string.ascii_uppercase
SESSION_ID_LENGTH = 8

COUNTDOWN_TIMER = "countdown"
IDLE_TIMER = "idle"


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def generate_session_id(length: int = SESSION_ID_LENGTH) -> str:
    return "".join(secrets.choice(SESSION_ID_ALPHABET) for _ in range(length))


class Throttle:
    """Leading-edge throttle: at most one call per `limit_ms`."""

    def __init__(self, clock: Callable[[], float], limit_ms: float) -> None:
        self.clock = clock
        self.limit_ms = limit_ms
        self._last: Optional[float] = None

    def allow(self) -> bool:
        now = self.clock()
        if self._last is not None and now - self._last < self.limit_ms:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None


class SessionController:
    """
    Manages one observation session at a time.

    Input handlers are safe to call in any state: outside of an observing
    session they do nothing. Collaborators (UI, sound, persistence) listen
    through the injected callbacks.
    """

    def __init__(
        self,
        config: Optional[MirrorConfig] = None,
        clock: Callable[[], float] = monotonic_ms,
        timers: Optional[TimerRegistry] = None,
        classifier: Callable[..., Result] = classify,
        capabilities: Optional[Capabilities] = None,
        on_state_changed: Optional[Callable[[str], None]] = None,
        on_countdown: Optional[Callable[[int, float], None]] = None,
        on_completed: Optional[Callable[[Result], None]] = None,
        on_activity: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.config = config or MirrorConfig()
        self.clock = clock
        tracking = self.config.tracking
        self.timers = timers or TimerRegistry(max_one_shots=tracking.max_transient_timers)
        self.classifier = classifier
        self.capabilities = capabilities or Capabilities(
            reduced_motion=self.config.reduced_motion
        )

        # Callbacks the UI will set
        self.on_state_changed = on_state_changed
        self.on_countdown = on_countdown
        self.on_completed = on_completed
        self.on_activity = on_activity

        self.session_clock = SessionClock(clock, tracking.session_duration_ms)
        self.accumulator = MetricsAccumulator(clock, self._is_recording, tracking)
        self.idle_detector = IdleDetector(self.accumulator, clock, tracking)
        self._scroll_throttle = Throttle(clock, tracking.scroll_throttle_ms)
        self._wheel_throttle = Throttle(clock, tracking.wheel_throttle_ms)

        self.session_id: str = generate_session_id()
        self.result: Optional[Result] = None
        self.final_metrics: Optional[Metrics] = None
        self.destroyed = False

    # ── State ───────────────────────────────────────────────────────────────

    @property
    def state(self) -> str:
        return self.session_clock.state

    @property
    def is_observing(self) -> bool:
        return self.state == SessionState.OBSERVING

    def _is_recording(self) -> bool:
        return not self.destroyed and self.session_clock.state == SessionState.OBSERVING

    def metrics(self) -> Metrics:
        return self.accumulator.snapshot()

    # ── Lifecycle ───────────────────────────────────────────────────────────

    def start(self) -> bool:
        """Begin a new observation window. Returns False if one is running."""
        if self.destroyed or self.session_clock.is_active:
            logger.debug("Start ignored in state '%s'.", self.state)
            return False

        self.timers.cancel_all()
        self.result = None
        self.final_metrics = None
        self.session_id = generate_session_id()
        self._scroll_throttle.reset()
        self._wheel_throttle.reset()

        self.accumulator.reset(self.clock())
        self.idle_detector.reset()
        self.session_clock.start()
        self._start_polling()
        logger.info("Session %s started.", self.session_id)
        self._emit_state()
        self._on_countdown_tick()
        return True

    def handle_visibility_change(self, hidden: bool) -> None:
        if self.destroyed:
            return
        if hidden:
            if self.session_clock.pause():
                self.timers.stop_repeating()
                logger.info("Session %s paused (hidden).", self.session_id)
                self._emit_state()
        else:
            hidden_duration = self.session_clock.resume()
            if hidden_duration is None:
                return
            self.accumulator.shift_clock(hidden_duration)
            self.idle_detector.shift(hidden_duration)
            self._start_polling()
            logger.info("Session %s resumed after %.0f ms.", self.session_id, hidden_duration)
            self._emit_state()
            self._on_countdown_tick()

    def abort(self) -> None:
        """Abandon the running session; no result is produced."""
        if not self.session_clock.is_active:
            return
        self.timers.cancel_all()
        self.accumulator.discard()
        self.idle_detector.reset()
        self.session_clock.abort()
        self.result = None
        logger.info("Session %s aborted.", self.session_id)
        self._emit_state()

    def reset(self) -> None:
        """Return to idle from any state, dropping any result."""
        self.timers.cancel_all()
        self.accumulator.discard()
        self.idle_detector.reset()
        was = self.state
        self.session_clock.abort()
        self.result = None
        self.final_metrics = None
        if was != SessionState.IDLE:
            self._emit_state()

    def teardown(self) -> None:
        """Stop everything for good; every handler becomes a no-op."""
        if self.destroyed:
            return
        self.timers.cancel_all()
        self.session_clock.abort()
        self.destroyed = True
        logger.info("Session controller torn down.")

    # ── Input handlers ──────────────────────────────────────────────────────

    def handle_pointer_move(self, x: float, y: float, timestamp: Optional[float] = None) -> None:
        if not self._is_recording():
            return
        self.accumulator.record_pointer_sample(x, y, self.clock() if timestamp is None else timestamp)
        self._emit_activity("movement")

    def handle_pointer_release(self) -> None:
        self.accumulator.end_pointer_stroke()

    def handle_scroll(self) -> None:
        if not self._is_recording() or not self._scroll_throttle.allow():
            return
        self.accumulator.record_scroll()

    def handle_wheel(self, delta_y: float) -> None:
        if not self._is_recording() or not self._wheel_throttle.allow():
            return
        self.accumulator.record_wheel(delta_y)

    def handle_click(self, is_control_target: bool = False) -> None:
        if not self._is_recording() or is_control_target:
            return
        self.accumulator.record_click()
        self._emit_activity("interaction")

    def handle_keydown(
        self, key: str, modifiers: Collection[str] = (), is_composing: bool = False
    ) -> None:
        self.accumulator.record_keydown(key, modifiers, is_composing)

    def handle_input_activity(self) -> None:
        self.accumulator.record_input_activity()

    def handle_composition(self, active: bool) -> None:
        self.accumulator.set_composing(active)

    # ── Timers ──────────────────────────────────────────────────────────────

    def _start_polling(self) -> None:
        tracking = self.config.tracking
        self.timers.start_repeating(COUNTDOWN_TIMER, tracking.countdown_tick_ms, self._on_countdown_tick)
        self.timers.start_repeating(IDLE_TIMER, tracking.idle_poll_ms, self.idle_detector.poll)

    def _on_countdown_tick(self) -> None:
        if self.destroyed or self.state != SessionState.OBSERVING:
            return
        if self.on_countdown:
            self.on_countdown(
                self.session_clock.remaining_seconds(), self.session_clock.progress()
            )
        if self.session_clock.tick():
            self._complete()

    def _complete(self) -> None:
        self.timers.stop_repeating()
        metrics = self.accumulator.snapshot()
        self.final_metrics = metrics
        try:
            result = self.classifier(
                metrics,
                self.session_clock.duration_ms,
                self.config.scoring,
                start_time=self.accumulator.start_time,
            )
        except Exception:
            logger.exception("Classification failed; using fallback result.")
            result = FALLBACK_RESULT
        self.result = result
        logger.info("Session %s completed: %s", self.session_id, result.personality.value)
        self._emit_state()
        if self.on_countdown:
            self.on_countdown(0, 1.0)
        if self.on_completed:
            self.on_completed(result)

    # ── Callbacks ───────────────────────────────────────────────────────────

    def _emit_state(self) -> None:
        if self.on_state_changed:
            self.on_state_changed(self.state)

    def _emit_activity(self, kind: str) -> None:
        if self.on_activity:
            self.on_activity(kind)


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   The state machine for one 30-second observation window.
#
# Data flow:
#   UI event filter → handle_*() → MetricsAccumulator
#   countdown timer → _on_countdown_tick() → on_countdown(remaining, progress)
#   idle timer → IdleDetector.poll() → accumulator.record_idle_gap()
#   window elapsed → _complete() → classify() → on_completed(result)
#   window hidden → timers stopped; on restore the clock and activity
#   anchors shift by the hidden interval and the timers restart.
