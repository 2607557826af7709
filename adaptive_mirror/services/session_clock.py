"""
Session Clock — elapsed and remaining time for one observation window.

The clock pauses while the window is hidden. On resume the start time is
shifted forward by the hidden interval, so time spent hidden never counts
against the window and the displayed countdown resumes where it stopped.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SessionState:
    """Lifecycle states of an observation session."""
    IDLE = "idle"
    OBSERVING = "observing"
    PAUSED = "paused"
    COMPLETED = "completed"


class SessionClock:
    """
    Pausable countdown against a fixed duration.

    State transitions:
        idle → observing ⇄ paused
        observing → completed
        observing | paused → idle   (abort)
    """

    def __init__(self, clock: Callable[[], float], duration_ms: float = 30000.0) -> None:
        self.clock = clock
        self.duration_ms = duration_ms
        self.state: str = SessionState.IDLE
        self.start_time: Optional[float] = None
        self.hidden_at: Optional[float] = None

    # ── Transitions ─────────────────────────────────────────────────────────

    def start(self) -> None:
        self.start_time = self.clock()
        self.hidden_at = None
        self.state = SessionState.OBSERVING

    def pause(self) -> bool:
        """Freeze the window. Returns False if there was nothing to pause."""
        if self.state != SessionState.OBSERVING:
            return False
        self.hidden_at = self.clock()
        self.state = SessionState.PAUSED
        return True

    def resume(self) -> Optional[float]:
        """Unfreeze the window; returns the hidden duration, or None if not paused."""
        if self.state != SessionState.PAUSED or self.hidden_at is None:
            return None
        hidden_duration = self.clock() - self.hidden_at
        self.start_time += hidden_duration
        self.hidden_at = None
        self.state = SessionState.OBSERVING
        logger.debug("Resumed after %.0f ms hidden", hidden_duration)
        return hidden_duration

    def tick(self) -> bool:
        """Advance the countdown. Returns True exactly once, on completion."""
        if self.state != SessionState.OBSERVING:
            return False
        if self.elapsed_ms() >= self.duration_ms:
            self.state = SessionState.COMPLETED
            return True
        return False

    def abort(self) -> None:
        self.state = SessionState.IDLE
        self.start_time = None
        self.hidden_at = None

    # ── Readouts ────────────────────────────────────────────────────────────

    @property
    def is_active(self) -> bool:
        return self.state in (SessionState.OBSERVING, SessionState.PAUSED)

    def elapsed_ms(self) -> float:
        if self.start_time is None:
            return 0.0
        now = self.hidden_at if self.state == SessionState.PAUSED else self.clock()
        return max(0.0, now - self.start_time)

    def remaining_seconds(self) -> int:
        if self.state == SessionState.COMPLETED:
            return 0
        if self.start_time is None:
            return int(math.ceil(self.duration_ms / 1000))
        return max(0, int(math.ceil((self.duration_ms - self.elapsed_ms()) / 1000)))

    def progress(self) -> float:
        if self.state == SessionState.COMPLETED:
            return 1.0
        return min(1.0, self.elapsed_ms() / self.duration_ms)
