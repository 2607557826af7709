"""
Timer Registry — owns every timer a session schedules.

Repeating timers (countdown, idle poll) are keyed by name; one-shot timers
(highlights, delayed reveal, button feedback) are tracked in a bounded set.
cancel_all() stops both kinds, so nothing scheduled for an old session can
fire after a reset or teardown.
"""

from __future__ import annotations

import itertools
import logging
from collections import OrderedDict
from typing import Callable, Dict, Optional, Set

from PySide6.QtCore import QTimer

logger = logging.getLogger(__name__)

DEFAULT_MAX_ONE_SHOTS = 64


class TimerRegistry:
    """
    Creates timers through `timer_factory` (QTimer by default) so callbacks
    run on the Qt event loop. Tests pass a fake factory.
    """

    def __init__(
        self,
        timer_factory: Callable[[], object] = QTimer,
        max_one_shots: int = DEFAULT_MAX_ONE_SHOTS,
    ) -> None:
        self.timer_factory = timer_factory
        self.max_one_shots = max_one_shots
        self._repeating: Dict[str, object] = {}
        self._one_shots: "OrderedDict[int, object]" = OrderedDict()
        self._essential: Set[int] = set()
        self._ids = itertools.count(1)

    # ── Repeating timers ────────────────────────────────────────────────────

    def start_repeating(self, name: str, interval_ms: int, callback: Callable[[], None]) -> None:
        """(Re)start a named repeating timer; an existing one is replaced."""
        self.stop(name)
        timer = self.timer_factory()
        timer.setSingleShot(False)
        timer.timeout.connect(callback)
        timer.start(int(interval_ms))
        self._repeating[name] = timer

    def stop(self, name: str) -> None:
        timer = self._repeating.pop(name, None)
        if timer is not None:
            timer.stop()

    def is_running(self, name: str) -> bool:
        timer = self._repeating.get(name)
        return timer is not None and timer.isActive()

    def stop_repeating(self) -> None:
        for name in list(self._repeating):
            self.stop(name)

    # ── One-shot timers ─────────────────────────────────────────────────────

    def single_shot(
        self, delay_ms: int, callback: Callable[[], None], essential: bool = False
    ) -> int:
        """
        Schedule `callback` once; returns a handle usable with cancel().

        When the registry is full the oldest cosmetic timer is dropped.
        Essential timers (result reveal, restoring widget state) are never
        dropped and do not count toward the limit.
        """
        handle = next(self._ids)
        timer = self.timer_factory()
        timer.setSingleShot(True)

        def _fire() -> None:
            # Untrack before running so the callback may schedule again.
            if self._one_shots.pop(handle, None) is None:
                return
            self._essential.discard(handle)
            callback()

        timer.timeout.connect(_fire)
        self._one_shots[handle] = timer
        if essential:
            self._essential.add(handle)
        timer.start(int(delay_ms))

        cosmetic = [h for h in self._one_shots if h not in self._essential]
        while len(cosmetic) > self.max_one_shots:
            oldest = cosmetic.pop(0)
            self._one_shots.pop(oldest).stop()
            logger.debug("One-shot registry full; dropped timer %d", oldest)
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        if handle is None:
            return
        self._essential.discard(handle)
        timer = self._one_shots.pop(handle, None)
        if timer is not None:
            timer.stop()

    @property
    def pending_count(self) -> int:
        return len(self._one_shots)

    # ── Teardown ────────────────────────────────────────────────────────────

    def cancel_all(self) -> None:
        self.stop_repeating()
        for timer in self._one_shots.values():
            timer.stop()
        if self._one_shots:
            logger.debug("Cancelled %d pending one-shot timers", len(self._one_shots))
        self._one_shots.clear()
        self._essential.clear()
