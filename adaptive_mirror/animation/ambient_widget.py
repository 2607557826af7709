"""
Ambient Widget — the painted backdrop that hosts every screen.

Draws the background and the particle field, then lets its child widgets
paint on top. Animation stops while the window is hidden or reduced
motion is on.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

from PySide6.QtCore import Qt, QTimer, QPointF
from PySide6.QtGui import QColor, QPainter, QPen, QBrush
from PySide6.QtWidgets import QWidget

from adaptive_mirror.data.models import Personality
from .particle_engine import ParticleField

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16
BACKGROUND = QColor(13, 17, 23)
CONNECTION_WHITE = (255, 255, 255)
RIPPLE_MS = 600.0
RIPPLE_MAX_RADIUS = 30.0


class AmbientWidget(QWidget):
    """Container widget with an animated particle background."""

    def __init__(self, reduced_motion: bool = False, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.reduced_motion = reduced_motion
        self.field = ParticleField(max(1, self.width()), max(1, self.height()))
        self._t0 = time.monotonic()
        self._ripples: List[Tuple[float, float, float]] = []  # (x, y, started)
        self.setAttribute(Qt.WidgetAttribute.WA_OpaquePaintEvent)
        self.setMouseTracking(True)

        self._frame_timer = QTimer(self)
        self._frame_timer.timeout.connect(self._on_frame)
        if not reduced_motion:
            self._frame_timer.start(FRAME_INTERVAL_MS)

    # ── Public ──────────────────────────────────────────────────────────────

    def apply_theme(self, personality: Optional[Personality]) -> None:
        self.field.apply_theme(personality)
        self.update()

    def reset_particles(self) -> None:
        self.field.personality = None
        self.field.reset()
        self.update()

    def set_reduced_motion(self, reduced: bool) -> None:
        self.reduced_motion = reduced
        if reduced:
            self._frame_timer.stop()
        elif self.isVisible():
            self._frame_timer.start(FRAME_INTERVAL_MS)
        self.update()

    def add_ripple(self, x: float, y: float) -> None:
        """Expanding ring at a click position, gone after RIPPLE_MS."""
        if self.reduced_motion:
            return
        self._ripples.append((x, y, time.monotonic()))
        self.update()

    def clear_ripples(self) -> None:
        self._ripples.clear()
        self.update()

    def set_paused(self, paused: bool) -> None:
        if paused:
            self._frame_timer.stop()
        elif not self.reduced_motion:
            self._frame_timer.start(FRAME_INTERVAL_MS)

    # ── Frame loop ──────────────────────────────────────────────────────────

    def _on_frame(self) -> None:
        try:
            self.field.step(time.monotonic() - self._t0)
        except Exception:
            logger.exception("Particle update failed; stopping animation.")
            self._frame_timer.stop()
            return
        self.update()

    # ── Qt overrides ────────────────────────────────────────────────────────

    def resizeEvent(self, event) -> None:
        self.field.resize(max(1, self.width()), max(1, self.height()))
        super().resizeEvent(event)

    def paintEvent(self, event) -> None:
        p = QPainter(self)
        p.fillRect(self.rect(), BACKGROUND)
        if not self.reduced_motion:
            p.setRenderHint(QPainter.RenderHint.Antialiasing, True)
            self._draw_connections(p)
            self._draw_particles(p)
            self._draw_ripples(p)
        p.end()

    def _draw_ripples(self, p: QPainter) -> None:
        now = time.monotonic()
        self._ripples = [r for r in self._ripples if (now - r[2]) * 1000 < RIPPLE_MS]
        p.setBrush(Qt.BrushStyle.NoBrush)
        for x, y, started in self._ripples:
            fraction = (now - started) * 1000 / RIPPLE_MS
            p.setPen(QPen(QColor(255, 255, 255, int(77 * (1 - fraction))), 1))
            radius = RIPPLE_MAX_RADIUS * fraction
            p.drawEllipse(QPointF(x, y), radius, radius)

    def _draw_particles(self, p: QPainter) -> None:
        r, g, b = self.field.color
        p.setPen(Qt.PenStyle.NoPen)
        for (x, y), radius, opacity in zip(
            self.field.positions, self.field.radii, self.field.opacities
        ):
            p.setBrush(QBrush(QColor(r, g, b, int(opacity * 255))))
            p.drawEllipse(QPointF(x, y), radius, radius)

    def _draw_connections(self, p: QPainter) -> None:
        if self.field.personality == Personality.RESTLESS:
            r, g, b = self.field.color
        else:
            r, g, b = CONNECTION_WHITE
        positions = self.field.positions
        for i, j, alpha in self.field.connections():
            p.setPen(QPen(QColor(r, g, b, int(alpha * 255)), 0.5))
            p.drawLine(QPointF(*positions[i]), QPointF(*positions[j]))
