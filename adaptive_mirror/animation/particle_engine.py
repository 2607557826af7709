"""
Particle Engine — the ambient drifting dots behind every screen.

Pure numpy state, no Qt: AmbientWidget owns a ParticleField, calls step()
once per frame and paints whatever positions and connections it reports.
Motion depends on the current archetype theme.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from adaptive_mirror.data.models import Personality

logger = logging.getLogger(__name__)

MIN_PARTICLES = 5
MAX_PARTICLES = 25
AREA_PER_PARTICLE = 50000
BOUNCE_PADDING = 10.0
MAX_CONNECTIONS = 3
IMPULSIVE_BOOST = 1.5
IMPULSIVE_VELOCITY_CAP = 2.0

SPEED_MULTIPLIERS: Dict[Personality, float] = {
    Personality.IMPULSIVE: 1.5,
    Personality.RESTLESS: 1.2,
    Personality.ANALYTICAL: 0.5,
}

PARTICLE_COLORS: Dict[Optional[Personality], Tuple[int, int, int]] = {
    None: (128, 128, 128),
    Personality.RESTLESS: (0, 255, 136),
    Personality.IMPULSIVE: (255, 0, 110),
    Personality.ANALYTICAL: (139, 148, 158),
    Personality.PERFECTIONIST: (108, 117, 125),
    Personality.OBSERVER: (100, 100, 120),
}

# (i, j, alpha)
Connection = Tuple[int, int, float]


def particle_count(width: float, height: float) -> int:
    return int(min(MAX_PARTICLES, max(MIN_PARTICLES, (width * height) // AREA_PER_PARTICLE)))


class ParticleField:
    """Positions, velocities and looks of every particle, one row each."""

    def __init__(
        self,
        width: float,
        height: float,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.width = float(width)
        self.height = float(height)
        self.rng = rng or np.random.default_rng()
        self.personality: Optional[Personality] = None
        self.positions = np.zeros((0, 2))
        self.velocities = np.zeros((0, 2))
        self.radii = np.zeros(0)
        self.opacities = np.zeros(0)
        self.reset()

    def __len__(self) -> int:
        return len(self.positions)

    # ── Setup ───────────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Scatter a fresh set of slow particles across the field."""
        n = particle_count(self.width, self.height)
        self.positions = self.rng.random((n, 2)) * [self.width, self.height]
        self.velocities = (self.rng.random((n, 2)) - 0.5) * 0.3
        self.radii = self.rng.random(n) * 2 + 0.5
        self.opacities = self.rng.random(n) * 0.1 + 0.02
        logger.debug("Created %d particles for %.0fx%.0f", n, self.width, self.height)

    def resize(self, width: float, height: float) -> None:
        self.width = float(width)
        self.height = float(height)
        if len(self) == 0:
            self.reset()
        else:
            self._bounce()

    def apply_theme(self, personality: Optional[Personality]) -> None:
        self.personality = personality
        if personality == Personality.IMPULSIVE:
            np.clip(
                self.velocities * IMPULSIVE_BOOST,
                -IMPULSIVE_VELOCITY_CAP,
                IMPULSIVE_VELOCITY_CAP,
                out=self.velocities,
            )

    @property
    def color(self) -> Tuple[int, int, int]:
        return PARTICLE_COLORS.get(self.personality, PARTICLE_COLORS[None])

    # ── Per-frame update ────────────────────────────────────────────────────

    def step(self, t: float) -> None:
        """Advance one frame; `t` is the animation time in seconds."""
        if len(self) == 0:
            return
        speed = SPEED_MULTIPLIERS.get(self.personality, 1.0)
        self.positions += self.velocities * speed

        if self.personality == Personality.RESTLESS:
            index = np.arange(len(self))
            self.velocities[:, 0] += np.sin(t + index) * 0.01
            self.velocities[:, 1] += np.cos(t * 1.5 + index) * 0.01
            self.velocities *= 0.99

        self._bounce()

    def _bounce(self) -> None:
        upper = np.array([self.width, self.height]) - BOUNCE_PADDING
        low = self.positions < BOUNCE_PADDING
        high = self.positions > upper
        self.positions = np.where(low, BOUNCE_PADDING, np.where(high, upper, self.positions))
        self.velocities = np.where(low | high, -self.velocities, self.velocities)

    # ── Connections ─────────────────────────────────────────────────────────

    def connections(self) -> List[Connection]:
        """Nearby pairs to join with a line; each particle links forward at most 3 times."""
        if self.personality == Personality.OBSERVER or len(self) < 2:
            return []
        max_distance = 100.0 if self.personality == Personality.IMPULSIVE else 120.0

        deltas = self.positions[:, None, :] - self.positions[None, :, :]
        distances = np.hypot(deltas[..., 0], deltas[..., 1])

        links: List[Connection] = []
        for i in range(len(self)):
            made = 0
            for j in range(i + 1, len(self)):
                if made >= MAX_CONNECTIONS:
                    break
                d = distances[i, j]
                if d < max_distance:
                    links.append((i, j, float((1 - d / max_distance) * 0.15)))
                    made += 1
        return links
