"""
Data models for Adaptive Mirror.

Metrics is the mutable per-session accumulator state; everything else is
an immutable value produced once a session completes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Personality(str, Enum):
    """The five archetypes, in the fixed ranking order used for ties."""
    IMPULSIVE = "Impulsive"
    ANALYTICAL = "Analytical"
    PERFECTIONIST = "Perfectionist"
    OBSERVER = "Observer"
    RESTLESS = "Restless"


@dataclass
class Metrics:
    """Raw behavioral counters for one observation window."""
    mouse_distance: float = 0.0
    velocity_sum: float = 0.0
    velocity_count: int = 0
    max_velocity: float = 0.0
    jitter_count: int = 0
    direction_changes: int = 0
    scroll_count: int = 0
    click_count: int = 0
    keystrokes: int = 0
    backspaces: int = 0
    max_scroll_velocity: float = 0.0
    idle_time: float = 0.0                      # ms
    last_activity_time: Optional[float] = None  # ms, injected clock
    first_activity_time: Optional[float] = None

    @property
    def interactions(self) -> int:
        return self.click_count + self.scroll_count


@dataclass(frozen=True)
class Scores:
    """Four sub-scores; control_bias is 0-100, the others 5-95."""
    focus: int = 50
    hesitation: int = 50
    control_bias: int = 50
    energy: int = 50

    def as_dict(self) -> dict:
        return {
            "focus": self.focus,
            "hesitation": self.hesitation,
            "control_bias": self.control_bias,
            "energy": self.energy,
        }


@dataclass(frozen=True)
class Result:
    """Classification outcome of one completed session."""
    personality: Personality
    scores: Scores


@dataclass
class ResultRecord:
    """A persisted result row."""
    id: Optional[int] = None
    session_id: str = ""
    personality: Personality = Personality.OBSERVER
    scores: Scores = Scores()
    distance_px: int = 0
    interactions: int = 0
    created_at: Optional[datetime] = None

    @property
    def result(self) -> Result:
        return Result(personality=self.personality, scores=self.scores)


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Defines the shapes that flow through the pipeline:
#   - Metrics: mutated only by MetricsAccumulator while a session observes.
#   - Scores / Result: frozen, produced once by the classifier.
#   - ResultRecord: what the Repository stores and loads.
#
# Data flow:
#   input events → MetricsAccumulator → Metrics snapshot → classify() →
#   Result → ResultRecord → Repository (SQLite)
