"""
Archetype Classifier — a fixed, hand-tuned rule table.

Pipeline (pure functions, no state):
  1. derive_rates(): raw Metrics + window length → per-second rates
  2. score_archetypes(): each rule adds a fixed number of points
  3. pick_personality(): highest score wins, with a zero-score fallback
     chain and two tie-break preferences
  4. compute_scores(): four normalized sub-scores

Nothing here is learned; thresholds come from ScoringConfig and are
reproduced exactly from the original rubric.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from adaptive_mirror.config import ScoringConfig
from adaptive_mirror.data.models import Metrics, Personality, Result, Scores

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 30000.0
MIN_DURATION_SEC = 1.0

FALLBACK_RESULT = Result(
    personality=Personality.OBSERVER,
    scores=Scores(focus=50, hesitation=50, control_bias=50, energy=50),
)


@dataclass(frozen=True)
class Rates:
    """Derived behavioral rates for one session."""
    duration_sec: float = DEFAULT_DURATION_MS / 1000
    avg_velocity: float = 0.0
    click_rate: float = 0.0
    scroll_rate: float = 0.0
    activity_density: float = 0.0
    deletion_rate: float = 0.0
    avg_idle_gap: float = 0.0


# ── Numeric helpers ─────────────────────────────────────────────────────────

def _finite(value: float) -> float:
    """Replace NaN / ±inf with 0."""
    try:
        return value if math.isfinite(value) else 0.0
    except TypeError:
        return 0.0


def _safe_div(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return _finite(numerator / denominator)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize(value: float) -> int:
    """Clamp to [5, 95] and round; non-finite input counts as 0."""
    return _round_half_up(max(5.0, min(95.0, _finite(value))))


# ── Pipeline ────────────────────────────────────────────────────────────────

def effective_duration_sec(
    metrics: Metrics,
    duration_ms: float = DEFAULT_DURATION_MS,
    start_time: Optional[float] = None,
) -> float:
    """
    Span between the first recorded activity (or the session start, when
    the pointer never moved) and the last one, clamped to [1, window].
    Sessions without an activity span use the whole window.
    """
    window_sec = duration_ms / 1000
    first = metrics.first_activity_time
    if first is None:
        first = start_time
    last = metrics.last_activity_time
    if first is None or last is None:
        return window_sec
    span = _finite((last - first) / 1000)
    if span <= 0:
        return window_sec
    return max(MIN_DURATION_SEC, min(window_sec, span))


def derive_rates(
    metrics: Metrics,
    duration_ms: float = DEFAULT_DURATION_MS,
    start_time: Optional[float] = None,
) -> Rates:
    duration = effective_duration_sec(metrics, duration_ms, start_time)
    actions = metrics.click_count + metrics.scroll_count + metrics.keystrokes
    return Rates(
        duration_sec=duration,
        avg_velocity=_safe_div(metrics.velocity_sum, metrics.velocity_count),
        click_rate=_safe_div(metrics.click_count, duration),
        scroll_rate=_safe_div(metrics.scroll_count, duration),
        activity_density=_safe_div(actions, duration),
        deletion_rate=_safe_div(metrics.backspaces, metrics.keystrokes),
        avg_idle_gap=_safe_div(metrics.idle_time, metrics.click_count),
    )


def score_archetypes(
    metrics: Metrics, rates: Rates, config: Optional[ScoringConfig] = None
) -> Dict[Personality, int]:
    """Sum every rule that fires; keys keep the fixed archetype order."""
    c = config or ScoringConfig()
    m = metrics
    r = rates
    scores = {p: 0 for p in Personality}

    if r.avg_velocity > c.impulsive_velocity or r.click_rate > c.impulsive_click_rate:
        scores[Personality.IMPULSIVE] += c.impulsive_pace_points
    if m.max_velocity > c.impulsive_max_velocity:
        scores[Personality.IMPULSIVE] += c.impulsive_peak_points
    if m.jitter_count > c.impulsive_jitter:
        scores[Personality.IMPULSIVE] += c.impulsive_jitter_points

    if r.avg_velocity < c.analytical_velocity and r.avg_idle_gap > c.analytical_idle_gap_ms:
        scores[Personality.ANALYTICAL] += c.analytical_pace_points
    if m.idle_time > c.analytical_idle_time_ms:
        scores[Personality.ANALYTICAL] += c.analytical_idle_points
    if m.keystrokes > c.analytical_keystrokes and r.deletion_rate < c.analytical_deletion_rate:
        scores[Personality.ANALYTICAL] += c.analytical_typing_points

    if r.deletion_rate > c.perfectionist_deletion_rate:
        scores[Personality.PERFECTIONIST] += c.perfectionist_deletion_points
    if m.backspaces > c.perfectionist_backspaces:
        scores[Personality.PERFECTIONIST] += c.perfectionist_backspace_points
    if r.avg_velocity < c.perfectionist_velocity and m.jitter_count < c.perfectionist_jitter:
        scores[Personality.PERFECTIONIST] += c.perfectionist_precision_points

    if m.mouse_distance < c.observer_distance_px and m.click_count < c.observer_clicks:
        scores[Personality.OBSERVER] += c.observer_stillness_points
    if m.keystrokes < c.observer_keystrokes and m.scroll_count < c.observer_scrolls:
        scores[Personality.OBSERVER] += c.observer_quiet_points

    if r.activity_density > c.restless_density:
        scores[Personality.RESTLESS] += c.restless_density_points
    if m.direction_changes > c.restless_direction_changes:
        scores[Personality.RESTLESS] += c.restless_direction_points
    if r.scroll_rate > c.restless_scroll_rate:
        scores[Personality.RESTLESS] += c.restless_scroll_points

    return scores


def rank(scores: Dict[Personality, int]) -> List[Tuple[Personality, int]]:
    """Descending by score; equal scores keep the fixed archetype order."""
    ordered = [(p, scores.get(p, 0)) for p in Personality]
    return sorted(ordered, key=lambda item: -item[1])


def pick_personality(
    scores: Dict[Personality, int],
    metrics: Metrics,
    rates: Rates,
    config: Optional[ScoringConfig] = None,
) -> Personality:
    c = config or ScoringConfig()
    ranked = rank(scores)
    (first, top), (second, runner_up) = ranked[0], ranked[1]

    if top <= 0:
        # No rule fired: near-inert session.
        if metrics.mouse_distance > c.fallback_distance_px:
            return Personality.RESTLESS
        if metrics.backspaces > 0:
            return Personality.PERFECTIONIST
        if metrics.click_count > c.fallback_clicks:
            return Personality.IMPULSIVE
        return Personality.OBSERVER

    if top == runner_up:
        tied = (first, second)
        if Personality.IMPULSIVE in tied and rates.avg_velocity > c.tiebreak_velocity:
            return Personality.IMPULSIVE
        if Personality.ANALYTICAL in tied and rates.avg_idle_gap > c.tiebreak_idle_gap_ms:
            return Personality.ANALYTICAL
    return first


def compute_scores(rates: Rates) -> Scores:
    r = rates
    focus = normalize(r.avg_velocity * 20 + r.activity_density * 10)
    hesitation = normalize(r.deletion_rate * 50 + r.avg_idle_gap / 100)
    energy = normalize(min(100.0, _finite(r.activity_density * 10)))

    total = _finite(r.click_rate + r.scroll_rate)
    if total > 0:
        control_bias = _round_half_up(_finite(r.click_rate / total * 100))
        control_bias = max(0, min(100, control_bias))
    else:
        control_bias = 50

    return Scores(focus=focus, hesitation=hesitation, control_bias=control_bias, energy=energy)


def classify(
    metrics: Metrics,
    duration_ms: float = DEFAULT_DURATION_MS,
    config: Optional[ScoringConfig] = None,
    start_time: Optional[float] = None,
) -> Result:
    """Metrics snapshot → (personality, sub-scores).

    `start_time` is the session start on the same clock as the metrics; it
    anchors the activity span when no pointer sample was recorded.
    """
    rates = derive_rates(metrics, duration_ms, start_time)
    scores = score_archetypes(metrics, rates, config)
    personality = pick_personality(scores, metrics, rates, config)
    logger.info(
        "Classified as %s (scores: %s)",
        personality.value,
        ", ".join(f"{p.value}={s}" for p, s in scores.items()),
    )
    return Result(personality=personality, scores=compute_scores(rates))


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Turns one session's raw counters into an archetype and four sub-scores.
#
# Rule table (points per rule, rules for one archetype can all fire):
#   Impulsive      fast pace or frequent clicks 20, peak speed 15, jitter 15
#   Analytical     slow with long gaps 25, lots of idle 15, clean typing 10
#   Perfectionist  heavy deletion 25, many backspaces 15, precise pointer 10
#   Observer       still pointer, few clicks 30, little typing/scrolling 20
#   Restless       dense activity 20, many reversals 15, frequent scrolls 15
#
# Data flow:
#   SessionController._complete() → classify(metrics, duration, start) → Result
#   (any exception there is replaced by FALLBACK_RESULT by the controller)
