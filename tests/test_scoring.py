"""Unit tests for the archetype classifier."""

import math
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adaptive_mirror.config import ScoringConfig
from adaptive_mirror.data.models import Metrics, Personality, Scores
from adaptive_mirror.scoring.classifier import (
    FALLBACK_RESULT, Rates, classify, compute_scores, derive_rates,
    effective_duration_sec, normalize, pick_personality, rank, score_archetypes,
)

P = Personality


def _zero_scores(**overrides):
    scores = {p: 0 for p in Personality}
    scores.update(overrides)
    return scores


class TestScenarios:
    def test_fast_clicker_is_impulsive(self):
        m = Metrics(
            velocity_sum=150.0, velocity_count=100, click_count=15,
            max_velocity=4.0, jitter_count=50,
        )
        rates = derive_rates(m)
        assert rates.avg_velocity == pytest.approx(1.5)
        assert rates.click_rate == pytest.approx(0.5)

        scores = score_archetypes(m, rates)
        assert scores[P.IMPULSIVE] == 50

        result = classify(m)
        assert result.personality == P.IMPULSIVE
        assert result.scores == Scores(focus=35, hesitation=5, control_bias=100, energy=5)

    def test_quiet_user_is_observer(self):
        m = Metrics(mouse_distance=200.0, click_count=1, keystrokes=2, scroll_count=1)
        scores = score_archetypes(m, derive_rates(m))
        assert scores[P.OBSERVER] == 50
        assert scores[P.PERFECTIONIST] == 10

        result = classify(m)
        assert result.personality == P.OBSERVER
        assert result.scores.control_bias == 50
        assert result.scores.focus == 5
        assert result.scores.energy == 5

    def test_heavy_editor_is_perfectionist(self):
        m = Metrics(keystrokes=20, backspaces=8, velocity_sum=3.0, velocity_count=10)
        scores = score_archetypes(m, derive_rates(m))
        # heavy deletion 25 + backspaces 15 + precise pointer 10
        assert scores[P.PERFECTIONIST] == 50
        assert classify(m).personality == P.PERFECTIONIST

    def test_slow_with_long_gaps_is_analytical(self):
        m = Metrics(
            velocity_sum=3.0, velocity_count=10, click_count=4,
            idle_time=12000.0, mouse_distance=900.0, keystrokes=6,
        )
        rates = derive_rates(m)
        assert rates.avg_idle_gap == pytest.approx(3000.0)
        scores = score_archetypes(m, rates)
        assert scores[P.ANALYTICAL] == 40
        assert classify(m).personality == P.ANALYTICAL

    def test_dense_reversing_scroller_is_restless(self):
        m = Metrics(
            mouse_distance=4000.0, velocity_sum=80.0, velocity_count=100,
            direction_changes=45, scroll_count=20, click_count=10, keystrokes=5,
        )
        scores = score_archetypes(m, derive_rates(m))
        assert scores[P.RESTLESS] == 50
        assert classify(m).personality == P.RESTLESS


class TestZeroScoreFallback:
    def test_long_distance_is_restless(self):
        m = Metrics(mouse_distance=2500.0)
        assert pick_personality(_zero_scores(), m, derive_rates(m)) == P.RESTLESS

    def test_any_backspace_is_perfectionist(self):
        m = Metrics(mouse_distance=100.0, backspaces=2)
        assert pick_personality(_zero_scores(), m, derive_rates(m)) == P.PERFECTIONIST

    def test_many_clicks_is_impulsive(self):
        m = Metrics(click_count=6)
        assert pick_personality(_zero_scores(), m, derive_rates(m)) == P.IMPULSIVE

    def test_nothing_is_observer(self):
        m = Metrics()
        assert pick_personality(_zero_scores(), m, derive_rates(m)) == P.OBSERVER

    def test_reached_through_classify_with_silent_rules(self):
        config = ScoringConfig(observer_quiet_points=0, perfectionist_precision_points=0)
        result = classify(Metrics(mouse_distance=2500.0), config=config)
        assert result.personality == P.RESTLESS

    def test_all_zero_session_with_default_rules(self):
        # Quiet (20) and precise (10) rules fire for an untouched session.
        assert classify(Metrics()).personality == P.OBSERVER


class TestTieBreaks:
    def test_impulsive_preferred_when_fast(self):
        scores = _zero_scores(**{P.IMPULSIVE: 20, P.ANALYTICAL: 20})
        rates = Rates(avg_velocity=1.3)
        assert pick_personality(scores, Metrics(), rates) == P.IMPULSIVE

    def test_analytical_preferred_with_long_gaps(self):
        scores = _zero_scores(**{P.ANALYTICAL: 25, P.PERFECTIONIST: 25})
        rates = Rates(avg_velocity=0.2, avg_idle_gap=2500.0)
        assert pick_personality(scores, Metrics(), rates) == P.ANALYTICAL

    def test_analytical_over_impulsive_when_slow(self):
        scores = _zero_scores(**{P.IMPULSIVE: 20, P.ANALYTICAL: 20})
        rates = Rates(avg_velocity=0.5, avg_idle_gap=2500.0)
        assert pick_personality(scores, Metrics(), rates) == P.ANALYTICAL

    def test_otherwise_fixed_order_wins(self):
        scores = _zero_scores(**{P.PERFECTIONIST: 30, P.OBSERVER: 30})
        rates = Rates(avg_velocity=2.0, avg_idle_gap=5000.0)
        assert pick_personality(scores, Metrics(), rates) == P.PERFECTIONIST

    def test_preference_only_applies_to_tied_pair(self):
        scores = _zero_scores(**{P.OBSERVER: 30, P.RESTLESS: 30, P.IMPULSIVE: 10})
        rates = Rates(avg_velocity=2.0)
        assert pick_personality(scores, Metrics(), rates) == P.OBSERVER

    def test_rank_is_stable(self):
        ranked = rank(_zero_scores(**{P.RESTLESS: 15, P.ANALYTICAL: 15}))
        assert [p for p, _ in ranked[:2]] == [P.ANALYTICAL, P.RESTLESS]


class TestDuration:
    def test_activity_span(self):
        m = Metrics(first_activity_time=1000.0, last_activity_time=11000.0)
        assert effective_duration_sec(m) == pytest.approx(10.0)

    def test_missing_timestamps_use_window(self):
        assert effective_duration_sec(Metrics(last_activity_time=5000.0)) == 30.0
        assert effective_duration_sec(Metrics()) == 30.0
        assert effective_duration_sec(Metrics(), start_time=1000.0) == 30.0

    def test_session_start_anchors_span_without_pointer(self):
        m = Metrics(last_activity_time=5000.0)
        assert effective_duration_sec(m, start_time=1000.0) == pytest.approx(4.0)

    def test_pointer_anchor_wins_over_session_start(self):
        m = Metrics(first_activity_time=3000.0, last_activity_time=5000.0)
        assert effective_duration_sec(m, start_time=1000.0) == pytest.approx(2.0)

    def test_untouched_session_uses_window(self):
        # last activity stays at the session start when nothing happens
        m = Metrics(last_activity_time=1000.0)
        assert effective_duration_sec(m, start_time=1000.0) == 30.0

    def test_empty_span_uses_window(self):
        m = Metrics(first_activity_time=500.0, last_activity_time=500.0)
        assert effective_duration_sec(m) == 30.0

    def test_short_span_clamped_to_one_second(self):
        m = Metrics(first_activity_time=0.0, last_activity_time=100.0)
        assert effective_duration_sec(m) == 1.0

    def test_long_span_clamped_to_window(self):
        m = Metrics(first_activity_time=0.0, last_activity_time=45000.0)
        assert effective_duration_sec(m) == 30.0

    def test_custom_window(self):
        assert effective_duration_sec(Metrics(), duration_ms=10000) == 10.0

    def test_rates_use_activity_span(self):
        m = Metrics(first_activity_time=0.0, last_activity_time=10000.0, click_count=5)
        assert derive_rates(m).click_rate == pytest.approx(0.5)

    def test_click_only_session_is_impulsive(self):
        m = Metrics(last_activity_time=10600.0, click_count=6)
        assert classify(m).personality == P.OBSERVER
        result = classify(m, start_time=1000.0)
        assert result.personality == P.IMPULSIVE
        assert result.scores.control_bias == 100


class TestRates:
    def test_zero_denominators(self):
        rates = derive_rates(Metrics(backspaces=4, idle_time=3000.0))
        assert rates.avg_velocity == 0
        assert rates.deletion_rate == 0
        assert rates.avg_idle_gap == 0

    def test_non_finite_sums_become_zero(self):
        rates = derive_rates(Metrics(velocity_sum=math.nan, velocity_count=5))
        assert rates.avg_velocity == 0
        rates = derive_rates(Metrics(velocity_sum=math.inf, velocity_count=5))
        assert rates.avg_velocity == 0


class TestSubScores:
    @pytest.mark.parametrize("value, expected", [
        (2.5, 5), (120.0, 95), (50.5, 51), (5.5, 6), (94.5, 95),
        (math.nan, 5), (math.inf, 5), (-10.0, 5),
    ])
    def test_normalize(self, value, expected):
        assert normalize(value) == expected

    def test_hesitation(self):
        rates = Rates(deletion_rate=0.5, avg_idle_gap=3000.0)
        assert compute_scores(rates).hesitation == 55

    def test_energy_capped(self):
        assert compute_scores(Rates(activity_density=50.0)).energy == 95

    @pytest.mark.parametrize("clicks, scrolls, expected", [
        (1.0, 0.0, 100), (0.0, 1.0, 0), (1.0, 1.0, 50),
        (1.0, 2.0, 33), (2.0, 1.0, 67), (0.0, 0.0, 50),
    ])
    def test_control_bias(self, clicks, scrolls, expected):
        rates = Rates(click_rate=clicks, scroll_rate=scrolls)
        assert compute_scores(rates).control_bias == expected

    def test_ranges(self):
        s = compute_scores(Rates(avg_velocity=99, activity_density=99, deletion_rate=9))
        for value in (s.focus, s.hesitation, s.energy):
            assert 5 <= value <= 95


class TestFallbackResult:
    def test_fallback_result(self):
        assert FALLBACK_RESULT.personality == P.OBSERVER
        assert FALLBACK_RESULT.scores == Scores(50, 50, 50, 50)
