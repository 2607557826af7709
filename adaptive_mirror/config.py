"""
Configuration — every tunable constant of the observation pipeline.

Defaults reproduce the original behavior exactly. A JSON file at
config/mirror.json (if present) is merged over the defaults, section by
section, so a partial file only overrides what it names.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "mirror.json"


@dataclass
class TrackingConfig:
    """Timing and signal-extraction constants."""
    session_duration_ms: float = 30000.0
    frame_floor_ms: float = 16.0
    jitter_distance_px: float = 5.0
    jitter_interval_ms: float = 50.0
    direction_change_speed: float = 0.3
    idle_poll_ms: int = 100
    countdown_tick_ms: int = 100
    idle_open_ms: float = 400.0
    idle_commit_ms: float = 500.0
    idle_resume_ms: float = 100.0
    scroll_throttle_ms: float = 100.0
    wheel_throttle_ms: float = 50.0
    max_transient_timers: int = 64
    result_reveal_delay_ms: int = 2500

    def validate(self) -> None:
        if self.session_duration_ms <= 0:
            raise ValueError("session_duration_ms must be positive")
        if self.idle_commit_ms < self.idle_open_ms:
            raise ValueError("idle_commit_ms must not be below idle_open_ms")
        if self.idle_poll_ms <= 0 or self.countdown_tick_ms <= 0:
            raise ValueError("poll intervals must be positive")
        if self.max_transient_timers < 1:
            raise ValueError("max_transient_timers must be at least 1")


@dataclass
class ScoringConfig:
    """Rule table thresholds and point values."""
    # Impulsive
    impulsive_velocity: float = 1.2
    impulsive_click_rate: float = 0.4
    impulsive_pace_points: int = 20
    impulsive_max_velocity: float = 3.0
    impulsive_peak_points: int = 15
    impulsive_jitter: int = 40
    impulsive_jitter_points: int = 15

    # Analytical
    analytical_velocity: float = 0.5
    analytical_idle_gap_ms: float = 2000.0
    analytical_pace_points: int = 25
    analytical_idle_time_ms: float = 10000.0
    analytical_idle_points: int = 15
    analytical_keystrokes: int = 50
    analytical_deletion_rate: float = 0.1
    analytical_typing_points: int = 10

    # Perfectionist
    perfectionist_deletion_rate: float = 0.15
    perfectionist_deletion_points: int = 25
    perfectionist_backspaces: int = 3
    perfectionist_backspace_points: int = 15
    perfectionist_velocity: float = 0.8
    perfectionist_jitter: int = 20
    perfectionist_precision_points: int = 10

    # Observer
    observer_distance_px: float = 600.0
    observer_clicks: int = 3
    observer_stillness_points: int = 30
    observer_keystrokes: int = 5
    observer_scrolls: int = 5
    observer_quiet_points: int = 20

    # Restless
    restless_density: float = 0.8
    restless_density_points: int = 20
    restless_direction_changes: int = 30
    restless_direction_points: int = 15
    restless_scroll_rate: float = 0.5
    restless_scroll_points: int = 15

    # Zero-score fallback chain
    fallback_distance_px: float = 2000.0
    fallback_clicks: int = 5

    # Tie-break support thresholds
    tiebreak_velocity: float = 1.0
    tiebreak_idle_gap_ms: float = 2000.0


@dataclass
class Capabilities:
    """
    Environment capabilities detected by the UI layer.

    The session controller carries these for its collaborators; scoring
    never reads them.
    """
    reduced_motion: bool = False
    audio_available: bool = False


@dataclass
class MirrorConfig:
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    sound_enabled: bool = False
    volume: float = 0.5
    reduced_motion: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "MirrorConfig":
        """Build a config from a (possibly partial) dict, keeping defaults."""
        cfg = cls()
        cfg.tracking = _merge_section(TrackingConfig, data.get("tracking", {}))
        cfg.scoring = _merge_section(ScoringConfig, data.get("scoring", {}))
        if "sound_enabled" in data:
            cfg.sound_enabled = bool(data["sound_enabled"])
        if "volume" in data:
            cfg.volume = max(0.0, min(float(data["volume"]), 1.0))
        if "reduced_motion" in data:
            cfg.reduced_motion = bool(data["reduced_motion"])
        cfg.tracking.validate()
        return cfg


def _merge_section(section_cls, overrides: dict):
    if not isinstance(overrides, dict):
        raise ValueError(f"{section_cls.__name__} section must be an object")
    known = {f.name: f for f in fields(section_cls)}
    kwargs = {}
    for key, value in overrides.items():
        if key not in known:
            logger.warning("Ignoring unknown %s key: %s", section_cls.__name__, key)
            continue
        default = getattr(section_cls(), key)
        kwargs[key] = type(default)(value)
    return section_cls(**kwargs)


def load_config(path: Optional[Path] = None) -> MirrorConfig:
    """Load config from JSON, falling back to defaults on any problem."""
    path = path or CONFIG_PATH
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level config must be an object")
            return MirrorConfig.from_dict(data)
        except (json.JSONDecodeError, ValueError, TypeError) as e:
            logger.warning("Bad config at %s (%s), using defaults.", path, e)
    return MirrorConfig()


def save_config(config: MirrorConfig, path: Optional[Path] = None) -> None:
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
