"""Unit tests for configuration loading."""

import json
import logging
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adaptive_mirror.config import (
    MirrorConfig, ScoringConfig, TrackingConfig, load_config, save_config,
)


class TestDefaults:
    def test_tracking_defaults(self):
        t = TrackingConfig()
        assert t.session_duration_ms == 30000
        assert t.frame_floor_ms == 16
        assert t.idle_open_ms == 400
        assert t.idle_commit_ms == 500
        assert t.idle_resume_ms == 100
        assert t.result_reveal_delay_ms == 2500

    def test_sound_off_by_default(self):
        assert MirrorConfig().sound_enabled is False

    def test_scoring_points(self):
        s = ScoringConfig()
        assert s.observer_stillness_points == 30
        assert s.analytical_pace_points == 25


class TestFromDict:
    def test_partial_override(self):
        cfg = MirrorConfig.from_dict({"tracking": {"session_duration_ms": 10000}})
        assert cfg.tracking.session_duration_ms == 10000.0
        assert cfg.tracking.idle_open_ms == 400
        assert cfg.scoring == ScoringConfig()

    def test_values_cast_to_default_type(self):
        cfg = MirrorConfig.from_dict({"scoring": {"observer_clicks": "4"}})
        assert cfg.scoring.observer_clicks == 4

    def test_unknown_key_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            cfg = MirrorConfig.from_dict({"tracking": {"warp_speed": 9}})
        assert "warp_speed" in caplog.text
        assert cfg.tracking == TrackingConfig()

    def test_volume_clamped(self):
        assert MirrorConfig.from_dict({"volume": 3}).volume == 1.0
        assert MirrorConfig.from_dict({"volume": -1}).volume == 0.0

    def test_invalid_tracking_rejected(self):
        with pytest.raises(ValueError):
            MirrorConfig.from_dict({"tracking": {"session_duration_ms": 0}})
        with pytest.raises(ValueError):
            MirrorConfig.from_dict({"tracking": {"idle_commit_ms": 100}})


class TestLoadSave:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "nope.json")
        assert cfg == MirrorConfig()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "config" / "mirror.json"
        cfg = MirrorConfig(sound_enabled=True, volume=0.25)
        cfg.tracking.session_duration_ms = 20000.0
        save_config(cfg, path)
        loaded = load_config(path)
        assert loaded.sound_enabled is True
        assert loaded.volume == 0.25
        assert loaded.tracking.session_duration_ms == 20000.0

    @pytest.mark.parametrize("content", [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"tracking": {"session_duration_ms": -5}}),
        json.dumps({"scoring": {"observer_clicks": "many"}}),
        json.dumps({"tracking": "fast"}),
    ])
    def test_bad_file_falls_back(self, tmp_path, caplog, content):
        path = tmp_path / "mirror.json"
        path.write_text(content, encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            cfg = load_config(path)
        assert cfg == MirrorConfig()
        assert "Bad config" in caplog.text
