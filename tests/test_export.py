"""Unit tests for result export."""

import json
import re
import pytest
from datetime import datetime, timezone

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adaptive_mirror.data.models import Personality, Result, Scores
from adaptive_mirror.services.export_service import (
    build_export_payload, export_filename, write_export,
)

RESULT = Result(
    personality=Personality.RESTLESS,
    scores=Scores(focus=62, hesitation=18, control_bias=40, energy=71),
)


class TestExport:
    def test_filename(self):
        name = export_filename(now_ms=1700000000123)
        assert re.fullmatch(r"adaptive-mirror-result-1700000000123-[a-z0-9]{4}\.json", name)

    def test_filenames_differ(self):
        names = {export_filename(now_ms=1) for _ in range(20)}
        assert len(names) > 1

    def test_payload(self):
        when = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        payload = build_export_payload(RESULT, "K3J9QX2A", (1920, 1080, 24), when)
        assert payload == {
            "personality": "Restless",
            "scores": {"focus": 62, "hesitation": 18, "controlBias": 40, "energy": 71},
            "timestamp": "2026-01-02T03:04:05+00:00",
            "sessionId": "K3J9QX2A",
            "screen": {"width": 1920, "height": 1080, "colorDepth": 24},
        }

    def test_write_export(self, tmp_path):
        path = write_export(RESULT, "K3J9QX2A", tmp_path / "out", (800, 600, 32))
        assert path.parent == tmp_path / "out"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["personality"] == "Restless"
        assert data["sessionId"] == "K3J9QX2A"
        assert data["screen"]["colorDepth"] == 32
        assert data["scores"]["controlBias"] == 40
        assert "control_bias" not in data["scores"]
        assert datetime.fromisoformat(data["timestamp"]).tzinfo is not None

    def test_write_failure_propagates(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(OSError):
            write_export(RESULT, "ID", blocker)
