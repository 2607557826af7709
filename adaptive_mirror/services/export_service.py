"""
Export Service — writes a completed result to a JSON file.

File name: adaptive-mirror-result-<epoch ms>-<4 random chars>.json
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from adaptive_mirror.data.models import Result

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "adaptive-mirror-result"
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def export_filename(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(4))
    return f"{FILENAME_PREFIX}-{now_ms}-{suffix}.json"


def build_export_payload(
    result: Result,
    session_id: str,
    screen: Tuple[int, int, int] = (0, 0, 0),
    timestamp: Optional[datetime] = None,
) -> dict:
    """`screen` is (width, height, color depth)."""
    timestamp = timestamp or datetime.now(timezone.utc)
    width, height, depth = screen
    return {
        "personality": result.personality.value,
        "scores": {
            "focus": result.scores.focus,
            "hesitation": result.scores.hesitation,
            "controlBias": result.scores.control_bias,
            "energy": result.scores.energy,
        },
        "timestamp": timestamp.isoformat(),
        "sessionId": session_id,
        "screen": {"width": width, "height": height, "colorDepth": depth},
    }


def write_export(
    result: Result,
    session_id: str,
    directory: Path,
    screen: Tuple[int, int, int] = (0, 0, 0),
) -> Path:
    """Write the export file into `directory`. OSError propagates to the caller."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename()
    payload = build_export_payload(result, session_id, screen)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    logger.info("Exported result to %s", path)
    return path
