"""
Repository — the single place where SQL lives.

Every other module talks to Repository, never to raw SQL.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from .models import Personality, ResultRecord, Scores

logger = logging.getLogger(__name__)

# helper: parse ISO datetime strings from SQLite
_parse_dt = lambda s: datetime.fromisoformat(s) if s else None


class Repository:
    """Data-access layer wrapping a sqlite3 connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    # ── Results ─────────────────────────────────────────────────────────────

    def save_result(self, record: ResultRecord) -> ResultRecord:
        created = record.created_at or datetime.now()
        cur = self.conn.execute(
            """INSERT INTO results (
                session_id, personality, focus, hesitation, control_bias,
                energy, distance_px, interactions, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                record.session_id,
                record.personality.value,
                record.scores.focus,
                record.scores.hesitation,
                record.scores.control_bias,
                record.scores.energy,
                record.distance_px,
                record.interactions,
                created.isoformat(),
            ),
        )
        self.conn.commit()
        record.id = cur.lastrowid
        record.created_at = created
        logger.info("Saved result %d (%s)", record.id, record.personality.value)
        return record

    def get_latest_result(self) -> Optional[ResultRecord]:
        """Most recent stored result; a row that fails to parse is discarded."""
        row = self.conn.execute(
            "SELECT * FROM results ORDER BY id DESC LIMIT 1"
        ).fetchone()
        if not row:
            return None
        try:
            return self._row_to_record(row)
        except (ValueError, TypeError) as e:
            logger.warning("Discarding unreadable result %s: %s", row["id"], e)
            self.conn.execute("DELETE FROM results WHERE id = ?", (row["id"],))
            self.conn.commit()
            return None

    def has_previous_result(self) -> bool:
        return self.get_latest_result() is not None

    def count_results(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM results").fetchone()
        return row[0]

    def clear_results(self) -> None:
        self.conn.execute("DELETE FROM results")
        self.conn.commit()
        logger.warning("All stored results have been cleared.")

    # ── Row mappers ─────────────────────────────────────────────────────────

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ResultRecord:
        return ResultRecord(
            id=row["id"],
            session_id=row["session_id"],
            personality=Personality(row["personality"]),
            scores=Scores(
                focus=int(row["focus"]),
                hesitation=int(row["hesitation"]),
                control_bias=int(row["control_bias"]),
                energy=int(row["energy"]),
            ),
            distance_px=row["distance_px"] or 0,
            interactions=row["interactions"] or 0,
            created_at=_parse_dt(row["created_at"]),
        )
