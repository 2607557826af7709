"""
Seed Data Generator — stores classified results from synthetic personas.

Each persona is a rough behavioral profile; random noise is applied, the
metrics are classified exactly as a live session would be, and the result
is saved so the "welcome back" path and the database can be exercised
without sitting through real sessions.

Run: python scripts/seed_data.py [count]
"""

import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adaptive_mirror.data.database import Database
from adaptive_mirror.data.models import Metrics, ResultRecord
from adaptive_mirror.data.repository import Repository
from adaptive_mirror.scoring.classifier import classify

# field → (low, high) ranges for one 30-second window
PERSONAS = {
    "sprinter": {
        "mouse_distance": (4000, 9000), "velocity_count": (150, 300),
        "avg_velocity": (1.3, 2.5), "max_velocity": (3.5, 8.0),
        "jitter_count": (30, 80), "click_count": (12, 25),
    },
    "thinker": {
        "mouse_distance": (300, 900), "velocity_count": (20, 60),
        "avg_velocity": (0.1, 0.4), "click_count": (2, 4),
        "idle_time": (12000, 20000),
    },
    "editor": {
        "mouse_distance": (200, 500), "velocity_count": (10, 40),
        "avg_velocity": (0.2, 0.6), "keystrokes": (30, 60),
        "backspaces": (8, 20),
    },
    "watcher": {
        "mouse_distance": (0, 300), "velocity_count": (0, 10),
        "avg_velocity": (0.0, 0.3), "click_count": (0, 2),
    },
    "fidget": {
        "mouse_distance": (3000, 6000), "velocity_count": (200, 400),
        "avg_velocity": (0.6, 1.1), "direction_changes": (35, 80),
        "scroll_count": (18, 40), "click_count": (5, 10),
    },
}

INT_FIELDS = {
    "velocity_count", "jitter_count", "click_count", "keystrokes",
    "backspaces", "scroll_count", "direction_changes",
}


def synthesize(profile: dict) -> Metrics:
    m = Metrics()
    avg_velocity = 0.0
    for name, (low, high) in profile.items():
        value = random.uniform(low, high)
        if name == "avg_velocity":
            avg_velocity = value
        elif name in INT_FIELDS:
            setattr(m, name, int(value))
        else:
            setattr(m, name, value)
    m.velocity_sum = avg_velocity * m.velocity_count
    return m


def seed(count: int = 20) -> None:
    db = Database()
    db.connect()
    repo = Repository(db.conn)

    for i in range(count):
        persona = random.choice(list(PERSONAS))
        metrics = synthesize(PERSONAS[persona])
        result = classify(metrics)
        repo.save_result(ResultRecord(
            session_id=f"SEED{i:04d}",
            personality=result.personality,
            scores=result.scores,
            distance_px=int(round(metrics.mouse_distance)),
            interactions=metrics.interactions,
        ))
        print(f"{persona:>9} → {result.personality.value}")

    print(f"Seeded {count} results ({repo.count_results()} stored).")
    db.close()


if __name__ == "__main__":
    seed(int(sys.argv[1]) if len(sys.argv) > 1 else 20)
