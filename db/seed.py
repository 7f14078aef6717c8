"""Demo roster seeder.

Creates one trainer with three players whose cached insight bundles cover
the healthy, caution and at-risk paths, so the coach dashboard has data
before any Sahha profile is connected.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select

from core.db import init_db, session_scope
from core.models import Player, Trainer


def _comparison(name: str, value: str, state: str, category: str = "", percentile: float | None = None) -> dict[str, Any]:
    return {
        "Name": name,
        "Category": category,
        "Value": value,
        "State": state,
        "Percentile": percentile,
        "percentageDifference": "0",
    }


def _score_trend(now: datetime, change: float) -> dict[str, Any]:
    yesterday = now - timedelta(days=1)
    return {
        "Name": "readiness_score",
        "Category": "score",
        "Data": [
            {"StartDateTime": (yesterday - timedelta(days=1)).isoformat(), "Value": 70, "percentChangeFromPrevious": 0},
            {"StartDateTime": yesterday.isoformat(), "Value": 74, "percentChangeFromPrevious": change},
        ],
    }


DEMO_PLAYERS: list[dict[str, Any]] = [
    {
        "first_name": "Maya",
        "last_name": "Okafor",
        "email": "maya.okafor@example.com",
        "comparisons": [
            _comparison("resting_heart_rate", "52", "good", "vitals", 90),
            _comparison("heart_rate_variability", "78", "optimal", "vitals", 88),
            _comparison("sleep_duration", "8.1", "good", "sleep", 92),
            _comparison("steps", "11250", "good", "activity", 90),
        ],
        "trend_change": 4.0,
    },
    {
        "first_name": "Luis",
        "last_name": "Alvarez",
        "email": "luis.alvarez@example.com",
        "comparisons": [
            _comparison("resting_heart_rate", "64", "caution", "vitals"),
            _comparison("sleep_quality", "61", "warning", "sleep"),
            _comparison("steps", "6400", "good", "activity"),
        ],
        "trend_change": -2.5,
    },
    {
        "first_name": "Jordan",
        "last_name": "Reed",
        "email": "jordan.reed@example.com",
        "comparisons": [
            _comparison("resting_heart_rate", "81", "at_risk", "vitals", 35),
            _comparison("heart_rate_recovery", "14", "poor", "vitals", 30),
            _comparison("sleep_duration", "5.2", "at_risk", "sleep", 40),
        ],
        "trend_change": -9.0,
    },
]


def seed_demo_roster(now: datetime | None = None) -> int:
    """Insert the demo trainer and players; returns the trainer id. Idempotent."""
    now = now or datetime.now(timezone.utc)
    init_db()
    with session_scope() as s:
        trainer = s.execute(select(Trainer).where(Trainer.username == "coach.demo")).scalar_one_or_none()
        if trainer is not None:
            return trainer.id

        trainer = Trainer(username="coach.demo", first_name="Demo", last_name="Coach")
        for demo in DEMO_PLAYERS:
            trainer.players.append(
                Player(
                    first_name=demo["first_name"],
                    last_name=demo["last_name"],
                    email=demo["email"],
                    insights_json={
                        "Trends": [_score_trend(now, demo["trend_change"])],
                        "Comparisons": demo["comparisons"],
                    },
                    insights_synced_at=now,
                )
            )
        s.add(trainer)
        s.flush()
        return trainer.id


if __name__ == "__main__":
    print(f"Seeded demo roster for trainer {seed_demo_roster()}")
