"""Demo data seeder for the nightly MPI job.

Creates a small baseball and softball pool with deterministic sub-indexes,
a mix of dual-graded sessions and a few governance flags, so the job can be
exercised end to end against a fresh database.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta

from alembic import command
from alembic.config import Config
from sqlalchemy import select
from sqlalchemy.orm import Session

from ranking.db import session_scope
from ranking.models import AthleteRankingSettings, GovernanceFlag, PerformanceSession

# (athlete_id, sport, tier, base sub-index level, sessions, dual-graded every nth)
DEMO_ATHLETES = [
    (101, "baseball", "college_d1", 72, 65, 2),
    (102, "baseball", "hs_varsity", 64, 70, 2),
    (103, "baseball", "milb", 58, 62, 1),
    (104, "baseball", "travel", 81, 20, 3),
    (201, "softball", "college_d2", 69, 61, 2),
    (202, "softball", "ausl", 55, 64, 2),
]

DEMO_FLAGS = [
    (102, "warning", 3),
    (103, "info", 10),
    (104, "critical", 1),
]

SUB_INDEX_OFFSETS = {"bqi": 0, "fqi": -6, "pei": -4, "decision": 3, "competitive_execution": 1}


def run_migrations() -> None:
    cfg = Config("alembic.ini")
    command.upgrade(cfg, "head")


def _demo_sessions(athlete_id: int, sport: str, base: int, count: int, graded_every: int, today: date):
    rows = []
    for i in range(count):
        swing = (i % 5) - 2
        indexes = {name: max(0, min(100, base + off + swing)) for name, off in SUB_INDEX_OFFSETS.items()}
        graded = i % graded_every == 0
        rows.append(
            PerformanceSession(
                athlete_id=athlete_id,
                sport=sport,
                session_date=today - timedelta(days=i % 85),
                session_type="game" if i % 4 == 0 else "team_practice",
                composite_indexes=indexes,
                player_grade=float(base + swing + 3) if graded else None,
                coach_grade=float(base + swing) if graded else None,
            )
        )
    return rows


def seed_demo_pool(s: Session, today: date | None = None, now: datetime | None = None) -> bool:
    """Insert demo settings, sessions and flags. Returns False if already seeded."""
    today = today or date.today()
    now = now or datetime.utcnow()
    if s.execute(select(AthleteRankingSettings.id)).first():
        return False

    for athlete_id, sport, tier, base, count, graded_every in DEMO_ATHLETES:
        s.add(AthleteRankingSettings(athlete_id=athlete_id, sport=sport, league_tier=tier))
        s.add_all(_demo_sessions(athlete_id, sport, base, count, graded_every, today))

    for athlete_id, severity, age_days in DEMO_FLAGS:
        s.add(GovernanceFlag(athlete_id=athlete_id, severity=severity, created_at=now - timedelta(days=age_days)))
    s.flush()
    return True


if __name__ == "__main__":
    run_migrations()
    with session_scope() as s:
        seeded = seed_demo_pool(s)
    print(f"demo_pool_seeded={seeded}")
