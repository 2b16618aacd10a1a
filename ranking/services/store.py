"""Reads against the session, flag, settings and snapshot stores.

Pool settings are read in keyset-paged batches so a large pool is never
materialised as one result set.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from ranking.models import AthleteRankingSettings, GovernanceFlag, MPISnapshot, PerformanceSession
from ranking.services.aggregator import SessionRecord
from ranking.services.eligibility import EligibilityGates

DEFAULT_PAGE_SIZE = 500


def iter_pool_settings(
    s: Session, sport: str, page_size: int = DEFAULT_PAGE_SIZE
) -> Iterator[AthleteRankingSettings]:
    """Yield non-excluded settings rows for one sport, ordered by id."""
    last_id = 0
    while True:
        page = s.scalars(
            select(AthleteRankingSettings)
            .where(
                AthleteRankingSettings.sport == sport,
                AthleteRankingSettings.admin_ranking_excluded.is_(False),
                AthleteRankingSettings.id > last_id,
            )
            .order_by(AthleteRankingSettings.id)
            .limit(page_size)
        ).all()
        if not page:
            return
        yield from page
        last_id = page[-1].id


def _to_record(row: PerformanceSession) -> SessionRecord:
    return SessionRecord(
        athlete_id=row.athlete_id,
        sport=row.sport,
        session_date=row.session_date,
        sub_indexes=row.composite_indexes or {},
        player_grade=row.player_grade,
        coach_grade=row.coach_grade,
        session_type=row.session_type or "",
        locked=bool(row.is_locked),
        effective_grade=row.effective_grade,
        fatigue_state=row.fatigue_state_at_session,
    )


def load_window_sessions(
    s: Session, athlete_id: int, sport: str, calculation_date: date, window_days: int
) -> list[SessionRecord]:
    """Non-deleted sessions dated within the trailing window ending on calculation_date."""
    since = calculation_date - timedelta(days=window_days)
    rows = s.scalars(
        select(PerformanceSession)
        .where(
            PerformanceSession.athlete_id == athlete_id,
            PerformanceSession.sport == sport,
            PerformanceSession.deleted_at.is_(None),
            PerformanceSession.session_date >= since,
            PerformanceSession.session_date <= calculation_date,
        )
        .order_by(PerformanceSession.session_date, PerformanceSession.id)
    ).all()
    return [_to_record(r) for r in rows]


def pending_flag_severities(s: Session, athlete_id: int) -> list[str]:
    return list(
        s.scalars(
            select(GovernanceFlag.severity).where(
                GovernanceFlag.athlete_id == athlete_id,
                GovernanceFlag.status == "pending",
            )
        ).all()
    )


def previous_score(s: Session, athlete_id: int, sport: str, before: date) -> float | None:
    """Adjusted score from the most recent snapshot dated before `before`."""
    return s.execute(
        select(MPISnapshot.adjusted_global_score)
        .where(
            MPISnapshot.athlete_id == athlete_id,
            MPISnapshot.sport == sport,
            MPISnapshot.calculation_date < before,
        )
        .order_by(MPISnapshot.calculation_date.desc())
        .limit(1)
    ).scalar_one_or_none()


def persist_gates(row: AthleteRankingSettings, gates: EligibilityGates, now: datetime) -> None:
    for column, value in gates.as_columns().items():
        setattr(row, column, value)
    row.updated_at = now
