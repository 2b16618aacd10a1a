from __future__ import annotations

from datetime import date


class RankingError(RuntimeError):
    """Base class for nightly ranking job errors."""


class HousekeepingError(RankingError):
    """Flag cleanup or session locking failed; the run cannot continue."""

    def __init__(self, step: str, cause: BaseException):
        super().__init__(f"housekeeping step '{step}' failed: {cause}")
        self.step = step
        self.cause = cause


class SnapshotConflict(RankingError):
    """A snapshot for (athlete, sport, calculation_date) already exists."""

    def __init__(self, athlete_id: int, sport: str, calculation_date: date):
        super().__init__(f"snapshot already exists for athlete={athlete_id} sport={sport} date={calculation_date}")
        self.athlete_id = athlete_id
        self.sport = sport
        self.calculation_date = calculation_date
