"""Score aggregation over an athlete's trailing window of sessions.

Each session is reduced to a weighted composite of its sub-indexes, then
the window is reduced to the unweighted mean of those session scores.
Grading metrics compare player self-grades against coach grades on the
sessions where both exist.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from statistics import mean, pstdev
from typing import Any, Iterable, Mapping

from ranking.config import DEFAULT_SUB_INDEX_WEIGHTS

logger = logging.getLogger(__name__)

GAME_SESSION_TYPES = frozenset({"game", "live_scrimmage"})
FATIGUE_LOW_LEVEL = 2


@dataclass(frozen=True)
class SessionRecord:
    """Read-only view of one performance session."""
    athlete_id: int
    sport: str
    session_date: date
    sub_indexes: Mapping[str, Any] = field(default_factory=dict)
    player_grade: float | None = None
    coach_grade: float | None = None
    session_type: str = "solo_practice"
    locked: bool = False
    effective_grade: float | None = None
    fatigue_state: Mapping[str, Any] | None = None

    @property
    def dual_graded(self) -> bool:
        return self.player_grade is not None and self.coach_grade is not None


@dataclass(frozen=True)
class AggregateResult:
    avg_score: float
    session_count: int
    grading_delta: float
    dual_graded_count: int
    composites: dict[str, float]
    delta_maturity_index: float | None = None
    game_practice_ratio: float | None = None
    fatigue_correlation_flag: bool = False


def _as_mapping(indexes: Any) -> Mapping[str, Any]:
    if indexes is None:
        return {}
    if not isinstance(indexes, Mapping):
        logger.warning("sub-index payload is %s, not an object; treating as empty", type(indexes).__name__)
        return {}
    return indexes


def _sub_index_value(indexes: Mapping[str, Any], name: str) -> float:
    value = indexes.get(name)
    if value is None:
        return 0.0
    if isinstance(value, bool):
        logger.warning("sub-index %s is boolean, treating as 0", name)
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("sub-index %s has invalid value %r, treating as 0", name, value)
        return 0.0
    if math.isnan(number) or math.isinf(number):
        logger.warning("sub-index %s is not finite, treating as 0", name)
        return 0.0
    return number


def session_score(indexes: Any, weights: Mapping[str, float] | None = None) -> float:
    """Weighted composite for one session; missing sub-indexes count as 0."""
    weights = weights or DEFAULT_SUB_INDEX_WEIGHTS
    indexes = _as_mapping(indexes)
    return sum(w * _sub_index_value(indexes, name) for name, w in weights.items())


def grading_delta(sessions: Iterable[SessionRecord]) -> float:
    """Mean absolute player-vs-coach grade gap; 0.0 with no dual-graded sessions."""
    gaps = [abs(s.player_grade - s.coach_grade) for s in sessions if s.dual_graded]
    return mean(gaps) if gaps else 0.0


def delta_maturity_index(sessions: Iterable[SessionRecord], min_samples: int = 3) -> float | None:
    """Spread (population stdev) of signed player-minus-coach deltas.

    A low value means self-grading tracks coach grading consistently.
    Returns None until at least `min_samples` dual-graded sessions exist.
    """
    deltas = [s.player_grade - s.coach_grade for s in sessions if s.dual_graded]
    if len(deltas) < min_samples:
        return None
    return round(pstdev(deltas), 2)


def game_practice_ratio(sessions: Iterable[SessionRecord]) -> float | None:
    games = practice = 0
    for s in sessions:
        if s.session_type in GAME_SESSION_TYPES:
            games += 1
        else:
            practice += 1
    if practice == 0:
        return None
    return games / practice


def _fatigued(state: Any) -> bool:
    if not isinstance(state, Mapping):
        return False
    for key in ("body", "overall"):
        value = state.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value <= FATIGUE_LOW_LEVEL:
            return True
    return False


def fatigue_correlation_flag(
    sessions: Iterable[SessionRecord],
    min_samples: int = 3,
    grade_cutoff: float = 60.0,
    share: float = 0.6,
) -> bool:
    """True when the athlete keeps grading high while reporting low body or overall energy.

    Considers sessions logged with `body <= 2` or `overall <= 2`. Needs at least
    `min_samples` of them, and more than `share` of those graded above
    `grade_cutoff` (effective grade, else player grade, else 0).
    """
    tired = [s for s in sessions if _fatigued(s.fatigue_state)]
    if len(tired) < min_samples:
        return False
    high = 0
    for s in tired:
        grade = s.effective_grade if s.effective_grade is not None else s.player_grade
        if (grade or 0) > grade_cutoff:
            high += 1
    return high / len(tired) > share


def aggregate_sessions(
    sessions: list[SessionRecord],
    weights: Mapping[str, float] | None = None,
) -> AggregateResult | None:
    """Reduce qualifying sessions to the athlete's raw score and grading metrics.

    Returns None when there are no sessions, which excludes the athlete
    from the run.
    """
    if not sessions:
        return None
    weights = weights or DEFAULT_SUB_INDEX_WEIGHTS

    indexes = [_as_mapping(s.sub_indexes) for s in sessions]
    scores = [session_score(i, weights) for i in indexes]
    count = len(sessions)
    composites = {
        name: sum(_sub_index_value(i, name) for i in indexes) / count
        for name in weights
    }

    return AggregateResult(
        avg_score=mean(scores),
        session_count=count,
        grading_delta=grading_delta(sessions),
        dual_graded_count=sum(1 for s in sessions if s.dual_graded),
        composites=composites,
        delta_maturity_index=delta_maturity_index(sessions),
        game_practice_ratio=game_practice_ratio(sessions),
        fatigue_correlation_flag=fatigue_correlation_flag(sessions),
    )
