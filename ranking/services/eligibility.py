from __future__ import annotations

from dataclasses import asdict, dataclass

from ranking.config import ScoringPolicy


@dataclass(frozen=True)
class EligibilityGates:
    games_minimum_met: bool
    integrity_threshold_met: bool
    coach_validation_met: bool
    data_span_met: bool

    @property
    def ranking_eligible(self) -> bool:
        return (
            self.games_minimum_met
            and self.integrity_threshold_met
            and self.coach_validation_met
            and self.data_span_met
        )

    def as_columns(self) -> dict[str, bool]:
        """Gate fields as written onto athlete_mpi_settings."""
        cols = asdict(self)
        cols["ranking_eligible"] = self.ranking_eligible
        return cols


def coach_validation_ratio(session_count: int, dual_graded_count: int) -> float:
    if session_count <= 0:
        return 0.0
    return dual_graded_count / session_count


def evaluate_eligibility(
    session_count: int,
    integrity_score: float,
    dual_graded_count: int,
    policy: ScoringPolicy,
) -> EligibilityGates:
    """Evaluate the four ranking gates.

    Session count doubles as the data-span proxy (`min_data_span` sessions
    in the trailing window).
    """
    return EligibilityGates(
        games_minimum_met=session_count >= policy.min_games,
        integrity_threshold_met=integrity_score >= policy.min_integrity,
        coach_validation_met=coach_validation_ratio(session_count, dual_graded_count) >= policy.min_coach_validation,
        data_span_met=session_count >= policy.min_data_span,
    )
