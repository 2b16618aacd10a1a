from __future__ import annotations

from dataclasses import dataclass

from ranking.config import ScoringPolicy


@dataclass(frozen=True)
class Trend:
    direction: str
    delta: float


def trend_direction(delta: float, threshold: float = 2.0) -> str:
    """Classify a score delta: 'rising', 'dropping', or 'stable' (absolute points)."""
    if delta > threshold:
        return "rising"
    if delta < -threshold:
        return "dropping"
    return "stable"


def compute_trend(new_score: float, previous_score: float | None, policy: ScoringPolicy) -> Trend:
    """Compare against the most recent prior snapshot; no prior snapshot reads as stable."""
    previous = new_score if previous_score is None else previous_score
    delta = new_score - previous
    return Trend(direction=trend_direction(delta, policy.trend_threshold), delta=delta)
