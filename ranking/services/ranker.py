"""Pool ranking: order a sport pool by adjusted score and derive rank metrics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ranking.config import ScoringPolicy

_SEGMENTS: dict[str, tuple[str, ...]] = {
    "youth": ("rec", "travel"),
    "hs": ("hs_jv", "hs_varsity"),
    "college": ("college_d3", "college_d2", "college_d1"),
    "pro": ("indie_pro", "milb", "mlb", "ausl"),
}


@dataclass(frozen=True)
class PoolEntry:
    athlete_id: int
    adjusted_score: float
    session_count: int


@dataclass(frozen=True)
class RankedEntry:
    athlete_id: int
    adjusted_score: float
    session_count: int
    rank: int | None
    percentile: float | None
    pool_size: int
    pro_probability: float
    pro_probability_capped: bool

    @property
    def ranked(self) -> bool:
        return self.rank is not None


def tier_segment(tier: str | None) -> str:
    """Map a league tier onto its development segment label."""
    key = (tier or "").strip().lower()
    for segment, tiers in _SEGMENTS.items():
        if key in tiers:
            return segment
    return "general"


def pro_probability(adjusted_score: float, policy: ScoringPolicy) -> tuple[float, bool]:
    """Capped probability-like metric and whether the cap was reached."""
    raw = adjusted_score * policy.pro_probability_factor
    return min(policy.pro_probability_cap, raw), raw >= policy.pro_probability_cap


def percentile_for(rank: int, pool_size: int) -> float:
    if pool_size <= 0:
        return 0.0
    return (pool_size - rank) / pool_size * 100.0


def rank_pool(entries: Iterable[PoolEntry], policy: ScoringPolicy) -> list[RankedEntry]:
    """Rank a pool descending by adjusted score.

    Ranks are 1..N by position; equal scores keep their input order and
    still receive distinct ranks.
    """
    ordered = sorted(entries, key=lambda e: e.adjusted_score, reverse=True)
    pool_size = len(ordered)
    ranked: list[RankedEntry] = []
    for index, entry in enumerate(ordered):
        rank = index + 1
        prob, capped = pro_probability(entry.adjusted_score, policy)
        ranked.append(
            RankedEntry(
                athlete_id=entry.athlete_id,
                adjusted_score=entry.adjusted_score,
                session_count=entry.session_count,
                rank=rank,
                percentile=percentile_for(rank, pool_size),
                pool_size=pool_size,
                pro_probability=prob,
                pro_probability_capped=capped,
            )
        )
    return ranked


def unranked_entry(entry: PoolEntry, pool_size: int, policy: ScoringPolicy) -> RankedEntry:
    """Informational entry for an athlete scored but held out of the ranked set."""
    prob, capped = pro_probability(entry.adjusted_score, policy)
    return RankedEntry(
        athlete_id=entry.athlete_id,
        adjusted_score=entry.adjusted_score,
        session_count=entry.session_count,
        rank=None,
        percentile=None,
        pool_size=pool_size,
        pro_probability=prob,
        pro_probability_capped=capped,
    )
