"""Snapshot building and pool-atomic persistence.

Snapshots are append-only. A pool is written in a single flush inside the
caller's transaction, so readers see either every rank for the pool or
none of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from ranking.errors import SnapshotConflict
from ranking.models import MPISnapshot
from ranking.services.adjuster import Adjustment
from ranking.services.aggregator import AggregateResult
from ranking.services.eligibility import EligibilityGates
from ranking.services.ranker import RankedEntry
from ranking.services.trend import Trend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredAthlete:
    """Everything computed for one athlete before ranking."""
    athlete_id: int
    tier: str | None
    segment: str
    aggregate: AggregateResult
    adjustment: Adjustment
    gates: EligibilityGates

    @property
    def adjusted_score(self) -> float:
        return self.adjustment.adjusted_score


@dataclass
class WriteResult:
    written: int = 0
    conflicts: list[SnapshotConflict] = field(default_factory=list)


def build_snapshot(
    sport: str,
    calculation_date: date,
    scored: ScoredAthlete,
    entry: RankedEntry,
    trend: Trend,
    prompts: list[str],
) -> MPISnapshot:
    composites = scored.aggregate.composites
    return MPISnapshot(
        athlete_id=scored.athlete_id,
        sport=sport,
        calculation_date=calculation_date,
        segment_pool=f"{sport}_{scored.segment}",
        adjusted_global_score=entry.adjusted_score,
        global_rank=entry.rank,
        global_percentile=entry.percentile,
        total_athletes_in_pool=entry.pool_size,
        ranked=entry.ranked,
        ranking_eligible=scored.gates.ranking_eligible,
        pro_probability=entry.pro_probability,
        pro_probability_capped=entry.pro_probability_capped,
        trend_direction=trend.direction,
        trend_delta=trend.delta,
        integrity_score=scored.adjustment.integrity_score,
        sessions_count=scored.aggregate.session_count,
        grading_delta=scored.aggregate.grading_delta,
        composite_bqi=composites.get("bqi", 0.0),
        composite_fqi=composites.get("fqi", 0.0),
        composite_pei=composites.get("pei", 0.0),
        composite_decision=composites.get("decision", 0.0),
        composite_competitive=composites.get("competitive_execution", 0.0),
        delta_maturity_index=scored.aggregate.delta_maturity_index,
        game_practice_ratio=scored.aggregate.game_practice_ratio,
        fatigue_correlation_flag=scored.aggregate.fatigue_correlation_flag,
        development_prompts=prompts,
    )


def existing_snapshot_keys(s: Session, sport: str, calculation_date: date) -> set[int]:
    return set(
        s.scalars(
            select(MPISnapshot.athlete_id).where(
                MPISnapshot.sport == sport,
                MPISnapshot.calculation_date == calculation_date,
            )
        ).all()
    )


def write_pool_snapshots(
    s: Session, sport: str, calculation_date: date, snapshots: list[MPISnapshot]
) -> WriteResult:
    """Insert a pool's snapshots; keys already present are reported, not rewritten."""
    result = WriteResult()
    existing = existing_snapshot_keys(s, sport, calculation_date)
    fresh: list[MPISnapshot] = []
    seen: set[int] = set()
    for snap in snapshots:
        if snap.athlete_id in existing or snap.athlete_id in seen:
            conflict = SnapshotConflict(snap.athlete_id, sport, calculation_date)
            logger.warning(str(conflict))
            result.conflicts.append(conflict)
            continue
        seen.add(snap.athlete_id)
        fresh.append(snap)

    s.add_all(fresh)
    s.flush()
    result.written = len(fresh)
    return result
