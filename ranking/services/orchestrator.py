"""Nightly MPI job orchestrator.

Sequence per run:
  1. resolve stale info flags
  2. lock unlocked sessions
  3. per sport pool: aggregate -> adjust -> gates -> rank -> trend -> snapshot

Steps 1 and 2 are fatal on failure. In step 3 a failing athlete is logged
and collected in the run summary while the rest of the pool continues.

Precondition: the external scheduler guarantees that two runs never
overlap. This module holds no distributed lock.
"""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ranking.config import ScoringPolicy, Settings, get_policy, get_settings
from ranking.db import get_session_factory, session_scope, with_retry
from ranking.errors import HousekeepingError, SnapshotConflict
from ranking.logging_config import bind_run_context, clear_run_context, log_context
from ranking.models import AthleteRankingSettings, MPISnapshot
from ranking.services.adjuster import adjust_score
from ranking.services.aggregator import aggregate_sessions
from ranking.services.eligibility import evaluate_eligibility
from ranking.services.housekeeping import lock_sessions, resolve_stale_info_flags
from ranking.services.prompts import development_prompts
from ranking.services.ranker import PoolEntry, RankedEntry, rank_pool, tier_segment, unranked_entry
from ranking.services.snapshots import ScoredAthlete, build_snapshot, write_pool_snapshots
from ranking.services.store import (
    iter_pool_settings,
    load_window_sessions,
    pending_flag_severities,
    persist_gates,
    previous_score,
)
from ranking.services.trend import compute_trend

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


@dataclass
class AthleteFailure:
    athlete_id: int
    sport: str
    error: str


@dataclass
class PoolResult:
    sport: str
    scored: int = 0
    ranked: int = 0
    written: int = 0
    conflicts: list[SnapshotConflict] = field(default_factory=list)
    failures: list[AthleteFailure] = field(default_factory=list)
    error: str | None = None


@dataclass
class RunSummary:
    calculation_date: date
    run_id: str = ""
    flags_resolved: int = 0
    sessions_locked: int = 0
    pools: list[PoolResult] = field(default_factory=list)

    @property
    def failures(self) -> list[AthleteFailure]:
        return [f for p in self.pools for f in p.failures]

    @property
    def ok(self) -> bool:
        return not self.failures and all(p.error is None for p in self.pools)


def score_athlete(
    s: Session,
    row: AthleteRankingSettings,
    sport: str,
    calculation_date: date,
    policy: ScoringPolicy,
) -> ScoredAthlete | None:
    """Aggregate, adjust and gate one athlete. None when no sessions qualify."""
    sessions = load_window_sessions(s, row.athlete_id, sport, calculation_date, policy.window_days)
    unlocked = sum(1 for r in sessions if not r.locked)
    if unlocked:
        logger.warning(
            "scoring %d unlocked sessions for athlete %s",
            unlocked,
            row.athlete_id,
            extra=log_context(sport=sport, athlete_id=row.athlete_id),
        )
    aggregate = aggregate_sessions(sessions, policy.sub_index_weights)
    if aggregate is None:
        return None

    adjustment = adjust_score(
        aggregate.avg_score,
        row.league_tier,
        pending_flag_severities(s, row.athlete_id),
        policy,
    )
    gates = evaluate_eligibility(
        aggregate.session_count,
        adjustment.integrity_score,
        aggregate.dual_graded_count,
        policy,
    )
    return ScoredAthlete(
        athlete_id=row.athlete_id,
        tier=row.league_tier,
        segment=tier_segment(row.league_tier),
        aggregate=aggregate,
        adjustment=adjustment,
        gates=gates,
    )


def select_ranked_entries(scored: list[ScoredAthlete], policy: ScoringPolicy) -> list[RankedEntry]:
    """Apply the ineligible-athlete policy and rank the pool."""
    def entry(a: ScoredAthlete) -> PoolEntry:
        return PoolEntry(a.athlete_id, a.adjusted_score, a.aggregate.session_count)

    if policy.ineligible_policy == "rank":
        return rank_pool([entry(a) for a in scored], policy)

    eligible = [entry(a) for a in scored if a.gates.ranking_eligible]
    ranked = rank_pool(eligible, policy)
    if policy.ineligible_policy == "unranked":
        pool_size = len(ranked)
        ranked.extend(
            unranked_entry(entry(a), pool_size, policy) for a in scored if not a.gates.ranking_eligible
        )
    return ranked


def process_pool(
    s: Session,
    sport: str,
    calculation_date: date,
    now: datetime,
    policy: ScoringPolicy,
) -> PoolResult:
    result = PoolResult(sport=sport)
    scored: list[ScoredAthlete] = []

    for row in iter_pool_settings(s, sport):
        try:
            athlete = score_athlete(s, row, sport, calculation_date, policy)
        except SQLAlchemyError:
            raise
        except Exception as exc:
            logger.error(
                "scoring failed for athlete %s",
                row.athlete_id,
                exc_info=True,
                extra=log_context(sport=sport, athlete_id=row.athlete_id),
            )
            result.failures.append(AthleteFailure(row.athlete_id, sport, f"{type(exc).__name__}: {exc}"))
            continue
        if athlete is None:
            continue
        persist_gates(row, athlete.gates, now)
        scored.append(athlete)

    result.scored = len(scored)
    by_id = {a.athlete_id: a for a in scored}
    snapshots: list[MPISnapshot] = []
    for entry in select_ranked_entries(scored, policy):
        athlete = by_id[entry.athlete_id]
        try:
            trend = compute_trend(
                entry.adjusted_score,
                previous_score(s, entry.athlete_id, sport, calculation_date),
                policy,
            )
            prompts = development_prompts(
                athlete.aggregate.composites,
                athlete.adjustment.integrity_score,
                trend.direction,
                athlete.aggregate.session_count,
                min_integrity=policy.min_integrity,
                min_games=policy.min_games,
            )
            snapshots.append(build_snapshot(sport, calculation_date, athlete, entry, trend, prompts))
        except SQLAlchemyError:
            raise
        except Exception as exc:
            logger.error(
                "snapshot build failed for athlete %s",
                entry.athlete_id,
                exc_info=True,
                extra=log_context(sport=sport, athlete_id=entry.athlete_id),
            )
            result.failures.append(AthleteFailure(entry.athlete_id, sport, f"{type(exc).__name__}: {exc}"))
            continue
        if entry.ranked:
            result.ranked += 1

    write = write_pool_snapshots(s, sport, calculation_date, snapshots)
    result.written = write.written
    result.conflicts = write.conflicts
    logger.info(
        "%s: scored %d, ranked %d, wrote %d snapshots",
        sport,
        result.scored,
        result.ranked,
        result.written,
        extra=log_context(sport=sport, conflicts=len(result.conflicts), failures=len(result.failures)),
    )
    return result


def run_housekeeping(
    factory: SessionFactory, now: datetime, policy: ScoringPolicy, settings: Settings
) -> tuple[int, int]:
    """Run steps 1 and 2, each in its own transaction. Raises HousekeepingError."""

    def resolve() -> int:
        with session_scope(factory) as s:
            return resolve_stale_info_flags(s, now, policy.info_flag_resolve_days)

    def lock() -> int:
        with session_scope(factory) as s:
            return lock_sessions(s)

    counts = []
    for step, operation in (("flag_cleanup", resolve), ("session_lock", lock)):
        try:
            counts.append(
                with_retry(operation, settings.store_retry_attempts, settings.store_retry_delay_s, label=step)
            )
        except Exception as exc:
            logger.critical("housekeeping step %s failed, halting run", step, exc_info=True)
            raise HousekeepingError(step, exc) from exc
    return counts[0], counts[1]


def _run_pool_with_retry(
    factory: SessionFactory,
    sport: str,
    calculation_date: date,
    now: datetime,
    policy: ScoringPolicy,
    settings: Settings,
) -> PoolResult:
    def attempt() -> PoolResult:
        with session_scope(factory) as s:
            return process_pool(s, sport, calculation_date, now, policy)

    try:
        return with_retry(attempt, settings.store_retry_attempts, settings.store_retry_delay_s, label=f"pool:{sport}")
    except Exception as exc:
        logger.error("pool %s failed", sport, exc_info=True, extra=log_context(sport=sport))
        return PoolResult(sport=sport, error=f"{type(exc).__name__}: {exc}")


def run_nightly(
    factory: SessionFactory | None = None,
    policy: ScoringPolicy | None = None,
    settings: Settings | None = None,
    calculation_date: date | None = None,
    now: datetime | None = None,
) -> RunSummary:
    """Run the full nightly job and return a summary of what happened."""
    factory = factory or get_session_factory()
    policy = policy or get_policy()
    settings = settings or get_settings()
    now = now or datetime.utcnow()
    calculation_date = calculation_date or now.date()

    summary = RunSummary(calculation_date=calculation_date, run_id=uuid.uuid4().hex[:12])
    bind_run_context(run_id=summary.run_id, calculation_date=calculation_date.isoformat())
    try:
        logger.info("starting nightly MPI run for %s", calculation_date)
        summary.flags_resolved, summary.sessions_locked = run_housekeeping(factory, now, policy, settings)

        if settings.pool_workers > 1 and len(policy.sports) > 1:
            with ThreadPoolExecutor(max_workers=settings.pool_workers) as pool:
                futures = [
                    pool.submit(_run_pool_with_retry, factory, sport, calculation_date, now, policy, settings)
                    for sport in policy.sports
                ]
                summary.pools = [f.result() for f in futures]
        else:
            summary.pools = [
                _run_pool_with_retry(factory, sport, calculation_date, now, policy, settings)
                for sport in policy.sports
            ]

        logger.info(
            "nightly MPI run complete",
            extra=log_context(
                flags_resolved=summary.flags_resolved,
                sessions_locked=summary.sessions_locked,
                failures=len(summary.failures),
            ),
        )
    finally:
        clear_run_context()
    return summary

