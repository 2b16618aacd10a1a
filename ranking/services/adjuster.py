from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ranking.config import ScoringPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Adjustment:
    tier_multiplier: float
    tier_score: float
    integrity_score: float
    adjusted_score: float


def tier_multiplier(tier: str | None, policy: ScoringPolicy) -> float:
    """Competition-tier multiplier; unknown or missing tiers are neutral."""
    key = (tier or "").strip().lower()
    if key in policy.tier_multipliers:
        return policy.tier_multipliers[key]
    logger.warning("unknown league tier %r, using multiplier %.2f", tier, policy.default_tier_multiplier)
    return policy.default_tier_multiplier


def severity_penalty(severity: str, policy: ScoringPolicy) -> float:
    penalties = policy.severity_penalties
    if severity in penalties:
        return penalties[severity]
    return penalties.get("info", 0.0)


def integrity_score(severities: Iterable[str], policy: ScoringPolicy) -> float:
    """Trust metric in [0, 100] from the severities of pending flags."""
    total = sum(severity_penalty(s, policy) for s in severities)
    return max(0.0, min(100.0, policy.integrity_base - total))


def adjust_score(
    avg_score: float,
    tier: str | None,
    pending_severities: Iterable[str],
    policy: ScoringPolicy,
) -> Adjustment:
    """Apply tier and integrity multipliers to an athlete's raw average score."""
    mult = tier_multiplier(tier, policy)
    tier_score = avg_score * mult
    integrity = integrity_score(pending_severities, policy)
    return Adjustment(
        tier_multiplier=mult,
        tier_score=tier_score,
        integrity_score=integrity,
        adjusted_score=tier_score * (integrity / 100.0),
    )
