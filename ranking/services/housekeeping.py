"""Once-per-run housekeeping: stale flag resolution and session locking.

Both steps are single conditional UPDATEs. The WHERE clause excludes rows
already in the target state, so re-running either step affects nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from ranking.models import GovernanceFlag, PerformanceSession

logger = logging.getLogger(__name__)


def resolve_stale_info_flags(s: Session, now: datetime, max_age_days: int = 7) -> int:
    """Resolve pending info-severity flags created more than `max_age_days` ago."""
    cutoff = now - timedelta(days=max_age_days)
    result = s.execute(
        update(GovernanceFlag)
        .where(
            GovernanceFlag.severity == "info",
            GovernanceFlag.status == "pending",
            GovernanceFlag.created_at < cutoff,
        )
        .values(status="resolved", resolved_at=now)
        .execution_options(synchronize_session=False)
    )
    count = result.rowcount or 0
    logger.info("resolved %d stale info flags", count)
    return count


def lock_sessions(s: Session) -> int:
    """Lock every unlocked, non-deleted session. Locks are never cleared."""
    result = s.execute(
        update(PerformanceSession)
        .where(
            PerformanceSession.is_locked.is_(False),
            PerformanceSession.deleted_at.is_(None),
        )
        .values(is_locked=True)
        .execution_options(synchronize_session=False)
    )
    count = result.rowcount or 0
    logger.info("locked %d sessions", count)
    return count
