#!/usr/bin/env python3
"""Run the nightly MPI ranking job once.

Intended to be invoked by an external scheduler (cron, Celery beat, etc.)
that guarantees no two runs overlap.

Exit codes: 0 success, 1 one or more athletes or pools failed,
2 housekeeping failed and no pool was processed.
"""

from __future__ import annotations

import argparse
import datetime as dt
from dataclasses import replace

from ranking.config import get_policy, get_settings
from ranking.errors import HousekeepingError
from ranking.logging_config import setup_logging
from ranking.services.orchestrator import run_nightly


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Nightly MPI aggregation and ranking")
    parser.add_argument("--date", type=dt.date.fromisoformat, default=None, help="calculation date (YYYY-MM-DD)")
    parser.add_argument("--sport", action="append", default=None, help="sport pool to process (repeatable)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    policy = get_policy()
    if args.sport:
        policy = replace(policy, sports=tuple(args.sport))

    try:
        summary = run_nightly(policy=policy, settings=settings, calculation_date=args.date)
    except HousekeepingError as exc:
        print(f"housekeeping_failed step={exc.step} error={exc.cause}")
        return 2

    print(
        f"date={summary.calculation_date} flags_resolved={summary.flags_resolved} "
        f"sessions_locked={summary.sessions_locked} run_id={summary.run_id}"
    )
    for pool in summary.pools:
        print(
            f"sport={pool.sport} scored={pool.scored} ranked={pool.ranked} written={pool.written} "
            f"conflicts={len(pool.conflicts)} failures={len(pool.failures)} error={pool.error or '-'}"
        )
    return 0 if summary.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
