"""Job configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
Runtime settings live in `Settings`; ranking policy (weights, multipliers,
penalties, thresholds) lives in `ScoringPolicy` so it can change without
touching the ranking code. All values can be overridden by environment
variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache

INELIGIBLE_POLICIES = ("exclude", "unranked", "rank")

DEFAULT_SUB_INDEX_WEIGHTS: dict[str, float] = {
    "bqi": 0.25,
    "fqi": 0.15,
    "pei": 0.20,
    "decision": 0.20,
    "competitive_execution": 0.20,
}

DEFAULT_TIER_MULTIPLIERS: dict[str, float] = {
    "rec": 0.60,
    "travel": 0.75,
    "hs_jv": 0.80,
    "hs_varsity": 0.85,
    "college_d3": 0.90,
    "college_d2": 0.95,
    "college_d1": 1.05,
    "indie_pro": 1.10,
    "milb": 1.25,
    "mlb": 1.50,
    "ausl": 1.50,
}

DEFAULT_SEVERITY_PENALTIES: dict[str, float] = {
    "critical": 15.0,
    "warning": 5.0,
    "info": 2.0,
}


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    log_level: str = "INFO"

    # Parallelism across sport pools (1 = sequential)
    pool_workers: int = 1

    # Transient store errors
    store_retry_attempts: int = 3
    store_retry_delay_s: float = 0.5

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


@dataclass(frozen=True)
class ScoringPolicy:
    """Policy constants for the nightly ranking computation."""

    sports: tuple[str, ...] = ("baseball", "softball")
    window_days: int = 90

    sub_index_weights: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SUB_INDEX_WEIGHTS))
    tier_multipliers: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TIER_MULTIPLIERS))
    default_tier_multiplier: float = 1.0

    # Integrity
    severity_penalties: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SEVERITY_PENALTIES))
    integrity_base: float = 100.0
    info_flag_resolve_days: int = 7

    # Eligibility gates
    min_games: int = 60
    min_integrity: float = 80.0
    min_coach_validation: float = 0.40
    min_data_span: int = 14

    # Trend and derived metrics
    trend_threshold: float = 2.0
    pro_probability_factor: float = 1.1
    pro_probability_cap: float = 99.0

    ineligible_policy: str = "unranked"

    def __post_init__(self) -> None:
        if self.ineligible_policy not in INELIGIBLE_POLICIES:
            raise ValueError(
                f"ineligible_policy must be one of {INELIGIBLE_POLICIES}, got {self.ineligible_policy!r}"
            )
        if self.window_days <= 0:
            raise ValueError("window_days must be positive")
        if not self.sports:
            raise ValueError("at least one sport pool is required")
        if any(v < 0 for v in self.severity_penalties.values()):
            raise ValueError("severity penalties must be non-negative")
        if self.pro_probability_factor <= 0 or not 0 < self.pro_probability_cap <= 100:
            raise ValueError("pro probability factor must be positive and cap within (0, 100]")


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "pool_workers": 1,
    },
    "staging": {
        "log_level": "INFO",
        "pool_workers": 2,
    },
    "production": {
        "log_level": "WARNING",
        "pool_workers": 2,
        "store_retry_attempts": 5,
    },
}


def get_database_url() -> str:
    """Resolve database URL from env var or local default."""
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "postgresql+psycopg2://localhost:5432/mpi"


def _json_table(name: str, default: dict[str, float]) -> dict[str, float]:
    raw = os.getenv(name)
    if not raw:
        return dict(default)
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{name} is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"{name} must be a JSON object")
    return {str(k): float(v) for k, v in parsed.items()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        pool_workers=int(os.getenv("MPI_POOL_WORKERS", str(profile.get("pool_workers", 1)))),
        store_retry_attempts=int(
            os.getenv("MPI_STORE_RETRY_ATTEMPTS", str(profile.get("store_retry_attempts", 3)))
        ),
        store_retry_delay_s=float(os.getenv("MPI_STORE_RETRY_DELAY_S", "0.5")),
    )


def get_policy() -> ScoringPolicy:
    """Build the ScoringPolicy from env-var overrides on top of the defaults."""
    sports = tuple(s.strip() for s in os.getenv("MPI_SPORTS", "baseball,softball").split(",") if s.strip())
    return ScoringPolicy(
        sports=sports,
        window_days=int(os.getenv("MPI_WINDOW_DAYS", "90")),
        sub_index_weights=_json_table("MPI_SUB_INDEX_WEIGHTS", DEFAULT_SUB_INDEX_WEIGHTS),
        tier_multipliers=_json_table("MPI_TIER_MULTIPLIERS", DEFAULT_TIER_MULTIPLIERS),
        default_tier_multiplier=float(os.getenv("MPI_DEFAULT_TIER_MULTIPLIER", "1.0")),
        severity_penalties=_json_table("MPI_SEVERITY_PENALTIES", DEFAULT_SEVERITY_PENALTIES),
        integrity_base=float(os.getenv("MPI_INTEGRITY_BASE", "100")),
        info_flag_resolve_days=int(os.getenv("MPI_INFO_FLAG_RESOLVE_DAYS", "7")),
        min_games=int(os.getenv("MPI_MIN_GAMES", "60")),
        min_integrity=float(os.getenv("MPI_MIN_INTEGRITY", "80")),
        min_coach_validation=float(os.getenv("MPI_MIN_COACH_VALIDATION", "0.40")),
        min_data_span=int(os.getenv("MPI_MIN_DATA_SPAN", "14")),
        trend_threshold=float(os.getenv("MPI_TREND_THRESHOLD", "2.0")),
        pro_probability_factor=float(os.getenv("MPI_PRO_PROBABILITY_FACTOR", "1.1")),
        pro_probability_cap=float(os.getenv("MPI_PRO_PROBABILITY_CAP", "99")),
        ineligible_policy=os.getenv("MPI_INELIGIBLE_POLICY", "unranked"),
    )
