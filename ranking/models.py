from __future__ import annotations

import datetime as dt
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PerformanceSession(Base):
    __tablename__ = "performance_sessions"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(Integer, index=True)
    sport: Mapped[str] = mapped_column(String(20))
    session_date: Mapped[dt.date] = mapped_column(Date, index=True)
    session_type: Mapped[str] = mapped_column(String(40), default="solo_practice")
    composite_indexes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    player_grade: Mapped[float | None] = mapped_column(Float)
    coach_grade: Mapped[float | None] = mapped_column(Float)
    effective_grade: Mapped[float | None] = mapped_column(Float)
    fatigue_state_at_session: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
    __table_args__ = (Index("ix_performance_sessions_athlete_sport_date", "athlete_id", "sport", "session_date"),)


class GovernanceFlag(Base):
    __tablename__ = "governance_flags"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(Integer, index=True)
    flag_type: Mapped[str] = mapped_column(String(60), default="grading_gap")
    severity: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16), default="pending")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
    resolved_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    __table_args__ = (
        CheckConstraint("severity in ('info', 'warning', 'critical')"),
        CheckConstraint("status in ('pending', 'resolved')"),
    )


class AthleteRankingSettings(Base):
    __tablename__ = "athlete_mpi_settings"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(Integer, index=True)
    sport: Mapped[str] = mapped_column(String(20))
    league_tier: Mapped[str | None] = mapped_column(String(30))
    admin_ranking_excluded: Mapped[bool] = mapped_column(Boolean, default=False)
    games_minimum_met: Mapped[bool] = mapped_column(Boolean, default=False)
    integrity_threshold_met: Mapped[bool] = mapped_column(Boolean, default=False)
    coach_validation_met: Mapped[bool] = mapped_column(Boolean, default=False)
    data_span_met: Mapped[bool] = mapped_column(Boolean, default=False)
    ranking_eligible: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    __table_args__ = (UniqueConstraint("athlete_id", "sport", name="uq_mpi_settings_athlete_sport"),)


class MPISnapshot(Base):
    __tablename__ = "mpi_scores"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(Integer, index=True)
    sport: Mapped[str] = mapped_column(String(20))
    calculation_date: Mapped[dt.date] = mapped_column(Date, index=True)
    segment_pool: Mapped[str] = mapped_column(String(40))
    adjusted_global_score: Mapped[float] = mapped_column(Float)
    global_rank: Mapped[int | None] = mapped_column(Integer)
    global_percentile: Mapped[float | None] = mapped_column(Float)
    total_athletes_in_pool: Mapped[int] = mapped_column(Integer)
    ranked: Mapped[bool] = mapped_column(Boolean, default=True)
    ranking_eligible: Mapped[bool] = mapped_column(Boolean, default=False)
    pro_probability: Mapped[float] = mapped_column(Float)
    pro_probability_capped: Mapped[bool] = mapped_column(Boolean, default=False)
    trend_direction: Mapped[str] = mapped_column(String(10))
    trend_delta: Mapped[float] = mapped_column(Float, default=0)
    integrity_score: Mapped[float] = mapped_column(Float)
    sessions_count: Mapped[int] = mapped_column(Integer)
    grading_delta: Mapped[float] = mapped_column(Float, default=0)
    composite_bqi: Mapped[float] = mapped_column(Float, default=0)
    composite_fqi: Mapped[float] = mapped_column(Float, default=0)
    composite_pei: Mapped[float] = mapped_column(Float, default=0)
    composite_decision: Mapped[float] = mapped_column(Float, default=0)
    composite_competitive: Mapped[float] = mapped_column(Float, default=0)
    delta_maturity_index: Mapped[float | None] = mapped_column(Float)
    game_practice_ratio: Mapped[float | None] = mapped_column(Float)
    fatigue_correlation_flag: Mapped[bool] = mapped_column(Boolean, default=False)
    development_prompts: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
    __table_args__ = (
        UniqueConstraint("athlete_id", "sport", "calculation_date", name="uq_mpi_scores_daily"),
        CheckConstraint("trend_direction in ('rising', 'stable', 'dropping')"),
    )
