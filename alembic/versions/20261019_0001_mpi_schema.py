"""mpi ranking schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _is_sqlite() -> bool:
    bind = op.get_bind()
    return bool(bind is not None and bind.dialect.name == "sqlite")


def upgrade() -> None:
    op.create_table(
        "performance_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("session_type", sa.String(length=40), nullable=False, server_default="solo_practice"),
        sa.Column("composite_indexes", sa.JSON(), nullable=False),
        sa.Column("player_grade", sa.Float(), nullable=True),
        sa.Column("coach_grade", sa.Float(), nullable=True),
        sa.Column("effective_grade", sa.Float(), nullable=True),
        sa.Column("fatigue_state_at_session", sa.JSON(), nullable=True),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_performance_sessions_athlete_id", "performance_sessions", ["athlete_id"])
    op.create_index("ix_performance_sessions_session_date", "performance_sessions", ["session_date"])
    op.create_index(
        "ix_performance_sessions_athlete_sport_date",
        "performance_sessions",
        ["athlete_id", "sport", "session_date"],
    )

    op.create_table(
        "governance_flags",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), nullable=False),
        sa.Column("flag_type", sa.String(length=60), nullable=False, server_default="grading_gap"),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("severity in ('info', 'warning', 'critical')", name="ck_governance_flags_severity"),
        sa.CheckConstraint("status in ('pending', 'resolved')", name="ck_governance_flags_status"),
    )
    op.create_index("ix_governance_flags_athlete_id", "governance_flags", ["athlete_id"])

    op.create_table(
        "athlete_mpi_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=False),
        sa.Column("league_tier", sa.String(length=30), nullable=True),
        sa.Column("admin_ranking_excluded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("games_minimum_met", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("integrity_threshold_met", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("coach_validation_met", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("data_span_met", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ranking_eligible", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("athlete_id", "sport", name="uq_mpi_settings_athlete_sport"),
    )
    op.create_index("ix_athlete_mpi_settings_athlete_id", "athlete_mpi_settings", ["athlete_id"])

    op.create_table(
        "mpi_scores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=False),
        sa.Column("calculation_date", sa.Date(), nullable=False),
        sa.Column("segment_pool", sa.String(length=40), nullable=False),
        sa.Column("adjusted_global_score", sa.Float(), nullable=False),
        sa.Column("global_rank", sa.Integer(), nullable=True),
        sa.Column("global_percentile", sa.Float(), nullable=True),
        sa.Column("total_athletes_in_pool", sa.Integer(), nullable=False),
        sa.Column("ranked", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("ranking_eligible", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("pro_probability", sa.Float(), nullable=False),
        sa.Column("pro_probability_capped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("trend_direction", sa.String(length=10), nullable=False),
        sa.Column("trend_delta", sa.Float(), nullable=False, server_default="0"),
        sa.Column("integrity_score", sa.Float(), nullable=False),
        sa.Column("sessions_count", sa.Integer(), nullable=False),
        sa.Column("grading_delta", sa.Float(), nullable=False, server_default="0"),
        sa.Column("composite_bqi", sa.Float(), nullable=False, server_default="0"),
        sa.Column("composite_fqi", sa.Float(), nullable=False, server_default="0"),
        sa.Column("composite_pei", sa.Float(), nullable=False, server_default="0"),
        sa.Column("composite_decision", sa.Float(), nullable=False, server_default="0"),
        sa.Column("composite_competitive", sa.Float(), nullable=False, server_default="0"),
        sa.Column("delta_maturity_index", sa.Float(), nullable=True),
        sa.Column("game_practice_ratio", sa.Float(), nullable=True),
        sa.Column("fatigue_correlation_flag", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("development_prompts", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("athlete_id", "sport", "calculation_date", name="uq_mpi_scores_daily"),
        sa.CheckConstraint(
            "trend_direction in ('rising', 'stable', 'dropping')", name="ck_mpi_scores_trend_direction"
        ),
    )
    op.create_index("ix_mpi_scores_athlete_id", "mpi_scores", ["athlete_id"])
    op.create_index("ix_mpi_scores_calculation_date", "mpi_scores", ["calculation_date"])
    if not _is_sqlite():
        op.create_index(
            "ix_mpi_scores_pool_rank",
            "mpi_scores",
            ["sport", "calculation_date", "global_rank"],
            postgresql_where=sa.text("ranked"),
        )


def downgrade() -> None:
    if not _is_sqlite():
        op.drop_index("ix_mpi_scores_pool_rank", table_name="mpi_scores")
    op.drop_table("mpi_scores")
    op.drop_table("athlete_mpi_settings")
    op.drop_table("governance_flags")
    op.drop_table("performance_sessions")
