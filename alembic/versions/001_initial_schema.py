"""Initial FitnessVibe schema.

Creates users and auth token tables, the activity catalog and sessions,
gamification (badges, XP ledger, per-user stats), challenges, goals,
the social graph and feed, and notifications.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
TS = sa.DateTime(timezone=True)


def _user_fk(ondelete: str = "CASCADE", nullable: bool = False, name: str = "user_id") -> sa.Column:
    return sa.Column(name, sa.BigInteger(), sa.ForeignKey("users.id", ondelete=ondelete), nullable=nullable)


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", TS, nullable=True),
        sa.Column("is_deleted", sa.Boolean(), server_default="false", nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    # --- Users & auth ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("first_name", sa.String(64), nullable=False),
        sa.Column("last_name", sa.String(64), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(16), server_default="NotSpecified", nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("bio", sa.String(280), nullable=True),
        sa.Column("fitness_level", sa.String(16), server_default="Beginner", nullable=False),
        sa.Column("primary_goal", sa.String(32), nullable=True),
        sa.Column("preferences", JSON, server_default="{}", nullable=False),
        sa.Column("experience_points", sa.BigInteger(), server_default="0", nullable=False),
        sa.Column("level", sa.Integer(), server_default="1", nullable=False),
        sa.Column("last_active_date", sa.Date(), nullable=True),
        sa.Column("is_email_verified", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("is_admin", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("last_login", TS, nullable=True),
        sa.Column("login_count", sa.Integer(), server_default="0", nullable=False),
        *_audit_columns(),
    )

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("token_hash", sa.String(128), nullable=False),
        sa.Column("issued_at", TS, nullable=False),
        sa.Column("expires_at", TS, nullable=False),
        sa.Column("revoked_at", TS, nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("is_revoked", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("replaced_by", sa.String(36), nullable=True),
    )
    op.create_index("idx_refresh_tokens_user", "refresh_tokens", ["user_id"])

    op.create_table(
        "email_verification_tokens",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("token_hash", sa.String(128), nullable=False, unique=True),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", TS, nullable=False),
        sa.Column("used_at", TS, nullable=True),
    )

    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("token_hash", sa.String(128), nullable=False, unique=True),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", TS, nullable=False),
        sa.Column("used_at", TS, nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
    )

    # --- Activities ---
    op.create_table(
        "activities",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("slug", sa.String(32), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("difficulty", sa.Integer(), server_default="1", nullable=False),
        sa.Column("estimated_calories_per_hour", sa.Integer(), nullable=False),
        sa.Column("requires_gps", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_featured", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("icon_url", sa.String(256), nullable=True),
        *_audit_columns(),
    )

    op.create_table(
        "activity_templates",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("activity_type", sa.String(32), nullable=False),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("difficulty", sa.Integer(), server_default="1", nullable=False),
        sa.Column("estimated_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("estimated_calories", sa.Integer(), server_default="0", nullable=False),
        sa.Column("tags", JSON, server_default="[]", nullable=False),
        sa.Column("equipment", JSON, server_default="[]", nullable=False),
        sa.Column("is_public", sa.Boolean(), server_default="true", nullable=False),
        _user_fk(ondelete="SET NULL", nullable=True, name="created_by"),
        sa.Column("usage_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("average_rating", sa.Float(), server_default="0", nullable=False),
        sa.Column("rating_count", sa.Integer(), server_default="0", nullable=False),
        *_audit_columns(),
    )

    op.create_table(
        "user_activities",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("activity_id", sa.BigInteger(), sa.ForeignKey("activities.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "template_id", sa.BigInteger(), sa.ForeignKey("activity_templates.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("activity_type", sa.String(32), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("status", sa.String(16), server_default="Created", nullable=False),
        sa.Column("started_at", TS, nullable=False),
        sa.Column("paused_at", TS, nullable=True),
        sa.Column("completed_at", TS, nullable=True),
        sa.Column("cancelled_at", TS, nullable=True),
        sa.Column("total_paused_seconds", sa.Integer(), server_default="0", nullable=False),
        sa.Column("duration_minutes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("distance_km", sa.Float(), server_default="0", nullable=False),
        sa.Column("calories_burned", sa.Float(), server_default="0", nullable=False),
        sa.Column("estimated_calories_per_hour", sa.Integer(), server_default="0", nullable=False),
        sa.Column("perceived_exertion", sa.Integer(), nullable=True),
        sa.Column("mood", sa.String(32), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("experience_points_earned", sa.Integer(), server_default="0", nullable=False),
        sa.Column("cancellation_reason", sa.String(256), nullable=True),
        sa.Column("start_latitude", sa.Float(), nullable=True),
        sa.Column("start_longitude", sa.Float(), nullable=True),
        sa.Column("is_gps_tracked", sa.Boolean(), server_default="false", nullable=False),
        *_audit_columns(),
    )
    op.create_index("idx_user_activities_user_status", "user_activities", ["user_id", "status"])

    op.create_table(
        "route_points",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_activity_id",
            sa.BigInteger(),
            sa.ForeignKey("user_activities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("elevation", sa.Float(), nullable=True),
        sa.Column("speed", sa.Float(), nullable=True),
        sa.Column("accuracy", sa.Float(), nullable=True),
        sa.Column("recorded_at", TS, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_route_points_activity_seq", "route_points", ["user_activity_id", "sequence"])

    # --- Gamification ---
    op.create_table(
        "badges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon_url", sa.String(256), nullable=True),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("rarity", sa.String(16), nullable=False),
        sa.Column("points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("criteria", JSON, server_default="{}", nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "user_badges",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("badge_id", sa.Integer(), sa.ForeignKey("badges.id"), nullable=False),
        sa.Column("earned_at", TS, server_default=sa.func.now(), nullable=False),
        sa.Column("earned_context", JSON, server_default="{}", nullable=False),
        sa.Column("is_visible", sa.Boolean(), server_default="true", nullable=False),
        sa.UniqueConstraint("user_id", "badge_id", name="user_badges_user_id_badge_id_key"),
    )

    op.create_table(
        "xp_ledger",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("base_amount", sa.Integer(), nullable=False),
        sa.Column("bonus_amount", sa.Integer(), server_default="0", nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("source_id", sa.String(128), nullable=True),
        sa.Column("description", sa.String(256), nullable=True),
        sa.Column("idempotency_key", sa.String(256), nullable=True, unique=True),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_xp_ledger_user_created", "xp_ledger", ["user_id", "created_at"])

    op.create_table(
        "user_gamification",
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("level_title", sa.String(64), server_default="Couch Starter", nullable=False),
        sa.Column("badges_earned", sa.Integer(), server_default="0", nullable=False),
        sa.Column("current_streak", sa.Integer(), server_default="0", nullable=False),
        sa.Column("longest_streak", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_activity_date", sa.Date(), nullable=True),
        sa.Column("activities_completed", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_distance_km", sa.Float(), server_default="0", nullable=False),
        sa.Column("total_calories", sa.Float(), server_default="0", nullable=False),
        sa.Column("total_active_minutes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("challenges_completed", sa.Integer(), server_default="0", nullable=False),
        sa.Column("updated_at", TS, server_default=sa.func.now(), nullable=False),
    )

    # --- Challenges & goals ---
    op.create_table(
        "challenges",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("target_value", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("activity_type", sa.String(32), nullable=True),
        sa.Column("start_date", TS, nullable=False),
        sa.Column("end_date", TS, nullable=True),
        sa.Column("is_private", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("xp_reward", sa.Integer(), server_default="100", nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        _user_fk(name="created_by"),
        *_audit_columns(),
    )

    op.create_table(
        "challenge_participants",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "challenge_id", sa.BigInteger(), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
        ),
        _user_fk(),
        sa.Column("joined_at", TS, server_default=sa.func.now(), nullable=False),
        sa.Column("progress", sa.Float(), server_default="0", nullable=False),
        sa.Column("is_completed", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("completed_at", TS, nullable=True),
        sa.Column("last_progress_at", TS, nullable=True),
        sa.UniqueConstraint("challenge_id", "user_id", name="challenge_participants_challenge_user_key"),
    )

    op.create_table(
        "user_goals",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("frequency", sa.String(16), server_default="OneTime", nullable=False),
        sa.Column("target_value", sa.Float(), nullable=False),
        sa.Column("current_value", sa.Float(), server_default="0", nullable=False),
        sa.Column("unit", sa.String(32), server_default="", nullable=False),
        sa.Column("activity_type", sa.String(32), nullable=True),
        sa.Column("start_date", TS, nullable=False),
        sa.Column("end_date", TS, nullable=False),
        sa.Column("status", sa.String(16), server_default="Active", nullable=False),
        sa.Column("is_adaptive", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("xp_reward", sa.Integer(), server_default="50", nullable=False),
        sa.Column("completed_at", TS, nullable=True),
        *_audit_columns(),
    )
    op.create_index("idx_user_goals_user_status", "user_goals", ["user_id", "status"])

    # --- Social ---
    op.create_table(
        "friend_requests",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(name="requester_id"),
        _user_fk(name="target_id"),
        sa.Column("message", sa.String(280), nullable=True),
        sa.Column("status", sa.String(16), server_default="Pending", nullable=False),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
        sa.Column("responded_at", TS, nullable=True),
    )
    op.create_index("idx_friend_requests_target_status", "friend_requests", ["target_id", "status"])

    op.create_table(
        "user_connections",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(name="follower_id"),
        _user_fk(name="followed_id"),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("follower_id", "followed_id", name="user_connections_pair_key"),
    )

    op.create_table(
        "cheers",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(name="sender_id"),
        _user_fk(name="target_id"),
        sa.Column(
            "user_activity_id",
            sa.BigInteger(),
            sa.ForeignKey("user_activities.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("cheer_type", sa.String(16), nullable=False),
        sa.Column("message", sa.String(280), nullable=True),
        sa.Column("emoji_code", sa.String(32), nullable=True),
        sa.Column("audio_url", sa.String(512), nullable=True),
        sa.Column("power_up_value", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_live", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_cheers_sender_created", "cheers", ["sender_id", "created_at"])

    op.create_table(
        "activity_shares",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column(
            "user_activity_id",
            sa.BigInteger(),
            sa.ForeignKey("user_activities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("caption", sa.String(500), nullable=True),
        sa.Column("privacy", sa.String(16), server_default="Public", nullable=False),
        *_audit_columns(),
    )

    op.create_table(
        "activity_likes",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("share_id", sa.BigInteger(), sa.ForeignKey("activity_shares.id", ondelete="CASCADE"), nullable=False),
        _user_fk(),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("share_id", "user_id", name="activity_likes_share_user_key"),
    )

    op.create_table(
        "activity_comments",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("share_id", sa.BigInteger(), sa.ForeignKey("activity_shares.id", ondelete="CASCADE"), nullable=False),
        _user_fk(),
        sa.Column("content", sa.String(1000), nullable=False),
        *_audit_columns(),
    )

    # --- Notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("subtype", sa.String(64), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("action_url", sa.String(256), nullable=True),
        sa.Column("action_label", sa.String(64), nullable=True),
        sa.Column("read", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("metadata", JSON, server_default="{}", nullable=False),
        sa.Column("created_at", TS, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_notifications_user_created", "notifications", ["user_id", "created_at"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("notifications")
    op.drop_table("activity_comments")
    op.drop_table("activity_likes")
    op.drop_table("activity_shares")
    op.drop_table("cheers")
    op.drop_table("user_connections")
    op.drop_table("friend_requests")
    op.drop_table("user_goals")
    op.drop_table("challenge_participants")
    op.drop_table("challenges")
    op.drop_table("user_gamification")
    op.drop_table("xp_ledger")
    op.drop_table("user_badges")
    op.drop_table("badges")
    op.drop_table("route_points")
    op.drop_table("user_activities")
    op.drop_table("activity_templates")
    op.drop_table("activities")
    op.drop_table("password_reset_tokens")
    op.drop_table("email_verification_tokens")
    op.drop_table("refresh_tokens")
    op.drop_table("users")
