"""ORM models for the FitnessVibe schema.

Column types come from ``fitvibe.db.base`` so the same metadata runs on
Postgres (production, Alembic-managed) and SQLite (tests).

Every column carrying a server default also has a Python default so freshly
flushed rows are fully populated without a refresh round-trip.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fitvibe.db.base import Base, BigIntPK, JSONType, UTCDateTime, utcnow
from fitvibe.db.enums import (
    ActivityStatus,
    FitnessLevel,
    FriendRequestStatus,
    Gender,
    GoalFrequency,
    GoalStatus,
    SharePrivacy,
)
from fitvibe.errors import DomainRuleError


class AuditMixin:
    """created_at / updated_at / soft-delete columns for mutable aggregates."""

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    def mark_updated(self) -> None:
        self.updated_at = utcnow()

    def soft_delete(self) -> None:
        self.is_deleted = True
        self.mark_updated()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(AuditMixin, Base):
    """Registered athlete."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    first_name: Mapped[str] = mapped_column(String(64), nullable=False)
    last_name: Mapped[str] = mapped_column(String(64), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str] = mapped_column(String(16), nullable=False, default=Gender.NOT_SPECIFIED.value)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(String(280), nullable=True)
    fitness_level: Mapped[str] = mapped_column(String(16), nullable=False, default=FitnessLevel.BEGINNER.value)
    primary_goal: Mapped[str | None] = mapped_column(String(32), nullable=True)
    preferences: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    experience_points: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    last_active_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    login_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def age(self) -> int | None:
        if self.date_of_birth is None:
            return None
        today = utcnow().date()
        years = today.year - self.date_of_birth.year
        if (today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years


class RefreshToken(Base):
    """JWT refresh token tracking for revocation and rotation."""

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    replaced_by: Mapped[str | None] = mapped_column(String(36), nullable=True)


class EmailVerificationToken(Base):
    """Single-use email verification token (sha256 of the raw token)."""

    __tablename__ = "email_verification_tokens"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class PasswordResetToken(Base):
    """Single-use password reset token (sha256 of the raw token)."""

    __tablename__ = "password_reset_tokens"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


class Activity(AuditMixin, Base):
    """Catalog entry describing a kind of workout (Running, Yoga, ...)."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    estimated_calories_per_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    requires_gps: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    icon_url: Mapped[str | None] = mapped_column(String(256), nullable=True)


class ActivityTemplate(AuditMixin, Base):
    """Reusable workout recipe shared between users."""

    __tablename__ = "activity_templates"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    activity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    estimated_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    estimated_calories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    equipment: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def increment_usage(self) -> None:
        self.usage_count = (self.usage_count or 0) + 1

    def add_rating(self, rating: int) -> None:
        """Fold a 1..5 rating into the running average."""
        if not 1 <= rating <= 5:
            msg = "Rating must be between 1 and 5"
            raise DomainRuleError(msg)
        count = self.rating_count or 0
        self.average_rating = ((self.average_rating or 0.0) * count + rating) / (count + 1)
        self.rating_count = count + 1


class UserActivity(AuditMixin, Base):
    """One workout session performed by a user."""

    __tablename__ = "user_activities"
    __table_args__ = (
        Index("idx_user_activities_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("activities.id", ondelete="SET NULL"), nullable=True
    )
    template_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("activity_templates.id", ondelete="SET NULL"), nullable=True
    )
    activity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ActivityStatus.CREATED.value)
    started_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    paused_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    total_paused_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    calories_burned: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    estimated_calories_per_hour: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    perceived_exertion: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mood: Mapped[str | None] = mapped_column(String(32), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    experience_points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cancellation_reason: Mapped[str | None] = mapped_column(String(256), nullable=True)
    start_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_gps_tracked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class RoutePoint(Base):
    """GPS sample recorded during a session."""

    __tablename__ = "route_points"
    __table_args__ = (
        Index("idx_route_points_activity_seq", "user_activity_id", "sequence"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_activity_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("user_activities.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    elevation: Mapped[float | None] = mapped_column(Float, nullable=True)
    speed: Mapped[float | None] = mapped_column(Float, nullable=True)
    accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------


class Badge(Base):
    """Badge catalog entry, seeded on startup."""

    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    criteria: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class UserBadge(Base):
    """Badge earned by a user. UNIQUE(user_id, badge_id) prevents duplicates."""

    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="user_badges_user_id_badge_id_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id: Mapped[int] = mapped_column(Integer, ForeignKey("badges.id"), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    earned_context: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    badge: Mapped[Badge] = relationship("Badge", lazy="joined")

    def hide(self) -> None:
        self.is_visible = False

    def show(self) -> None:
        self.is_visible = True


class XPLedger(Base):
    """Immutable XP transaction log with idempotency key."""

    __tablename__ = "xp_ledger"
    __table_args__ = (
        Index("idx_xp_ledger_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    base_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(256), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class UserGamification(Base):
    """Denormalized per-user stats: streaks, lifetime totals, badge count."""

    __tablename__ = "user_gamification"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    level_title: Mapped[str] = mapped_column(String(64), nullable=False, default="Couch Starter")
    badges_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_activity_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    activities_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_distance_km: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_calories: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_active_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    challenges_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


class Challenge(AuditMixin, Base):
    """Time-bound competitive target that many users can join."""

    __tablename__ = "challenges"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    activity_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    def has_ended(self, now: datetime) -> bool:
        return self.end_date is not None and now > self.end_date


class ChallengeParticipant(Base):
    """A user's participation and progress in a challenge."""

    __tablename__ = "challenge_participants"
    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="challenge_participants_challenge_user_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    challenge_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_progress_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


class UserGoal(AuditMixin, Base):
    """Personal target with a deadline."""

    __tablename__ = "user_goals"
    __table_args__ = (
        Index("idx_user_goals_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    frequency: Mapped[str] = mapped_column(String(16), nullable=False, default=GoalFrequency.ONE_TIME.value)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    current_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    activity_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=GoalStatus.ACTIVE.value)
    is_adaptive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    @property
    def percentage(self) -> float:
        if self.target_value <= 0:
            return 0.0
        return min(100.0, self.current_value / self.target_value * 100)

    def is_overdue(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.status == GoalStatus.ACTIVE.value and now > self.end_date

    def time_remaining(self, now: datetime | None = None) -> timedelta:
        now = now or utcnow()
        return max(self.end_date - now, timedelta(0))

    def update_progress(self, value: float) -> None:
        if value < 0:
            msg = "Progress cannot be negative"
            raise DomainRuleError(msg)
        self.current_value = value
        self.mark_updated()

    def add_progress(self, value: float) -> None:
        if value <= 0:
            msg = "Progress increment must be positive"
            raise DomainRuleError(msg)
        self.current_value = (self.current_value or 0.0) + value
        self.mark_updated()

    def update_target(self, value: float) -> None:
        if value <= 0:
            msg = "Target value must be greater than zero"
            raise DomainRuleError(msg)
        self.target_value = value
        self.mark_updated()

    def adapt_target(self, value: float) -> None:
        if not self.is_adaptive:
            msg = "Only adaptive goals can adapt their target"
            raise DomainRuleError(msg)
        self.update_target(value)

    def extend_deadline(self, new_end: datetime) -> None:
        if new_end <= self.end_date:
            msg = "New deadline must be later than the current one"
            raise DomainRuleError(msg)
        self.end_date = new_end
        if self.status == GoalStatus.EXPIRED.value:
            self.status = GoalStatus.ACTIVE.value
        self.mark_updated()

    def abandon(self) -> None:
        if self.status == GoalStatus.COMPLETED.value:
            msg = "A completed goal cannot be abandoned"
            raise DomainRuleError(msg)
        self.status = GoalStatus.ABANDONED.value
        self.mark_updated()

    def recompute_status(self, now: datetime | None = None) -> bool:
        """Re-derive status. Returns True when the goal just became Completed."""
        now = now or utcnow()
        if self.status == GoalStatus.ABANDONED.value:
            return False
        if self.current_value >= self.target_value:
            newly_completed = self.completed_at is None
            self.status = GoalStatus.COMPLETED.value
            if newly_completed:
                self.completed_at = now
            return newly_completed
        if now > self.end_date:
            self.status = GoalStatus.EXPIRED.value
        else:
            self.status = GoalStatus.ACTIVE.value
        return False


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------


class FriendRequest(Base):
    """Friend request from one user to another."""

    __tablename__ = "friend_requests"
    __table_args__ = (
        Index("idx_friend_requests_target_status", "target_id", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    requester_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message: Mapped[str | None] = mapped_column(String(280), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=FriendRequestStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    responded_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class UserConnection(Base):
    """Directed friendship edge. Each friendship is stored as two rows."""

    __tablename__ = "user_connections"
    __table_args__ = (
        UniqueConstraint("follower_id", "followed_id", name="user_connections_pair_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    follower_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    followed_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class Cheer(Base):
    """Encouragement sent from one user to another."""

    __tablename__ = "cheers"
    __table_args__ = (
        Index("idx_cheers_sender_created", "sender_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_activity_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("user_activities.id", ondelete="SET NULL"), nullable=True
    )
    cheer_type: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str | None] = mapped_column(String(280), nullable=True)
    emoji_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    audio_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    power_up_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_live: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class ActivityShare(AuditMixin, Base):
    """A completed activity posted to the feed."""

    __tablename__ = "activity_shares"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_activity_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("user_activities.id", ondelete="CASCADE"), nullable=False
    )
    caption: Mapped[str | None] = mapped_column(String(500), nullable=True)
    privacy: Mapped[str] = mapped_column(String(16), nullable=False, default=SharePrivacy.PUBLIC.value)


class ActivityLike(Base):
    __tablename__ = "activity_likes"
    __table_args__ = (
        UniqueConstraint("share_id", "user_id", name="activity_likes_share_user_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    share_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("activity_shares.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class ActivityComment(AuditMixin, Base):
    __tablename__ = "activity_comments"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    share_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("activity_shares.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(String(1000), nullable=False)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    """Persisted user notifications."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    subtype: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    action_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    action_label: Mapped[str | None] = mapped_column(String(64), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    notification_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
