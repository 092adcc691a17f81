"""Workout session lifecycle: start, pause/resume, cancel, complete, GPS route."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.activities.catalog import get_activity_type_by_slug, get_template
from fitvibe.activities.metrics import (
    RouteStats,
    default_session_name,
    estimate_calories_per_hour,
    normalize_activity_type,
    requires_gps,
    route_stats,
)
from fitvibe.challenges.service import apply_activity_to_challenges
from fitvibe.config import get_settings
from fitvibe.db.base import utcnow
from fitvibe.db.enums import ActivityStatus
from fitvibe.db.models import RoutePoint, User, UserActivity
from fitvibe.errors import ConflictError, DomainRuleError, ForbiddenError, NotFoundError
from fitvibe.gamification.streak_service import record_activity_day
from fitvibe.gamification.trigger_engine import TriggerEngine
from fitvibe.gamification.xp_service import calculate_xp_bonus, get_or_create_gamification, grant_xp
from fitvibe.goals.service import apply_activity_to_goals
from fitvibe.social.notification_service import create_notification

logger = logging.getLogger(__name__)

IN_PROGRESS = (ActivityStatus.ACTIVE.value, ActivityStatus.PAUSED.value)
DEFAULT_CANCEL_REASON = "User cancelled"


def base_activity_xp(duration_minutes: int, distance_km: float) -> int:
    """10 XP per session, 1 per active minute, 5 per whole km; capped."""
    xp = 10 + max(duration_minutes, 0) + 5 * int(max(distance_km, 0.0))
    return min(xp, get_settings().activity_xp_cap)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_in_progress(db: AsyncSession, user_id: int) -> UserActivity | None:
    result = await db.execute(
        select(UserActivity).where(
            UserActivity.user_id == user_id,
            UserActivity.status.in_(IN_PROGRESS),
            UserActivity.is_deleted.is_(False),
        )
    )
    return result.scalars().first()


async def get_session_for_user(db: AsyncSession, session_id: int, user_id: int) -> UserActivity:
    """Raises NotFoundError for unknown sessions and ForbiddenError for other users' sessions."""
    session = await db.get(UserActivity, session_id)
    if session is None or session.is_deleted:
        raise NotFoundError("Activity", session_id)
    if session.user_id != user_id:
        msg = "You do not own this activity"
        raise ForbiddenError(msg)
    return session


async def list_history(
    db: AsyncSession,
    user_id: int,
    status: str | None = None,
    activity_type: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[UserActivity], int]:
    conditions: list[Any] = [UserActivity.user_id == user_id, UserActivity.is_deleted.is_(False)]
    if status:
        conditions.append(UserActivity.status == status)
    if activity_type:
        conditions.append(UserActivity.activity_type == normalize_activity_type(activity_type))

    total = await db.scalar(select(func.count()).select_from(UserActivity).where(*conditions))
    result = await db.execute(
        select(UserActivity)
        .where(*conditions)
        .order_by(UserActivity.started_at.desc(), UserActivity.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), int(total or 0)


async def get_route(db: AsyncSession, session_id: int) -> list[RoutePoint]:
    result = await db.execute(
        select(RoutePoint).where(RoutePoint.user_activity_id == session_id).order_by(RoutePoint.sequence)
    )
    return list(result.scalars().all())


async def get_route_stats(db: AsyncSession, session_id: int) -> RouteStats:
    return route_stats(await get_route(db, session_id))


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def start_session(
    db: AsyncSession,
    user: User,
    activity_type: str,
    name: str | None = None,
    template_id: int | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    now: datetime | None = None,
) -> UserActivity:
    """Start a new Active session.

    Raises:
        ConflictError: The user already has a session in progress.
        DomainRuleError: Unknown activity type.
    """
    now = now or utcnow()
    if await get_in_progress(db, user.id) is not None:
        msg = "You already have an activity in progress"
        raise ConflictError(msg)

    key = normalize_activity_type(activity_type)

    if template_id is not None:
        template = await get_template(db, template_id, user.id)
        template.increment_usage()

    catalog_entry = await get_activity_type_by_slug(db, key)
    session = UserActivity(
        user_id=user.id,
        activity_id=catalog_entry.id if catalog_entry else None,
        template_id=template_id,
        activity_type=key,
        name=(name or "").strip() or default_session_name(user.first_name, key, now),
        status=ActivityStatus.ACTIVE.value,
        started_at=now,
        estimated_calories_per_hour=estimate_calories_per_hour(key, user.fitness_level),
        start_latitude=latitude,
        start_longitude=longitude,
        is_gps_tracked=requires_gps(key),
        created_at=now,
    )
    db.add(session)
    user.last_active_date = now.date()
    await db.flush()
    logger.info("User %s started %s session %s", user.id, key, session.id)
    return session


async def pause_session(db: AsyncSession, session: UserActivity, now: datetime | None = None) -> UserActivity:
    if session.status != ActivityStatus.ACTIVE.value:
        msg = "Only active activities can be paused"
        raise DomainRuleError(msg)
    session.status = ActivityStatus.PAUSED.value
    session.paused_at = now or utcnow()
    session.mark_updated()
    await db.flush()
    return session


async def resume_session(db: AsyncSession, session: UserActivity, now: datetime | None = None) -> UserActivity:
    if session.status != ActivityStatus.PAUSED.value:
        msg = "Only paused activities can be resumed"
        raise DomainRuleError(msg)
    now = now or utcnow()
    if session.paused_at is not None:
        session.total_paused_seconds += max(int((now - session.paused_at).total_seconds()), 0)
    session.paused_at = None
    session.status = ActivityStatus.ACTIVE.value
    session.mark_updated()
    await db.flush()
    return session


async def cancel_session(
    db: AsyncSession,
    session: UserActivity,
    reason: str | None = None,
    now: datetime | None = None,
) -> UserActivity:
    if session.status in (ActivityStatus.COMPLETED.value, ActivityStatus.CANCELLED.value):
        msg = f"Cannot cancel a {session.status.lower()} activity"
        raise DomainRuleError(msg)
    session.status = ActivityStatus.CANCELLED.value
    session.cancelled_at = now or utcnow()
    session.cancellation_reason = (reason or "").strip() or DEFAULT_CANCEL_REASON
    session.mark_updated()
    await db.flush()
    return session


def live_status(session: UserActivity, distance_km: float, now: datetime | None = None) -> dict:
    now = now or utcnow()
    elapsed = max((now - session.started_at).total_seconds(), 0.0)
    paused = float(session.total_paused_seconds)
    if session.status == ActivityStatus.PAUSED.value and session.paused_at is not None:
        paused += max((now - session.paused_at).total_seconds(), 0.0)
    active = max(elapsed - paused, 0.0)
    return {
        "id": session.id,
        "status": session.status,
        "elapsed_seconds": int(elapsed),
        "active_seconds": int(active),
        "paused_seconds": int(paused),
        "distance_km": round(distance_km, 3),
        "estimated_calories": round(session.estimated_calories_per_hour * active / 3600, 1),
    }


async def complete_session(
    db: AsyncSession,
    redis: Any | None,
    user: User,
    session: UserActivity,
    completed_at: datetime | None = None,
    distance_km: float | None = None,
    calories_burned: float | None = None,
    perceived_exertion: int | None = None,
    mood: str | None = None,
    notes: str | None = None,
) -> dict:
    """Finish an Active session and run every completion side effect.

    Side effects: stats counters, daily streak, activity XP (with bonuses),
    badge triggers, challenge and goal progress, and a notification.
    """
    if session.status != ActivityStatus.ACTIVE.value:
        msg = "Only active activities can be completed"
        raise DomainRuleError(msg)
    completed_at = (completed_at or utcnow()).astimezone(timezone.utc)
    if completed_at < session.started_at:
        msg = "Completion time cannot be before the start time"
        raise DomainRuleError(msg)

    active_seconds = (completed_at - session.started_at).total_seconds() - session.total_paused_seconds
    session.duration_minutes = max(int(active_seconds // 60), 0)
    if calories_burned is not None:
        session.calories_burned = calories_burned
    else:
        session.calories_burned = round(session.estimated_calories_per_hour * session.duration_minutes / 60, 1)
    if distance_km is not None:
        session.distance_km = distance_km
    else:
        session.distance_km = round((await get_route_stats(db, session.id)).total_distance_km, 3)
    session.perceived_exertion = perceived_exertion
    session.mood = mood
    session.notes = notes
    session.status = ActivityStatus.COMPLETED.value
    session.completed_at = completed_at
    session.mark_updated()

    gam = await get_or_create_gamification(db, user.id)
    gam.activities_completed += 1
    gam.total_distance_km += session.distance_km
    gam.total_calories += session.calories_burned
    gam.total_active_minutes += session.duration_minutes
    await record_activity_day(db, user.id, completed_at.date())
    user.last_active_date = completed_at.date()

    level_before = user.level
    base = base_activity_xp(session.duration_minutes, session.distance_km)
    bonus = calculate_xp_bonus(
        base,
        when=session.started_at,
        streak_days=gam.current_streak,
        account_created_at=user.created_at,
    )
    granted = await grant_xp(
        db,
        redis,
        user.id,
        bonus.total,
        source="activity",
        source_id=str(session.id),
        description=f"Completed {session.name}",
        idempotency_key=f"activity:{session.id}",
        base_amount=bonus.base,
    )
    session.experience_points_earned = bonus.total if granted else 0
    await db.flush()

    badges = await TriggerEngine(db, redis).on_activity_completed(user.id, session)
    challenges_completed = await apply_activity_to_challenges(db, redis, user.id, session, completed_at)
    goals_completed = await apply_activity_to_goals(db, redis, user.id, session, completed_at)

    await create_notification(
        db,
        user.id,
        "activity",
        "activity_completed",
        title="Workout complete!",
        description=f"{session.name}: {session.duration_minutes} min, +{session.experience_points_earned} XP",
        action_url=f"/activities/{session.id}",
        action_label="View Summary",
        metadata={"user_activity_id": session.id},
        redis=redis,
    )
    logger.info(
        "User %s completed session %s: %d min, %.2f km, %d XP",
        user.id, session.id, session.duration_minutes, session.distance_km, session.experience_points_earned,
    )

    return {
        "activity": session,
        "xp_earned": session.experience_points_earned,
        "xp_breakdown": {"base": bonus.base, **bonus.breakdown},
        "leveled_up": user.level > level_before,
        "new_level": user.level,
        "badges_awarded": badges,
        "challenges_completed": challenges_completed,
        "goals_completed": goals_completed,
        "current_streak": gam.current_streak,
    }


async def add_route_points(db: AsyncSession, session: UserActivity, points: Iterable[dict]) -> list[RoutePoint]:
    """Append a batch of GPS samples to an Active session."""
    if session.status != ActivityStatus.ACTIVE.value:
        msg = "Route points can only be added to active activities"
        raise DomainRuleError(msg)
    last_seq = await db.scalar(
        select(func.max(RoutePoint.sequence)).where(RoutePoint.user_activity_id == session.id)
    )
    next_seq = (last_seq or 0) + 1
    now = utcnow()
    added = []
    for offset, point in enumerate(points):
        row = RoutePoint(
            user_activity_id=session.id,
            sequence=next_seq + offset,
            latitude=point["latitude"],
            longitude=point["longitude"],
            elevation=point.get("elevation"),
            speed=point.get("speed"),
            accuracy=point.get("accuracy"),
            recorded_at=point.get("recorded_at") or now,
        )
        db.add(row)
        added.append(row)
    await db.flush()
    return added
