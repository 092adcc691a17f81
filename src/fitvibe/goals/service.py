"""Personal goals: CRUD, progress and automatic tracking from activities."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.activities.metrics import normalize_activity_type
from fitvibe.db.base import utcnow
from fitvibe.db.enums import GoalStatus, GoalType
from fitvibe.db.models import UserActivity, UserGoal
from fitvibe.errors import DomainRuleError, ForbiddenError, NotFoundError
from fitvibe.gamification.xp_service import grant_xp
from fitvibe.social.notification_service import create_notification

logger = logging.getLogger(__name__)


def activity_increment(goal_type: str, activity: UserActivity) -> float | None:
    if goal_type == GoalType.DISTANCE.value:
        return activity.distance_km
    if goal_type == GoalType.DURATION.value:
        return float(activity.duration_minutes)
    if goal_type == GoalType.FREQUENCY.value:
        return 1.0
    return None


async def get_goal(db: AsyncSession, goal_id: int, user_id: int) -> UserGoal:
    """Fetch a goal owned by ``user_id``.

    Raises:
        NotFoundError: Missing or soft-deleted.
        ForbiddenError: Owned by another user.
    """
    goal = await db.get(UserGoal, goal_id)
    if goal is None or goal.is_deleted:
        raise NotFoundError("Goal", goal_id)
    if goal.user_id != user_id:
        msg = "You do not own this goal"
        raise ForbiddenError(msg)
    return goal


async def list_goals(db: AsyncSession, user_id: int, status: str | None = None) -> list[UserGoal]:
    stmt = select(UserGoal).where(UserGoal.user_id == user_id, UserGoal.is_deleted.is_(False))
    if status:
        stmt = stmt.where(UserGoal.status == status)
    goals = list((await db.execute(stmt.order_by(UserGoal.end_date.asc(), UserGoal.id))).scalars().all())
    # Lazily expire goals whose deadline passed since the last write
    now = utcnow()
    for goal in goals:
        if goal.status == GoalStatus.ACTIVE.value:
            goal.recompute_status(now)
    return goals


async def create_goal(
    db: AsyncSession,
    user_id: int,
    title: str,
    type_: str,
    target_value: float,
    end_date: datetime,
    start_date: datetime | None = None,
    frequency: str | None = None,
    description: str | None = None,
    unit: str = "",
    activity_type: str | None = None,
    is_adaptive: bool = False,
    xp_reward: int = 50,
) -> UserGoal:
    start_date = start_date or utcnow()
    if not title.strip():
        msg = "Title is required"
        raise DomainRuleError(msg)
    if target_value <= 0:
        msg = "Target value must be greater than zero"
        raise DomainRuleError(msg)
    if end_date <= start_date:
        msg = "End date must be after the start date"
        raise DomainRuleError(msg)

    goal = UserGoal(
        user_id=user_id,
        title=title.strip(),
        description=description,
        type=type_,
        target_value=target_value,
        current_value=0.0,
        unit=unit,
        activity_type=normalize_activity_type(activity_type) if activity_type else None,
        start_date=start_date,
        end_date=end_date,
        is_adaptive=is_adaptive,
        xp_reward=xp_reward,
    )
    if frequency:
        goal.frequency = frequency
    db.add(goal)
    await db.flush()
    return goal


async def finalize(db: AsyncSession, redis: Any | None, goal: UserGoal, now: datetime | None = None) -> bool:
    """Recompute status after a mutation; grants the reward on first completion."""
    just_completed = goal.recompute_status(now)
    await db.flush()
    if just_completed:
        await grant_xp(
            db,
            redis,
            goal.user_id,
            goal.xp_reward,
            source="goal",
            source_id=str(goal.id),
            description=f'Completed goal "{goal.title}"',
            idempotency_key=f"goal:{goal.id}",
        )
        await create_notification(
            db,
            goal.user_id,
            "goal",
            "goal_completed",
            title="Goal Achieved!",
            description=f'You reached "{goal.title}"',
            action_url=f"/goals/{goal.id}",
            action_label="View Goal",
            metadata={"goal_id": goal.id},
            redis=redis,
        )
        logger.info("User %s completed goal %s", goal.user_id, goal.id)
    return just_completed


async def update_goal(
    db: AsyncSession,
    redis: Any | None,
    goal: UserGoal,
    title: str | None = None,
    description: str | None = None,
    target_value: float | None = None,
    adaptive_target: float | None = None,
    current_value: float | None = None,
) -> UserGoal:
    if title is not None:
        if not title.strip():
            msg = "Title is required"
            raise DomainRuleError(msg)
        goal.title = title.strip()
    if description is not None:
        goal.description = description
    if target_value is not None:
        goal.update_target(target_value)
    if adaptive_target is not None:
        goal.adapt_target(adaptive_target)
    if current_value is not None:
        goal.update_progress(current_value)
    goal.mark_updated()
    await finalize(db, redis, goal)
    return goal


async def add_progress(db: AsyncSession, redis: Any | None, goal: UserGoal, value: float) -> UserGoal:
    if goal.status == GoalStatus.ABANDONED.value:
        msg = "Cannot add progress to an abandoned goal"
        raise DomainRuleError(msg)
    goal.add_progress(value)
    await finalize(db, redis, goal)
    return goal


async def extend_goal(db: AsyncSession, redis: Any | None, goal: UserGoal, new_end: datetime) -> UserGoal:
    goal.extend_deadline(new_end)
    await finalize(db, redis, goal)
    return goal


async def abandon_goal(db: AsyncSession, goal: UserGoal) -> UserGoal:
    goal.abandon()
    await db.flush()
    return goal


async def delete_goal(db: AsyncSession, goal: UserGoal) -> None:
    goal.soft_delete()
    await db.flush()


async def apply_activity_to_goals(
    db: AsyncSession,
    redis: Any | None,
    user_id: int,
    activity: UserActivity,
    now: datetime | None = None,
) -> list[int]:
    """Add a completed activity to the user's matching active goals.

    Returns the ids of goals completed as a result.
    """
    now = now or utcnow()
    result = await db.execute(
        select(UserGoal).where(
            UserGoal.user_id == user_id,
            UserGoal.is_deleted.is_(False),
            UserGoal.status == GoalStatus.ACTIVE.value,
            UserGoal.type.in_([GoalType.DISTANCE.value, GoalType.DURATION.value, GoalType.FREQUENCY.value]),
            or_(UserGoal.activity_type.is_(None), UserGoal.activity_type == activity.activity_type),
        )
    )
    completed: list[int] = []
    for goal in result.scalars().all():
        if now > goal.end_date:
            goal.recompute_status(now)
            continue
        increment = activity_increment(goal.type, activity)
        if not increment:
            continue
        goal.current_value += increment
        goal.mark_updated()
        if await finalize(db, redis, goal, now):
            completed.append(goal.id)
    await db.flush()
    return completed
