"""Personal goal API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.auth.dependencies import get_current_user
from fitvibe.database import get_session
from fitvibe.db.enums import GoalStatus
from fitvibe.db.models import User
from fitvibe.dependencies import get_redis_dep
from fitvibe.goals import service
from fitvibe.goals.schemas import (
    GoalCreateRequest,
    GoalExtendRequest,
    GoalProgressRequest,
    GoalResponse,
    GoalsResponse,
    GoalUpdateRequest,
)

router = APIRouter(prefix="/api/v1/goals", tags=["Goals"])


@router.get("", response_model=GoalsResponse)
async def list_goals(
    status: GoalStatus | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    goals = await service.list_goals(db, user.id, status=status.value if status else None)
    await db.commit()
    return GoalsResponse(goals=[GoalResponse.from_goal(g) for g in goals])


@router.post("", response_model=GoalResponse, status_code=201)
async def create_goal(
    body: GoalCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    goal = await service.create_goal(
        db,
        user.id,
        title=body.title,
        type_=body.type.value,
        target_value=body.target_value,
        end_date=body.end_date,
        start_date=body.start_date,
        frequency=body.frequency.value,
        description=body.description,
        unit=body.unit,
        activity_type=body.activity_type,
        is_adaptive=body.is_adaptive,
        xp_reward=body.xp_reward,
    )
    await db.commit()
    return GoalResponse.from_goal(goal)


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    goal = await service.get_goal(db, goal_id, user.id)
    return GoalResponse.from_goal(goal)


@router.put("/{goal_id}", response_model=GoalResponse)
async def update_goal(
    goal_id: int,
    body: GoalUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    """Edit title, description, target or adaptive target."""
    goal = await service.get_goal(db, goal_id, user.id)
    await service.update_goal(
        db,
        redis,
        goal,
        title=body.title,
        description=body.description,
        target_value=body.target_value,
        adaptive_target=body.adaptive_target,
        current_value=body.current_value,
    )
    await db.commit()
    return GoalResponse.from_goal(goal)


@router.delete("/{goal_id}", status_code=204)
async def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    goal = await service.get_goal(db, goal_id, user.id)
    await service.delete_goal(db, goal)
    await db.commit()
    return Response(status_code=204)


@router.post("/{goal_id}/progress", response_model=GoalResponse)
async def add_progress(
    goal_id: int,
    body: GoalProgressRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    goal = await service.get_goal(db, goal_id, user.id)
    await service.add_progress(db, redis, goal, body.value)
    await db.commit()
    return GoalResponse.from_goal(goal)


@router.post("/{goal_id}/extend", response_model=GoalResponse)
async def extend_goal(
    goal_id: int,
    body: GoalExtendRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    goal = await service.get_goal(db, goal_id, user.id)
    await service.extend_goal(db, redis, goal, body.end_date)
    await db.commit()
    return GoalResponse.from_goal(goal)


@router.post("/{goal_id}/abandon", response_model=GoalResponse)
async def abandon_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    goal = await service.get_goal(db, goal_id, user.id)
    await service.abandon_goal(db, goal)
    await db.commit()
    return GoalResponse.from_goal(goal)
