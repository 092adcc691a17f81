"""Pydantic request/response models for goal endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import AwareDatetime, BaseModel, Field

from fitvibe.db.enums import GoalFrequency, GoalType
from fitvibe.db.models import UserGoal


class GoalCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    type: GoalType
    frequency: GoalFrequency = GoalFrequency.ONE_TIME
    target_value: float = Field(..., gt=0)
    unit: str = Field("", max_length=32)
    activity_type: str | None = Field(None, max_length=32)
    start_date: AwareDatetime | None = None
    end_date: AwareDatetime
    is_adaptive: bool = False
    xp_reward: int = Field(50, ge=0, le=10_000)


class GoalUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    target_value: float | None = Field(None, gt=0)
    adaptive_target: float | None = Field(None, gt=0)
    current_value: float | None = None


class GoalProgressRequest(BaseModel):
    value: float


class GoalExtendRequest(BaseModel):
    end_date: AwareDatetime


class GoalResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    type: str
    frequency: str
    target_value: float
    current_value: float
    unit: str
    activity_type: str | None = None
    start_date: datetime
    end_date: datetime
    status: str
    is_adaptive: bool
    xp_reward: int
    completed_at: datetime | None = None
    percentage: float
    is_overdue: bool
    time_remaining_seconds: int

    @classmethod
    def from_goal(cls, goal: UserGoal) -> "GoalResponse":
        return cls(
            id=goal.id,
            title=goal.title,
            description=goal.description,
            type=goal.type,
            frequency=goal.frequency,
            target_value=goal.target_value,
            current_value=goal.current_value,
            unit=goal.unit,
            activity_type=goal.activity_type,
            start_date=goal.start_date,
            end_date=goal.end_date,
            status=goal.status,
            is_adaptive=goal.is_adaptive,
            xp_reward=goal.xp_reward,
            completed_at=goal.completed_at,
            percentage=round(goal.percentage, 2),
            is_overdue=goal.is_overdue(),
            time_remaining_seconds=int(goal.time_remaining().total_seconds()),
        )


class GoalsResponse(BaseModel):
    goals: list[GoalResponse]
