"""Pydantic request/response models for challenge endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

from fitvibe.db.enums import ChallengeType


class ChallengeCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=2000)
    type: ChallengeType
    target_value: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=32)
    activity_type: str | None = Field(None, max_length=32)
    start_date: AwareDatetime
    end_date: AwareDatetime | None = None
    is_private: bool = False
    xp_reward: int = Field(100, ge=0, le=10_000)
    max_participants: int | None = Field(None, ge=1)

    @model_validator(mode="after")
    def end_after_start(self) -> "ChallengeCreateRequest":
        if self.end_date is not None and self.end_date <= self.start_date:
            msg = "end_date must be after start_date"
            raise ValueError(msg)
        return self


class ChallengeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    type: str
    target_value: float
    unit: str
    activity_type: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    is_private: bool
    is_active: bool
    xp_reward: int
    max_participants: int | None = None
    created_by: int
    created_at: datetime


class ParticipationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    joined_at: datetime
    progress: float
    is_completed: bool
    completed_at: datetime | None = None
    last_progress_at: datetime | None = None


class ChallengeDetailResponse(ChallengeResponse):
    participant_count: int = 0
    my_participation: ParticipationResponse | None = None


class ChallengeSearchResponse(BaseModel):
    challenges: list[ChallengeResponse]
    total: int
    page: int
    per_page: int


class MyChallengeEntry(BaseModel):
    challenge: ChallengeResponse
    participation: ParticipationResponse | None = None
    progress_percentage: float = 0.0


class MyChallengesResponse(BaseModel):
    challenges: list[MyChallengeEntry]


class ProgressUpdateRequest(BaseModel):
    value: float = Field(..., ge=0)


class ProgressResponse(BaseModel):
    challenge_id: int
    progress: float
    target_value: float
    progress_percentage: float
    is_completed: bool
    completed_at: datetime | None = None
    rank: int


class ChallengeLeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    display_name: str
    avatar_url: str | None = None
    progress: float
    is_completed: bool
    completed_at: datetime | None = None


class ChallengeLeaderboardResponse(BaseModel):
    challenge_id: int
    entries: list[ChallengeLeaderboardEntry]
