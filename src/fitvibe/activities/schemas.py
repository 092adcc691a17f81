"""Pydantic request/response models for activity endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from fitvibe.db.enums import ActivityCategory


# --- Catalog ---


class ActivityTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str | None = None
    type: str
    category: str
    difficulty: int
    estimated_calories_per_hour: int
    requires_gps: bool
    is_featured: bool
    icon_url: str | None = None


class ActivityTypesResponse(BaseModel):
    types: list[ActivityTypeResponse]


# --- Templates ---


class TemplateCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    activity_type: str = Field(..., min_length=1, max_length=32)
    category: ActivityCategory
    difficulty: int = Field(1, ge=1, le=5)
    estimated_duration_minutes: int = Field(..., gt=0, le=1440)
    estimated_calories: int = Field(0, ge=0)
    tags: list[str] = Field(default_factory=list, max_length=20)
    equipment: list[str] = Field(default_factory=list, max_length=20)
    is_public: bool = True


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    activity_type: str
    category: str
    difficulty: int
    estimated_duration_minutes: int
    estimated_calories: int
    tags: list[str] = []
    equipment: list[str] = []
    is_public: bool
    created_by: int | None = None
    usage_count: int
    average_rating: float
    rating_count: int


class TemplatesResponse(BaseModel):
    templates: list[TemplateResponse]


class RateTemplateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)


# --- Sessions ---


class StartActivityRequest(BaseModel):
    activity_type: str = Field(..., min_length=1, max_length=32)
    name: str | None = Field(None, max_length=128)
    template_id: int | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class CompleteActivityRequest(BaseModel):
    completed_at: AwareDatetime | None = None
    distance_km: float | None = Field(None, ge=0)
    calories_burned: float | None = Field(None, ge=0)
    perceived_exertion: int | None = Field(None, ge=1, le=10)
    mood: str | None = Field(None, max_length=32)
    notes: str | None = Field(None, max_length=2000)


class CancelActivityRequest(BaseModel):
    reason: str | None = Field(None, max_length=256)


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    activity_id: int | None = None
    template_id: int | None = None
    activity_type: str
    name: str
    status: str
    started_at: datetime
    paused_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    total_paused_seconds: int
    duration_minutes: int
    distance_km: float
    calories_burned: float
    estimated_calories_per_hour: int
    perceived_exertion: int | None = None
    mood: str | None = None
    notes: str | None = None
    experience_points_earned: int
    cancellation_reason: str | None = None
    start_latitude: float | None = None
    start_longitude: float | None = None
    is_gps_tracked: bool


class ActivityHistoryResponse(BaseModel):
    activities: list[ActivityResponse]
    total: int
    page: int
    per_page: int


class LiveStatusResponse(BaseModel):
    id: int
    status: str
    elapsed_seconds: int
    active_seconds: int
    paused_seconds: int
    distance_km: float
    estimated_calories: float


class XPBreakdown(BaseModel):
    base: int
    multiplier: int = 0
    weekend: int = 0
    streak: int = 0
    early_bird: int = 0
    new_user: int = 0


class CompleteActivityResponse(BaseModel):
    activity: ActivityResponse
    xp_earned: int
    xp_breakdown: XPBreakdown
    leveled_up: bool
    new_level: int
    badges_awarded: list[str] = []
    challenges_completed: list[int] = []
    goals_completed: list[int] = []
    current_streak: int


# --- Route ---


class RoutePointIn(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    elevation: float | None = None
    speed: float | None = Field(None, ge=0)
    accuracy: float | None = Field(None, ge=0)
    recorded_at: AwareDatetime | None = None


class RoutePointsRequest(BaseModel):
    points: list[RoutePointIn] = Field(..., min_length=1, max_length=1000)


class RoutePointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    latitude: float
    longitude: float
    elevation: float | None = None
    speed: float | None = None
    accuracy: float | None = None
    recorded_at: datetime


class RoutePointsAddedResponse(BaseModel):
    added: int
    last_sequence: int


class RouteResponse(BaseModel):
    points: list[RoutePointResponse]


class RouteStatsResponse(BaseModel):
    point_count: int
    total_distance_m: float
    total_distance_km: float
    average_speed_mps: float
    max_speed_mps: float
    min_elevation: float | None = None
    max_elevation: float | None = None
    elevation_gain_m: float
    duration_seconds: float
