"""Pydantic request/response models for gamification endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


# --- Badge ---


class BadgeResponse(BaseModel):
    slug: str
    name: str
    description: str
    icon_url: str | None = None
    category: str
    rarity: str
    points: int
    earned: bool = False
    earned_at: datetime | None = None


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]
    total_earned: int


class EarnedBadgeResponse(BaseModel):
    slug: str
    name: str
    category: str
    rarity: str
    points: int
    earned_at: datetime
    is_visible: bool
    context: dict = {}


class UserBadgesResponse(BaseModel):
    earned: list[EarnedBadgeResponse]
    total_available: int
    total_earned: int


class BadgeVisibilityRequest(BaseModel):
    is_visible: bool


# --- XP / levels ---


class LevelInfo(BaseModel):
    level: int
    title: str
    xp_into_level: int
    xp_for_level: int
    next_level: int
    next_title: str


class LevelEntry(BaseModel):
    level: int
    title: str
    xp_required: int
    cumulative: int


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]


class XPHistoryEntry(BaseModel):
    amount: int
    base_amount: int
    bonus_amount: int
    source: str
    source_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


class XPHistoryResponse(BaseModel):
    entries: list[XPHistoryEntry]
    total: int
    page: int
    per_page: int


# --- Streak ---


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    last_activity_date: date | None = None
    streak_at_risk: bool
    active_today: bool


# --- Dashboard ---


class DashboardResponse(BaseModel):
    total_xp: int
    level: LevelInfo
    streak: StreakResponse
    badges_earned: int
    activities_completed: int
    total_distance_km: float
    total_calories: float
    total_active_minutes: int
    challenges_completed: int
    recent_xp: list[XPHistoryEntry]
    global_rank: int | None = None


# --- Leaderboard ---


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    display_name: str
    avatar_url: str | None = None
    level: int
    score: float
    is_current_user: bool = False


class LeaderboardResponse(BaseModel):
    metric: str
    timeframe: str
    scope: str
    entries: list[LeaderboardEntry]
    total: int
    page: int
    per_page: int
    my_rank: int | None = None
    my_score: float = 0.0
    percentile: float | None = None


# --- Admin ---


class AwardXPRequest(BaseModel):
    user_id: int
    amount: int = Field(..., gt=0, le=100_000)
    reason: str = Field(..., min_length=1, max_length=256)
    idempotency_key: str | None = Field(None, max_length=200)
    multiplier_percentage: int | None = Field(None, ge=100, le=1000)


class AwardXPResponse(BaseModel):
    granted: bool
    total_xp: int
    level: int


class AwardBadgeRequest(BaseModel):
    user_id: int
    badge_slug: str = Field(..., min_length=1, max_length=64)


class AwardBadgeResponse(BaseModel):
    awarded: bool
    badge_slug: str
