"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from fitvibe.db.enums import FitnessGoal, FitnessLevel, Gender


class _EmailNormalized(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


class RegisterRequest(_EmailNormalized):
    """Email registration request."""

    password: str = Field(..., min_length=1, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=64)
    last_name: str = Field(..., min_length=1, max_length=64)
    date_of_birth: date | None = None
    gender: Gender | None = None
    fitness_level: FitnessLevel | None = None
    primary_goal: FitnessGoal | None = None


class LoginRequest(_EmailNormalized):
    password: str = Field(..., min_length=1, max_length=128)


class VerifyEmailRequest(BaseModel):
    token: str


class ResendVerificationRequest(_EmailNormalized):
    pass


class ForgotPasswordRequest(_EmailNormalized):
    pass


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=1, max_length=128)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    """Token pair returned after successful auth."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
    user: UserResponse


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Full profile of the authenticated user."""

    id: int
    email: str
    first_name: str
    last_name: str
    display_name: str
    date_of_birth: date | None = None
    age: int | None = None
    gender: str
    avatar_url: str | None = None
    bio: str | None = None
    fitness_level: str
    primary_goal: str | None = None
    experience_points: int = 0
    level: int = 1
    is_email_verified: bool = False
    is_admin: bool = False
    created_at: datetime | None = None
    last_login: datetime | None = None
    login_count: int = 0

    model_config = {"from_attributes": True}


class PublicUserResponse(BaseModel):
    """Public profile visible to other users."""

    id: int
    display_name: str
    avatar_url: str | None = None
    bio: str | None = None
    fitness_level: str
    level: int = 1
    level_title: str = ""
    experience_points: int = 0
    badges: list[str] = []
    created_at: datetime | None = None


class ProfileUpdateRequest(BaseModel):
    """Partial profile update."""

    first_name: str | None = Field(None, min_length=1, max_length=64)
    last_name: str | None = Field(None, min_length=1, max_length=64)
    date_of_birth: date | None = None
    gender: Gender | None = None
    avatar_url: str | None = Field(None, max_length=2048)
    bio: str | None = Field(None, max_length=280)


class FitnessUpdateRequest(BaseModel):
    fitness_level: FitnessLevel
    primary_goal: FitnessGoal | None = None


class PreferencesResponse(BaseModel):
    timezone: str
    allow_notifications: bool
    share_activities_publicly: bool
    receive_motivational_messages: bool
    allow_friend_requests: bool
    quiet_hours_start: int
    quiet_hours_end: int
    preferred_units: str
    enable_audio_cues: bool
    share_to_social_media: bool


class PreferencesUpdateRequest(BaseModel):
    """Any subset of preferences; unknown keys are rejected."""

    model_config = {"extra": "forbid"}

    timezone: str | None = Field(None, max_length=64)
    allow_notifications: bool | None = None
    share_activities_publicly: bool | None = None
    receive_motivational_messages: bool | None = None
    allow_friend_requests: bool | None = None
    quiet_hours_start: int | None = None
    quiet_hours_end: int | None = None
    preferred_units: str | None = None
    enable_audio_cues: bool | None = None
    share_to_social_media: bool | None = None


class UserStatsResponse(BaseModel):
    activities_completed: int
    total_distance_km: float
    total_calories: float
    total_active_minutes: int
    current_streak: int
    longest_streak: int
    level: int
    level_title: str
    experience_points: int
    badges_earned: int
    challenges_completed: int


TokenResponse.model_rebuild()
