"""Request/response schemas for user endpoints.

Re-exports from auth schemas for convenience.
"""

from fitvibe.auth.schemas import (
    FitnessUpdateRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    ProfileUpdateRequest,
    PublicUserResponse,
    UserResponse,
    UserStatsResponse,
)

__all__ = [
    "FitnessUpdateRequest",
    "PreferencesResponse",
    "PreferencesUpdateRequest",
    "ProfileUpdateRequest",
    "PublicUserResponse",
    "UserResponse",
    "UserStatsResponse",
]
