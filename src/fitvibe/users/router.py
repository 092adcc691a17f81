"""User management router: all /api/v1/users/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.auth.dependencies import get_current_user
from fitvibe.database import get_session
from fitvibe.db.models import User
from fitvibe.users.schemas import (
    FitnessUpdateRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    ProfileUpdateRequest,
    PublicUserResponse,
    UserResponse,
    UserStatsResponse,
)
from fitvibe.users.service import (
    delete_account,
    get_preferences,
    get_public_profile,
    get_stats,
    update_fitness,
    update_preferences,
    update_profile,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserResponse)
async def get_profile(
    user: User = Depends(get_current_user),
) -> UserResponse:
    """Get own full profile."""
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update profile fields."""
    await update_profile(
        db,
        user,
        first_name=body.first_name,
        last_name=body.last_name,
        date_of_birth=body.date_of_birth,
        gender=body.gender.value if body.gender else None,
        avatar_url=body.avatar_url,
        bio=body.bio,
    )
    await db.commit()
    logger.info("profile_updated", user_id=user.id)
    return UserResponse.model_validate(user)


@router.put("/me/fitness", response_model=UserResponse)
async def update_my_fitness(
    body: FitnessUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Set fitness level and primary goal."""
    await update_fitness(
        db,
        user,
        fitness_level=body.fitness_level.value,
        primary_goal=body.primary_goal.value if body.primary_goal else None,
    )
    await db.commit()
    return UserResponse.model_validate(user)


@router.get("/me/stats", response_model=UserStatsResponse)
async def my_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserStatsResponse:
    """Lifetime activity totals, streak and level."""
    stats = await get_stats(db, user)
    await db.commit()
    return UserStatsResponse(**stats)


@router.delete("/me", status_code=204)
async def delete_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Delete own account (soft delete)."""
    await delete_account(db, user)
    await db.commit()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


@router.get("/me/preferences", response_model=PreferencesResponse)
async def get_my_preferences(
    user: User = Depends(get_current_user),
) -> PreferencesResponse:
    return PreferencesResponse(**get_preferences(user).model_dump())


@router.put("/me/preferences", response_model=PreferencesResponse)
async def update_my_preferences(
    body: PreferencesUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PreferencesResponse:
    """Partially update preferences. Omitted keys keep their current value."""
    prefs = await update_preferences(db, user, body.model_dump(exclude_none=True))
    await db.commit()
    logger.info("preferences_updated", user_id=user.id)
    return PreferencesResponse(**prefs.model_dump())


# ---------------------------------------------------------------------------
# Public profiles
# ---------------------------------------------------------------------------


@router.get("/{user_id}", response_model=PublicUserResponse)
async def get_user_profile(
    user_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PublicUserResponse:
    """Get another user's public profile."""
    return PublicUserResponse(**await get_public_profile(db, user_id))
