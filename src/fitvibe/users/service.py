"""User management business logic."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

import structlog

from fitvibe.auth.service import get_user_by_id, revoke_all_tokens
from fitvibe.errors import NotFoundError
from fitvibe.gamification.badge_service import get_user_badges
from fitvibe.gamification.level_thresholds import title_for_level
from fitvibe.gamification.streak_service import effective_streak
from fitvibe.gamification.xp_service import get_or_create_gamification
from fitvibe.users.preferences import UserPreferences, load_preferences, merge_preferences

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from fitvibe.db.models import User

logger = structlog.get_logger()


async def update_profile(
    db: AsyncSession,
    user: User,
    first_name: str | None = None,
    last_name: str | None = None,
    date_of_birth: date | None = None,
    gender: str | None = None,
    avatar_url: str | None = None,
    bio: str | None = None,
) -> User:
    """Update user profile fields. ``None`` leaves a field unchanged."""
    if first_name is not None:
        user.first_name = first_name.strip()
    if last_name is not None:
        user.last_name = last_name.strip()
    if date_of_birth is not None:
        user.date_of_birth = date_of_birth
    if gender is not None:
        user.gender = gender
    if avatar_url is not None:
        user.avatar_url = avatar_url
    if bio is not None:
        user.bio = bio

    user.mark_updated()
    await db.flush()
    return user


async def update_fitness(
    db: AsyncSession,
    user: User,
    fitness_level: str,
    primary_goal: str | None = None,
) -> User:
    user.fitness_level = fitness_level
    if primary_goal is not None:
        user.primary_goal = primary_goal
    user.mark_updated()
    await db.flush()
    logger.info("fitness_profile_updated", user_id=user.id, fitness_level=fitness_level)
    return user


def get_preferences(user: User) -> UserPreferences:
    return load_preferences(user.preferences)


async def update_preferences(db: AsyncSession, user: User, updates: dict[str, Any]) -> UserPreferences:
    """
    Merge a partial update into the stored preferences.

    Raises:
        DomainRuleError: If the merged preferences are invalid.
    """
    prefs = merge_preferences(user.preferences, updates)
    # Reassign so the JSON column is flagged dirty
    user.preferences = prefs.model_dump()
    user.mark_updated()
    await db.flush()
    return prefs


async def get_stats(db: AsyncSession, user: User) -> dict[str, Any]:
    gam = await get_or_create_gamification(db, user.id)
    return {
        "activities_completed": gam.activities_completed,
        "total_distance_km": round(gam.total_distance_km, 2),
        "total_calories": round(gam.total_calories, 1),
        "total_active_minutes": gam.total_active_minutes,
        "current_streak": effective_streak(gam),
        "longest_streak": gam.longest_streak,
        "level": user.level,
        "level_title": title_for_level(user.level),
        "experience_points": user.experience_points,
        "badges_earned": gam.badges_earned,
        "challenges_completed": gam.challenges_completed,
    }


async def delete_account(db: AsyncSession, user: User) -> None:
    """Soft delete and deactivate the account, revoking every refresh token."""
    user.soft_delete()
    user.is_active = False
    revoked = await revoke_all_tokens(db, user.id)
    await db.flush()
    logger.info("account_deleted", user_id=user.id, tokens_revoked=revoked)


async def get_public_profile(db: AsyncSession, user_id: int) -> dict[str, Any]:
    """
    Public profile of another user.

    Raises:
        NotFoundError: If the user does not exist or was deleted.
    """
    user = await get_user_by_id(db, user_id)
    if user is None or not user.is_active:
        raise NotFoundError("User", user_id)

    badges = await get_user_badges(db, user.id, visible_only=True)
    return {
        "id": user.id,
        "display_name": user.display_name,
        "avatar_url": user.avatar_url,
        "bio": user.bio,
        "fitness_level": user.fitness_level,
        "level": user.level,
        "level_title": title_for_level(user.level),
        "experience_points": user.experience_points,
        "badges": [ub.badge.slug for ub in badges],
        "created_at": user.created_at,
    }
