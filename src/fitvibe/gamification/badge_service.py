"""Badge award service with duplicate prevention and notification."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.db.base import utcnow
from fitvibe.db.models import Badge, UserBadge
from fitvibe.errors import NotFoundError
from fitvibe.gamification.xp_service import get_or_create_gamification, grant_xp
from fitvibe.social.notification_push import publish_event
from fitvibe.social.notification_service import create_notification

logger = logging.getLogger(__name__)


async def get_badge_by_slug(db: AsyncSession, slug: str) -> Badge | None:
    result = await db.execute(select(Badge).where(Badge.slug == slug))
    return result.scalar_one_or_none()


async def list_badges(db: AsyncSession, active_only: bool = True) -> list[Badge]:
    stmt = select(Badge).order_by(Badge.sort_order, Badge.id)
    if active_only:
        stmt = stmt.where(Badge.is_active.is_(True))
    return list((await db.execute(stmt)).scalars().all())


async def has_badge(db: AsyncSession, user_id: int, badge_id: int) -> bool:
    result = await db.execute(
        select(UserBadge.id).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
    )
    return result.scalar_one_or_none() is not None


async def get_user_badges(db: AsyncSession, user_id: int, visible_only: bool = False) -> list[UserBadge]:
    stmt = (
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc(), UserBadge.id.desc())
    )
    if visible_only:
        stmt = stmt.where(UserBadge.is_visible.is_(True))
    return list((await db.execute(stmt)).scalars().unique().all())


async def award_badge(
    db: AsyncSession,
    redis: Any | None,
    user_id: int,
    badge_slug: str,
    context: dict[str, Any] | None = None,
) -> bool:
    """Award a badge to a user.

    Returns True if awarded, False if already earned or the badge is unknown.
    Handles:
    1. Insert into user_badges (UNIQUE(user_id, badge_id))
    2. Grant badge XP (idempotent via idempotency_key)
    3. Update user_gamification.badges_earned
    4. Emit notification
    """
    badge = await get_badge_by_slug(db, badge_slug)
    if badge is None or not badge.is_active:
        logger.warning("Badge not found: %s", badge_slug)
        return False

    if await has_badge(db, user_id, badge.id):
        return False

    now = utcnow()
    try:
        async with db.begin_nested():
            db.add(UserBadge(user_id=user_id, badge_id=badge.id, earned_at=now, earned_context=context or {}))
    except IntegrityError:
        # Concurrent award of the same badge; only the savepoint is rolled back
        logger.info("Badge %s already awarded to user %s", badge_slug, user_id)
        return False

    await grant_xp(
        db=db,
        redis=redis,
        user_id=user_id,
        amount=badge.points,
        source="badge",
        source_id=badge_slug,
        description=f'Earned badge: "{badge.name}"',
        idempotency_key=f"badge:{badge_slug}:{user_id}",
    )

    gam = await get_or_create_gamification(db, user_id)
    gam.badges_earned += 1
    gam.updated_at = now
    await db.flush()

    logger.info("Awarded badge %s to user %s", badge_slug, user_id)
    await _emit_badge_earned(db, redis, user_id, badge)
    return True


async def set_badge_visibility(db: AsyncSession, user_id: int, badge_slug: str, visible: bool) -> UserBadge:
    """Show or hide an earned badge on the user's profile.

    Raises:
        NotFoundError: If the user has not earned the badge.
    """
    result = await db.execute(
        select(UserBadge)
        .join(Badge, Badge.id == UserBadge.badge_id)
        .where(UserBadge.user_id == user_id, Badge.slug == badge_slug)
    )
    user_badge = result.unique().scalar_one_or_none()
    if user_badge is None:
        raise NotFoundError("Badge", badge_slug)
    if visible:
        user_badge.show()
    else:
        user_badge.hide()
    await db.flush()
    return user_badge


async def _emit_badge_earned(db: AsyncSession, redis: Any | None, user_id: int, badge: Badge) -> None:
    await create_notification(
        db,
        user_id,
        "gamification",
        "badge_earned",
        title=f'Badge Earned: "{badge.name}"',
        description=f"+{badge.points} XP: {badge.description}",
        action_url="/profile/badges",
        action_label="View Badge",
        metadata={"badge_slug": badge.slug, "rarity": badge.rarity},
        redis=redis,
    )
    await publish_event(
        redis,
        "pubsub:badge_earned",
        {
            "user_id": user_id,
            "badge_slug": badge.slug,
            "badge_name": badge.name,
            "rarity": badge.rarity,
            "points": badge.points,
        },
    )
