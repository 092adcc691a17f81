"""XP grant service with idempotency, bonus engine and level-up detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.config import get_settings
from fitvibe.db.base import utcnow
from fitvibe.db.models import User, UserGamification, XPLedger
from fitvibe.gamification.level_thresholds import compute_level
from fitvibe.social.notification_push import publish_event
from fitvibe.social.notification_service import create_notification

logger = logging.getLogger(__name__)

WEEKEND_BONUS = 0.5
EARLY_BIRD_BONUS = 0.25
EARLY_BIRD_HOUR = 8
NEW_USER_BONUS = 0.2
STREAK_BONUS_PER_WEEK = 0.1
STREAK_BONUS_CAP = 1.0


@dataclass
class XPBonus:
    base: int
    bonus: int = 0
    breakdown: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.base + self.bonus


def calculate_xp_bonus(
    base: int,
    *,
    when: datetime,
    multiplier_pct: int = 100,
    streak_days: int = 0,
    account_created_at: datetime | None = None,
) -> XPBonus:
    """Apply every eligible bonus to ``base``. All bonuses are computed on the base amount.

    - multiplier above 100% adds ``base * (m - 100) / 100``
    - Saturday/Sunday adds 50%
    - every full week of streak adds 10%, capped at 100%
    - activity before 08:00 adds 25%
    - accounts younger than ``new_user_bonus_days`` add 20%
    """
    if base <= 0:
        return XPBonus(base=0)

    parts: dict[str, float] = {}
    if multiplier_pct > 100:
        parts["multiplier"] = base * (multiplier_pct - 100) / 100
    if when.weekday() >= 5:
        parts["weekend"] = base * WEEKEND_BONUS
    if streak_days >= 7:
        parts["streak"] = base * min(streak_days // 7 * STREAK_BONUS_PER_WEEK, STREAK_BONUS_CAP)
    if when.hour < EARLY_BIRD_HOUR:
        parts["early_bird"] = base * EARLY_BIRD_BONUS
    if account_created_at is not None:
        window = timedelta(days=get_settings().new_user_bonus_days)
        if when - account_created_at < window:
            parts["new_user"] = base * NEW_USER_BONUS

    breakdown = {name: int(value) for name, value in parts.items()}
    return XPBonus(base=base, bonus=sum(breakdown.values()), breakdown=breakdown)


async def get_or_create_gamification(db: AsyncSession, user_id: int) -> UserGamification:
    """Get or create the denormalized gamification row for a user."""
    gam = await db.get(UserGamification, user_id)
    if gam is None:
        gam = UserGamification(user_id=user_id, updated_at=utcnow())
        db.add(gam)
        await db.flush()
    return gam


async def grant_xp(
    db: AsyncSession,
    redis: Any | None,
    user_id: int,
    amount: int,
    source: str,
    source_id: str,
    description: str,
    idempotency_key: str,
    base_amount: int | None = None,
) -> bool:
    """Grant XP to a user. Returns True if granted, False if duplicate or non-positive.

    After granting:
    1. Insert into xp_ledger
    2. Update users.experience_points
    3. Recompute users.level from the new total
    4. If the level changed, emit a level_up notification
    """
    if amount <= 0:
        return False

    existing = await db.execute(select(XPLedger.id).where(XPLedger.idempotency_key == idempotency_key))
    if existing.scalar_one_or_none() is not None:
        return False

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("XP grant for unknown user %s (%s)", user_id, idempotency_key)
        return False

    now = utcnow()
    base = amount if base_amount is None else base_amount
    db.add(
        XPLedger(
            user_id=user_id,
            amount=amount,
            base_amount=base,
            bonus_amount=amount - base,
            source=source,
            source_id=source_id,
            description=description,
            idempotency_key=idempotency_key,
            created_at=now,
        )
    )

    old_level = user.level
    user.experience_points = (user.experience_points or 0) + amount
    level_info = compute_level(user.experience_points)
    user.level = level_info["level"]
    user.mark_updated()

    gam = await get_or_create_gamification(db, user_id)
    gam.level_title = level_info["title"]
    gam.updated_at = now

    await db.flush()
    logger.info("Granted %d XP to user %s (%s)", amount, user_id, source)

    if user.level > old_level:
        await _emit_level_up(db, redis, user_id, old_level, user.level, level_info["title"])

    return True


async def _emit_level_up(
    db: AsyncSession,
    redis: Any | None,
    user_id: int,
    old_level: int,
    new_level: int,
    title: str,
) -> None:
    await create_notification(
        db,
        user_id,
        "gamification",
        "level_up",
        title="Level Up!",
        description=f"Level {new_level}: {title}",
        action_url="/profile/level",
        action_label="View Level",
        metadata={"old_level": old_level, "new_level": new_level},
        redis=redis,
    )
    await publish_event(
        redis,
        "pubsub:level_up",
        {"user_id": user_id, "old_level": old_level, "new_level": new_level, "title": title},
    )


async def get_xp_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[XPLedger], int]:
    total = await db.scalar(select(func.count()).select_from(XPLedger).where(XPLedger.user_id == user_id))
    result = await db.execute(
        select(XPLedger)
        .where(XPLedger.user_id == user_id)
        .order_by(XPLedger.created_at.desc(), XPLedger.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), int(total or 0)
