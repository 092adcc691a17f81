"""Daily activity streaks.

Streaks are updated when an activity is completed and evaluated lazily on
read, so no scheduled job is needed to expire them.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.db.base import utcnow
from fitvibe.db.models import UserGamification
from fitvibe.gamification.xp_service import get_or_create_gamification

logger = logging.getLogger(__name__)


def advance_streak(gam: UserGamification, day: date) -> bool:
    """Apply an activity on ``day`` to the streak counters. Returns True if changed."""
    last = gam.last_activity_date
    if last is not None and day <= last:
        return False
    if last is not None and day - last == timedelta(days=1):
        gam.current_streak += 1
    else:
        gam.current_streak = 1
    gam.longest_streak = max(gam.longest_streak, gam.current_streak)
    gam.last_activity_date = day
    return True


async def record_activity_day(db: AsyncSession, user_id: int, day: date | None = None) -> UserGamification:
    """Update the streak after an activity completed on ``day`` (default: today UTC)."""
    gam = await get_or_create_gamification(db, user_id)
    day = day or utcnow().date()
    if advance_streak(gam, day):
        gam.updated_at = utcnow()
        await db.flush()
        logger.info("User %s streak is now %d day(s)", user_id, gam.current_streak)
    return gam


def effective_streak(gam: UserGamification, today: date | None = None) -> int:
    """Current streak as seen today: 0 once a full day has been missed."""
    today = today or utcnow().date()
    if gam.last_activity_date is None or gam.last_activity_date < today - timedelta(days=1):
        return 0
    return gam.current_streak


def streak_status(gam: UserGamification, today: date | None = None) -> dict:
    today = today or utcnow().date()
    current = effective_streak(gam, today)
    return {
        "current_streak": current,
        "longest_streak": gam.longest_streak,
        "last_activity_date": gam.last_activity_date,
        "streak_at_risk": current > 0 and gam.last_activity_date == today - timedelta(days=1),
        "active_today": gam.last_activity_date == today,
    }
