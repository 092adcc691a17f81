"""Badge trigger engine: evaluates user progress against badge criteria."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.db.models import Badge, User, UserActivity, UserConnection
from fitvibe.gamification.badge_service import award_badge, has_badge
from fitvibe.gamification.xp_service import get_or_create_gamification

logger = logging.getLogger(__name__)

ACTIVITY_TRIGGERS = ("activity_count", "total_distance_km", "streak_days", "early_bird")
SOCIAL_TRIGGERS = ("friend_count",)
CHALLENGE_TRIGGERS = ("challenges_completed",)

# Evaluated after every pass since earning other badges can grant XP.
LEVEL_TRIGGER = "level_reached"


class TriggerEngine:
    """Evaluates badge triggers after domain events."""

    def __init__(self, db: AsyncSession, redis: Any | None) -> None:
        self.db = db
        self.redis = redis
        self._badge_cache: list[Badge] | None = None

    async def _load_badges(self) -> list[Badge]:
        if self._badge_cache is None:
            result = await self.db.execute(
                select(Badge).where(Badge.is_active.is_(True)).order_by(Badge.sort_order)
            )
            self._badge_cache = list(result.scalars())
        return self._badge_cache

    async def _metric(self, user_id: int, trigger: str) -> float:
        gam = await get_or_create_gamification(self.db, user_id)
        if trigger == "activity_count":
            return gam.activities_completed
        if trigger == "total_distance_km":
            return gam.total_distance_km
        if trigger == "streak_days":
            return gam.current_streak
        if trigger == "challenges_completed":
            return gam.challenges_completed
        if trigger == "friend_count":
            count = await self.db.scalar(
                select(func.count()).select_from(UserConnection).where(UserConnection.follower_id == user_id)
            )
            return float(count or 0)
        if trigger == LEVEL_TRIGGER:
            level = await self.db.scalar(select(User.level).where(User.id == user_id))
            return float(level or 1)
        msg = f"Unknown badge trigger: {trigger}"
        raise ValueError(msg)

    async def _evaluate(self, user_id: int, triggers: tuple[str, ...], context: dict[str, Any]) -> list[str]:
        awarded: list[str] = []
        for trigger in (*triggers, LEVEL_TRIGGER):
            candidates = [b for b in await self._load_badges() if (b.criteria or {}).get("trigger") == trigger]
            if not candidates:
                continue
            for badge in candidates:
                if await has_badge(self.db, user_id, badge.id):
                    continue
                threshold = float(badge.criteria.get("threshold", 0))
                if trigger == "early_bird":
                    hour = context.get("started_hour")
                    earned = hour is not None and hour < threshold
                else:
                    earned = await self._metric(user_id, trigger) >= threshold
                if earned and await award_badge(
                    self.db, self.redis, user_id, badge.slug, context={"trigger": trigger, **context}
                ):
                    awarded.append(badge.slug)
        return awarded

    async def on_activity_completed(self, user_id: int, activity: UserActivity) -> list[str]:
        context = {
            "user_activity_id": activity.id,
            "started_hour": activity.started_at.hour,
        }
        return await self._evaluate(user_id, ACTIVITY_TRIGGERS, context)

    async def on_friendship_created(self, user_id: int) -> list[str]:
        return await self._evaluate(user_id, SOCIAL_TRIGGERS, {})

    async def on_challenge_completed(self, user_id: int, challenge_id: int) -> list[str]:
        return await self._evaluate(user_id, CHALLENGE_TRIGGERS, {"challenge_id": challenge_id})

    async def on_xp_changed(self, user_id: int) -> list[str]:
        return await self._evaluate(user_id, (), {})
