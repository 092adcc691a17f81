"""Leaderboards ranked from the database, with Redis caching of global boards.

Rankings are computed per (metric, timeframe). Global boards are cached as
a JSON list of ``[user_id, score]`` pairs for ``leaderboard_cache_ttl_seconds``;
friend boards are small and always computed live.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.config import get_settings
from fitvibe.db.base import utcnow
from fitvibe.db.enums import ActivityStatus
from fitvibe.db.models import User, UserActivity, XPLedger
from fitvibe.errors import DomainRuleError

logger = logging.getLogger(__name__)

METRICS = ("xp", "activities", "distance", "calories")
TIMEFRAMES = ("all_time", "week", "month")
SCOPES = ("global", "friends")


def timeframe_start(timeframe: str, now: datetime | None = None) -> datetime | None:
    """Start of the window: ISO Monday 00:00 for week, the 1st for month, None for all time."""
    now = now or utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if timeframe == "week":
        return midnight - timedelta(days=midnight.weekday())
    if timeframe == "month":
        return midnight.replace(day=1)
    if timeframe == "all_time":
        return None
    msg = f"Unknown timeframe: {timeframe}"
    raise DomainRuleError(msg)


def cache_key(metric: str, timeframe: str) -> str:
    return f"leaderboard:{metric}:{timeframe}"


async def _scores(db: AsyncSession, metric: str, since: datetime | None) -> dict[int, float]:
    live_users = select(User.id).where(User.is_deleted.is_(False), User.is_active.is_(True))

    if metric == "xp" and since is None:
        result = await db.execute(
            select(User.id, User.experience_points).where(User.id.in_(live_users), User.experience_points > 0)
        )
        return {uid: float(xp) for uid, xp in result.all()}

    if metric == "xp":
        result = await db.execute(
            select(XPLedger.user_id, func.sum(XPLedger.amount))
            .where(XPLedger.created_at >= since, XPLedger.user_id.in_(live_users))
            .group_by(XPLedger.user_id)
        )
        return {uid: float(total or 0) for uid, total in result.all()}

    column = {
        "activities": func.count(UserActivity.id),
        "distance": func.sum(UserActivity.distance_km),
        "calories": func.sum(UserActivity.calories_burned),
    }.get(metric)
    if column is None:
        msg = f"Unknown metric: {metric}"
        raise DomainRuleError(msg)

    stmt = (
        select(UserActivity.user_id, column)
        .where(
            UserActivity.status == ActivityStatus.COMPLETED.value,
            UserActivity.is_deleted.is_(False),
            UserActivity.user_id.in_(live_users),
        )
        .group_by(UserActivity.user_id)
    )
    if since is not None:
        stmt = stmt.where(UserActivity.completed_at >= since)
    result = await db.execute(stmt)
    return {uid: float(total or 0) for uid, total in result.all() if total}


def rank(scores: dict[int, float]) -> list[tuple[int, float]]:
    """Order by score descending; ties are broken by the older account (lower id)."""
    return sorted(scores.items(), key=lambda item: (-item[1], item[0]))


async def _ranked_global(db: AsyncSession, redis: Any | None, metric: str, timeframe: str) -> list[tuple[int, float]]:
    key = cache_key(metric, timeframe)
    if redis is not None:
        try:
            cached = await redis.get(key)
        except Exception:
            logger.warning("Leaderboard cache read failed for %s", key, exc_info=True)
            cached = None
        if cached:
            return [(int(uid), float(score)) for uid, score in json.loads(cached)]

    ranked = rank(await _scores(db, metric, timeframe_start(timeframe)))

    if redis is not None:
        try:
            await redis.set(key, json.dumps(ranked), ex=get_settings().leaderboard_cache_ttl_seconds)
        except Exception:
            logger.warning("Leaderboard cache write failed for %s", key, exc_info=True)
    return ranked


async def get_leaderboard(
    db: AsyncSession,
    redis: Any | None,
    current_user_id: int,
    metric: str = "xp",
    timeframe: str = "all_time",
    scope: str = "global",
    friend_ids: list[int] | None = None,
    page: int = 1,
    per_page: int = 50,
) -> dict:
    """Ranked page of a leaderboard plus the caller's own standing."""
    if metric not in METRICS:
        msg = f"Unknown metric: {metric}. Must be one of {', '.join(METRICS)}"
        raise DomainRuleError(msg)
    if scope not in SCOPES:
        msg = f"Unknown scope: {scope}. Must be one of {', '.join(SCOPES)}"
        raise DomainRuleError(msg)
    timeframe_start(timeframe)

    if scope == "friends":
        members = {current_user_id, *(friend_ids or [])}
        scores = await _scores(db, metric, timeframe_start(timeframe))
        ranked = rank({uid: scores.get(uid, 0.0) for uid in members})
    else:
        ranked = await _ranked_global(db, redis, metric, timeframe)

    total = len(ranked)
    start = (page - 1) * per_page
    window = ranked[start : start + per_page]

    user_ids = [uid for uid, _ in window]
    users: dict[int, User] = {}
    if user_ids:
        result = await db.execute(select(User).where(User.id.in_(user_ids)))
        users = {u.id: u for u in result.scalars()}

    entries = []
    for offset, (uid, score) in enumerate(window):
        user = users.get(uid)
        entries.append(
            {
                "rank": start + offset + 1,
                "user_id": uid,
                "display_name": user.display_name if user else f"Athlete-{uid}",
                "avatar_url": user.avatar_url if user else None,
                "level": user.level if user else 1,
                "score": score,
                "is_current_user": uid == current_user_id,
            }
        )

    my_rank = next((i + 1 for i, (uid, _) in enumerate(ranked) if uid == current_user_id), None)
    my_score = ranked[my_rank - 1][1] if my_rank else 0.0
    percentile = round((1 - (my_rank - 1) / total) * 100, 1) if my_rank and total else None

    return {
        "metric": metric,
        "timeframe": timeframe,
        "scope": scope,
        "entries": entries,
        "total": total,
        "page": page,
        "per_page": per_page,
        "my_rank": my_rank,
        "my_score": my_score,
        "percentile": percentile,
    }


async def get_user_rank(db: AsyncSession, redis: Any | None, user_id: int) -> int | None:
    """All-time global XP rank of a user (None when unranked)."""
    ranked = await _ranked_global(db, redis, "xp", "all_time")
    return next((i + 1 for i, (uid, _) in enumerate(ranked) if uid == user_id), None)
