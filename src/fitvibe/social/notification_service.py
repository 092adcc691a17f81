"""Notification creation and delivery service.

Notifications are:
1. Filtered by the recipient's ``allow_notifications`` preference
2. Persisted in the database
3. Published to ``ws:user:{id}`` on Redis for live clients

Types: activity, gamification, challenge, goal, social, system
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.db.base import utcnow
from fitvibe.db.models import Notification, User
from fitvibe.social.notification_push import push_notification_to_user
from fitvibe.users.preferences import load_preferences

logger = logging.getLogger(__name__)

VALID_TYPES = {"activity", "gamification", "challenge", "goal", "social", "system"}


def should_deliver(preferences: dict[str, Any] | None, type_: str) -> bool:
    """System notifications always go through; the rest honour allow_notifications."""
    if type_ == "system":
        return True
    return load_preferences(preferences).allow_notifications


async def create_notification(
    db: AsyncSession,
    user_id: int,
    type_: str,
    subtype: str,
    title: str,
    description: str | None = None,
    action_url: str | None = None,
    action_label: str | None = None,
    metadata: dict[str, Any] | None = None,
    redis: Any | None = None,
) -> Notification | None:
    """Persist a notification and push it. Returns None when the user opted out."""
    if type_ not in VALID_TYPES:
        msg = f"Invalid notification type: {type_}. Must be one of {sorted(VALID_TYPES)}"
        raise ValueError(msg)

    prefs = await db.scalar(select(User.preferences).where(User.id == user_id))
    if not should_deliver(prefs, type_):
        logger.debug("Notification %s/%s suppressed for user %s", type_, subtype, user_id)
        return None

    notification = Notification(
        user_id=user_id,
        type=type_,
        subtype=subtype,
        title=title,
        description=description,
        action_url=action_url,
        action_label=action_label,
        notification_metadata=metadata or {},
        created_at=utcnow(),
    )
    db.add(notification)
    await db.flush()

    await push_notification_to_user(redis, notification)
    return notification


async def get_notifications(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    """Get user's notifications (paginated, most recent first)."""
    conditions = [Notification.user_id == user_id]
    if unread_only:
        conditions.append(Notification.read.is_(False))

    total = await db.scalar(select(func.count()).select_from(Notification).where(*conditions))

    result = await db.execute(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), int(total or 0)


async def mark_as_read(db: AsyncSession, user_id: int, notification_id: int) -> bool:
    """Mark a single notification as read. Returns True if found."""
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(read=True)
    )
    await db.flush()
    return result.rowcount > 0  # type: ignore[attr-defined,no-any-return]


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    """Mark all unread notifications as read. Returns count updated."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.flush()
    return result.rowcount  # type: ignore[attr-defined,no-any-return]


async def delete_notification(db: AsyncSession, user_id: int, notification_id: int) -> bool:
    result = await db.execute(
        delete(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    await db.flush()
    return result.rowcount > 0  # type: ignore[attr-defined,no-any-return]


async def get_counts(db: AsyncSession, user_id: int) -> tuple[int, int]:
    """Return (total, unread) notification counts."""
    total = await db.scalar(
        select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    )
    unread = await get_unread_count(db, user_id)
    return int(total or 0), unread


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return int(result.scalar_one())
