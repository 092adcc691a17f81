"""Publish notifications on Redis pub/sub for per-user live delivery."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fitvibe.db.models import Notification

logger = logging.getLogger(__name__)


def user_channel(user_id: int) -> str:
    return f"ws:user:{user_id}"


def notification_payload(notification: Notification) -> dict[str, Any]:
    """Wire format consumed by live clients subscribed to ``ws:user:{id}``."""
    return {
        "event": "notification",
        "data": {
            "id": str(notification.id),
            "type": notification.type,
            "subtype": notification.subtype,
            "title": notification.title,
            "description": notification.description,
            "timestamp": notification.created_at.isoformat() if notification.created_at else None,
            "read": notification.read,
            "actionUrl": notification.action_url,
            "actionLabel": notification.action_label,
            "metadata": notification.notification_metadata or {},
        },
    }


async def push_notification_to_user(redis: Any | None, notification: Notification) -> bool:
    """Publish a flushed notification to ``ws:user:{user_id}``.

    Returns True when published. Publish failures are logged and swallowed:
    the notification is already persisted and will show up on the next poll.
    """
    if redis is None:
        return False
    try:
        await redis.publish(user_channel(notification.user_id), json.dumps(notification_payload(notification)))
    except Exception:
        logger.warning("Failed to push notification via ws:user:%s", notification.user_id, exc_info=True)
        return False
    return True


async def publish_event(redis: Any | None, channel: str, payload: dict[str, Any]) -> None:
    """Broadcast a raw domain event (level ups, badge awards) to a shared channel."""
    if redis is None:
        return
    try:
        await redis.publish(channel, json.dumps(payload))
    except Exception:
        logger.warning("Failed to publish %s broadcast", channel, exc_info=True)
