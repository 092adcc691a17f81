"""Tests for notification delivery rules and the Redis push payload."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from fitvibe.db.models import Notification
from fitvibe.social.notification_push import notification_payload, push_notification_to_user, user_channel
from fitvibe.social.notification_service import should_deliver


def _notification() -> Notification:
    return Notification(
        id=7,
        user_id=5,
        type="gamification",
        subtype="badge_earned",
        title="Badge Earned",
        description="+50 XP",
        action_url="/profile/badges",
        action_label="View Badge",
        read=False,
        notification_metadata={"badge_slug": "first_workout"},
        created_at=datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc),
    )


class TestShouldDeliver:
    def test_default_allows(self):
        assert should_deliver(None, "activity") is True

    def test_opt_out_suppresses(self):
        assert should_deliver({"allow_notifications": False}, "social") is False

    def test_system_always_delivered(self):
        assert should_deliver({"allow_notifications": False}, "system") is True


class TestPush:
    def test_channel_name(self):
        assert user_channel(42) == "ws:user:42"

    def test_payload(self):
        payload = notification_payload(_notification())
        assert payload["event"] == "notification"
        data = payload["data"]
        assert data["id"] == "7"
        assert data["subtype"] == "badge_earned"
        assert data["actionUrl"] == "/profile/badges"
        assert data["metadata"] == {"badge_slug": "first_workout"}
        assert data["timestamp"].startswith("2026-10-14T12:00:00")

    async def test_publish_to_user_channel(self):
        redis = AsyncMock()
        assert await push_notification_to_user(redis, _notification()) is True
        channel, raw = redis.publish.await_args.args
        assert channel == "ws:user:5"
        assert json.loads(raw)["data"]["title"] == "Badge Earned"

    async def test_without_redis(self):
        assert await push_notification_to_user(None, _notification()) is False

    async def test_publish_failure_swallowed(self):
        redis = AsyncMock()
        redis.publish.side_effect = ConnectionError("redis down")
        assert await push_notification_to_user(redis, _notification()) is False
