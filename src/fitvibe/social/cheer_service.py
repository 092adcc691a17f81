"""Cheers: encouragement sent to friends, optionally during a live activity."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.config import get_settings
from fitvibe.db.base import utcnow
from fitvibe.db.enums import ActivityStatus, CheerType
from fitvibe.db.models import Cheer, User, UserActivity
from fitvibe.errors import DomainRuleError, ForbiddenError, NotFoundError, TooManyRequestsError
from fitvibe.gamification.xp_service import grant_xp
from fitvibe.social.friends_service import are_friends
from fitvibe.social.notification_service import create_notification
from fitvibe.users.preferences import load_preferences

logger = structlog.get_logger()

MAX_MESSAGE_LENGTH = 280
POWERUP_MIN = 1
POWERUP_MAX = 100


def validate_cheer_payload(
    cheer_type: str,
    message: str | None = None,
    emoji_code: str | None = None,
    audio_url: str | None = None,
    power_up_value: int | None = None,
) -> None:
    """Each cheer type requires its own payload field."""
    if cheer_type == CheerType.TEXT.value:
        if not message or not message.strip():
            msg = "Text cheers require a message"
            raise DomainRuleError(msg)
        if len(message) > MAX_MESSAGE_LENGTH:
            msg = f"Message must be at most {MAX_MESSAGE_LENGTH} characters"
            raise DomainRuleError(msg)
    elif cheer_type == CheerType.EMOJI.value:
        if not emoji_code:
            msg = "Emoji cheers require an emoji_code"
            raise DomainRuleError(msg)
    elif cheer_type == CheerType.AUDIO.value:
        if not audio_url:
            msg = "Audio cheers require an audio_url"
            raise DomainRuleError(msg)
    elif cheer_type == CheerType.POWERUP.value:
        if power_up_value is None or not POWERUP_MIN <= power_up_value <= POWERUP_MAX:
            msg = f"Power-up value must be between {POWERUP_MIN} and {POWERUP_MAX}"
            raise DomainRuleError(msg)
    else:
        msg = f"Unknown cheer type: {cheer_type}"
        raise DomainRuleError(msg)


async def send_cheer(
    db: AsyncSession,
    redis: Any | None,
    sender: User,
    target_id: int,
    cheer_type: str,
    message: str | None = None,
    emoji_code: str | None = None,
    audio_url: str | None = None,
    power_up_value: int | None = None,
    user_activity_id: int | None = None,
) -> Cheer:
    if target_id == sender.id:
        msg = "You cannot cheer yourself"
        raise DomainRuleError(msg)
    validate_cheer_payload(cheer_type, message, emoji_code, audio_url, power_up_value)

    target = await db.get(User, target_id)
    if target is None or target.is_deleted:
        raise NotFoundError("User", target_id)
    if not await are_friends(db, sender.id, target_id):
        if not load_preferences(target.preferences).share_activities_publicly:
            msg = "You can only cheer friends or users who share publicly"
            raise ForbiddenError(msg)

    activity: UserActivity | None = None
    if user_activity_id is not None:
        activity = await db.get(UserActivity, user_activity_id)
        if activity is None or activity.is_deleted or activity.user_id != target_id:
            raise NotFoundError("Activity", user_activity_id)

    now = utcnow()
    recent = await db.scalar(
        select(func.count())
        .select_from(Cheer)
        .where(Cheer.sender_id == sender.id, Cheer.created_at >= now - timedelta(minutes=1))
    )
    if (recent or 0) >= get_settings().cheers_per_minute:
        msg = "Too many cheers. Slow down a little."
        raise TooManyRequestsError(msg)

    cheer = Cheer(
        sender_id=sender.id,
        target_id=target_id,
        user_activity_id=user_activity_id,
        cheer_type=cheer_type,
        message=message,
        emoji_code=emoji_code,
        audio_url=audio_url,
        power_up_value=power_up_value or 0,
        is_live=activity is not None and activity.status == ActivityStatus.ACTIVE.value,
        created_at=now,
    )
    db.add(cheer)
    await db.flush()

    if cheer_type == CheerType.POWERUP.value:
        # The cheer stands even if the bonus XP cannot be granted
        try:
            async with db.begin_nested():
                await grant_xp(
                    db,
                    redis,
                    target_id,
                    cheer.power_up_value,
                    source="cheer",
                    source_id=str(cheer.id),
                    description=f"Power-up from {sender.display_name}",
                    idempotency_key=f"cheer:{cheer.id}",
                )
        except Exception:
            logger.exception("cheer_powerup_grant_failed", cheer_id=cheer.id, target_id=target_id)

    await create_notification(
        db,
        target_id,
        "social",
        "cheer",
        title=f"{sender.display_name} cheered you on!",
        description=message or emoji_code,
        action_url=f"/activities/{user_activity_id}" if user_activity_id else None,
        metadata={"cheer_id": cheer.id, "cheer_type": cheer_type, "is_live": cheer.is_live},
        redis=redis,
    )
    logger.info("cheer_sent", sender_id=sender.id, target_id=target_id, cheer_type=cheer_type)
    return cheer
