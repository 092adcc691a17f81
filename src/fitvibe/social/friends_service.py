"""Friend requests and friendships.

Rules:
- No requests to yourself, to unknown users, or to users who disabled them
- One pending request per pair (either direction)
- At most ``friend_requests_per_hour`` requests sent per user per hour
- Accepting stores the friendship as a symmetric pair of connections
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import structlog
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.config import get_settings
from fitvibe.db.base import utcnow
from fitvibe.db.enums import FriendRequestStatus
from fitvibe.db.models import FriendRequest, User, UserConnection
from fitvibe.errors import ConflictError, DomainRuleError, ForbiddenError, NotFoundError, TooManyRequestsError
from fitvibe.gamification.trigger_engine import TriggerEngine
from fitvibe.social.notification_service import create_notification
from fitvibe.users.preferences import load_preferences

logger = structlog.get_logger()


async def are_friends(db: AsyncSession, user_id: int, other_id: int) -> bool:
    result = await db.execute(
        select(UserConnection.id).where(
            UserConnection.follower_id == user_id,
            UserConnection.followed_id == other_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def get_friend_ids(db: AsyncSession, user_id: int) -> list[int]:
    result = await db.execute(
        select(UserConnection.followed_id).where(UserConnection.follower_id == user_id)
    )
    return list(result.scalars().all())


async def list_friends(db: AsyncSession, user_id: int) -> list[tuple[User, UserConnection]]:
    result = await db.execute(
        select(User, UserConnection)
        .join(UserConnection, UserConnection.followed_id == User.id)
        .where(UserConnection.follower_id == user_id, User.is_deleted.is_(False))
        .order_by(User.first_name, User.last_name)
    )
    return [(row[0], row[1]) for row in result.all()]


async def _pending_between(db: AsyncSession, a: int, b: int) -> FriendRequest | None:
    result = await db.execute(
        select(FriendRequest).where(
            FriendRequest.status == FriendRequestStatus.PENDING.value,
            or_(
                (FriendRequest.requester_id == a) & (FriendRequest.target_id == b),
                (FriendRequest.requester_id == b) & (FriendRequest.target_id == a),
            ),
        )
    )
    return result.scalars().first()


async def send_friend_request(
    db: AsyncSession,
    redis: Any | None,
    requester: User,
    target_id: int,
    message: str | None = None,
) -> FriendRequest:
    """Send a friend request and notify the target.

    Raises:
        DomainRuleError: Request to self.
        NotFoundError: Unknown target.
        ConflictError: Already friends, or a pending request exists.
        ForbiddenError: Target does not accept friend requests.
        TooManyRequestsError: Hourly quota exhausted.
    """
    if target_id == requester.id:
        msg = "You cannot send a friend request to yourself"
        raise DomainRuleError(msg)

    target = await db.get(User, target_id)
    if target is None or target.is_deleted or not target.is_active:
        raise NotFoundError("User", target_id)

    if await are_friends(db, requester.id, target_id):
        msg = "AlreadyFriends"
        raise ConflictError(msg)
    if await _pending_between(db, requester.id, target_id) is not None:
        msg = "RequestExists"
        raise ConflictError(msg)
    if not load_preferences(target.preferences).allow_friend_requests:
        msg = "This user is not accepting friend requests"
        raise ForbiddenError(msg)

    now = utcnow()
    sent_last_hour = await db.scalar(
        select(func.count())
        .select_from(FriendRequest)
        .where(FriendRequest.requester_id == requester.id, FriendRequest.created_at >= now - timedelta(hours=1))
    )
    if (sent_last_hour or 0) >= get_settings().friend_requests_per_hour:
        msg = "Too many friend requests. Try again later."
        raise TooManyRequestsError(msg)

    request = FriendRequest(requester_id=requester.id, target_id=target_id, message=message, created_at=now)
    db.add(request)
    await db.flush()

    await create_notification(
        db,
        target_id,
        "social",
        "friend_request",
        title=f"{requester.display_name} sent you a friend request",
        description=message,
        action_url="/social/friends/requests",
        action_label="Respond",
        metadata={"request_id": request.id, "requester_id": requester.id},
        redis=redis,
    )
    logger.info("friend_request_sent", requester_id=requester.id, target_id=target_id)
    return request


async def respond_to_request(
    db: AsyncSession,
    redis: Any | None,
    user: User,
    request_id: int,
    accept: bool,
) -> FriendRequest:
    """Accept or decline a pending request addressed to ``user``."""
    request = await db.get(FriendRequest, request_id)
    if request is None:
        raise NotFoundError("Friend request", request_id)
    if request.target_id != user.id:
        msg = "Only the recipient can respond to this request"
        raise ForbiddenError(msg)
    if request.status != FriendRequestStatus.PENDING.value:
        msg = "This request has already been answered"
        raise DomainRuleError(msg)

    now = utcnow()
    request.responded_at = now
    if not accept:
        request.status = FriendRequestStatus.DECLINED.value
        await db.flush()
        logger.info("friend_request_declined", request_id=request.id)
        return request

    request.status = FriendRequestStatus.ACCEPTED.value
    if not await are_friends(db, request.requester_id, request.target_id):
        db.add(UserConnection(follower_id=request.requester_id, followed_id=request.target_id, created_at=now))
        db.add(UserConnection(follower_id=request.target_id, followed_id=request.requester_id, created_at=now))
    await db.flush()

    await create_notification(
        db,
        request.requester_id,
        "social",
        "friend_request_accepted",
        title=f"{user.display_name} accepted your friend request",
        action_url=f"/users/{user.id}",
        action_label="View Profile",
        metadata={"friend_id": user.id},
        redis=redis,
    )
    engine = TriggerEngine(db, redis)
    await engine.on_friendship_created(request.requester_id)
    await engine.on_friendship_created(request.target_id)
    logger.info("friend_request_accepted", request_id=request.id)
    return request


async def unfriend(db: AsyncSession, user_id: int, friend_id: int) -> None:
    if not await are_friends(db, user_id, friend_id):
        raise NotFoundError("Friend", friend_id)
    await db.execute(
        delete(UserConnection).where(
            or_(
                (UserConnection.follower_id == user_id) & (UserConnection.followed_id == friend_id),
                (UserConnection.follower_id == friend_id) & (UserConnection.followed_id == user_id),
            )
        )
    )
    await db.flush()
    logger.info("unfriended", user_id=user_id, friend_id=friend_id)


async def list_requests(db: AsyncSession, user_id: int) -> tuple[list[FriendRequest], list[FriendRequest]]:
    """Pending (incoming, outgoing) requests, newest first."""
    result = await db.execute(
        select(FriendRequest)
        .where(
            FriendRequest.status == FriendRequestStatus.PENDING.value,
            or_(FriendRequest.target_id == user_id, FriendRequest.requester_id == user_id),
        )
        .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
    )
    requests = list(result.scalars().all())
    incoming = [r for r in requests if r.target_id == user_id]
    outgoing = [r for r in requests if r.requester_id == user_id]
    return incoming, outgoing
