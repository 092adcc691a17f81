"""Social API endpoints: feed, friends, cheers, shares, likes and comments."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.auth.dependencies import get_current_user
from fitvibe.config import get_settings
from fitvibe.database import get_session
from fitvibe.db.models import ActivityShare, FriendRequest, User, UserActivity
from fitvibe.dependencies import get_redis_dep
from fitvibe.social.cheer_service import send_cheer
from fitvibe.social.feed_service import (
    add_comment,
    get_feed,
    like_share,
    list_comments,
    live_friend_activities,
    share_activity,
    unlike_share,
)
from fitvibe.social.friends_service import (
    list_friends,
    list_requests,
    respond_to_request,
    send_friend_request,
    unfriend,
)
from fitvibe.social.schemas import (
    CheerRequest,
    CheerResponse,
    CommentRequest,
    CommentResponse,
    CommentsResponse,
    FeedItem,
    FeedResponse,
    FriendRequestCreate,
    FriendRequestResponse,
    FriendRequestsResponse,
    FriendResponse,
    FriendsResponse,
    LikeResponse,
    LiveActivity,
    RespondRequest,
    SharedActivity,
    ShareRequest,
    ShareResponse,
    UserSummary,
)

router = APIRouter(prefix="/api/v1/social", tags=["Social"])


# ── Helpers ──


def _summary(user: User) -> UserSummary:
    return UserSummary(
        user_id=user.id,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        level=user.level,
    )


def _share(share: ActivityShare) -> ShareResponse:
    return ShareResponse(
        id=share.id,
        user_id=share.user_id,
        user_activity_id=share.user_activity_id,
        caption=share.caption,
        privacy=share.privacy,
        created_at=share.created_at,
    )


def _shared_activity(activity: UserActivity) -> SharedActivity:
    return SharedActivity(
        id=activity.id,
        activity_type=activity.activity_type,
        name=activity.name,
        duration_minutes=activity.duration_minutes,
        distance_km=activity.distance_km,
        calories_burned=activity.calories_burned,
        experience_points_earned=activity.experience_points_earned,
        completed_at=activity.completed_at,
    )


def _request(r: FriendRequest) -> FriendRequestResponse:
    return FriendRequestResponse(
        id=r.id,
        requester_id=r.requester_id,
        target_id=r.target_id,
        message=r.message,
        status=r.status,
        created_at=r.created_at,
        responded_at=r.responded_at,
    )


# ── Feed ──


@router.get("/feed", response_model=FeedResponse)
async def feed(
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Shares visible to the current user plus friends' live sessions."""
    per_page = per_page or get_settings().feed_page_size
    items, total = await get_feed(db, user.id, page=page, per_page=per_page)
    live = await live_friend_activities(db, user.id)
    return FeedResponse(
        items=[
            FeedItem(
                share=_share(item["share"]),
                owner=_summary(item["owner"]),
                activity=_shared_activity(item["activity"]),
                like_count=item["like_count"],
                comment_count=item["comment_count"],
                liked_by_me=item["liked_by_me"],
            )
            for item in items
        ],
        live_friend_activities=[
            LiveActivity(
                user_activity_id=activity.id,
                owner=_summary(owner),
                activity_type=activity.activity_type,
                name=activity.name,
                started_at=activity.started_at,
                status=activity.status,
            )
            for activity, owner in live
        ],
        total=total,
        page=page,
        per_page=per_page,
    )


# ── Friends ──


@router.get("/friends", response_model=FriendsResponse)
async def friends(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rows = await list_friends(db, user.id)
    return FriendsResponse(
        friends=[
            FriendResponse(**_summary(friend).model_dump(), friends_since=connection.created_at)
            for friend, connection in rows
        ],
        total=len(rows),
    )


@router.delete("/friends/{friend_id}", status_code=204)
async def remove_friend(
    friend_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await unfriend(db, user.id, friend_id)
    await db.commit()
    return Response(status_code=204)


@router.get("/friends/requests", response_model=FriendRequestsResponse)
async def friend_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Pending incoming and outgoing friend requests."""
    incoming, outgoing = await list_requests(db, user.id)
    return FriendRequestsResponse(
        incoming=[_request(r) for r in incoming],
        outgoing=[_request(r) for r in outgoing],
    )


@router.post("/friends/{target_id}/request", response_model=FriendRequestResponse, status_code=201)
async def request_friend(
    target_id: int,
    body: FriendRequestCreate | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    request = await send_friend_request(db, redis, user, target_id, message=body.message if body else None)
    await db.commit()
    return _request(request)


@router.post("/friends/requests/{request_id}/respond", response_model=FriendRequestResponse)
async def respond(
    request_id: int,
    body: RespondRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    request = await respond_to_request(db, redis, user, request_id, accept=body.accept)
    await db.commit()
    return _request(request)


# ── Cheers ──


@router.post("/cheer/{target_id}", response_model=CheerResponse, status_code=201)
async def cheer(
    target_id: int,
    body: CheerRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    """Send a cheer to a friend, optionally attached to one of their activities."""
    sent = await send_cheer(
        db,
        redis,
        user,
        target_id,
        cheer_type=body.cheer_type.value,
        message=body.message,
        emoji_code=body.emoji_code,
        audio_url=body.audio_url,
        power_up_value=body.power_up_value,
        user_activity_id=body.user_activity_id,
    )
    await db.commit()
    return CheerResponse(
        id=sent.id,
        sender_id=sent.sender_id,
        target_id=sent.target_id,
        user_activity_id=sent.user_activity_id,
        cheer_type=sent.cheer_type,
        message=sent.message,
        emoji_code=sent.emoji_code,
        audio_url=sent.audio_url,
        power_up_value=sent.power_up_value,
        is_live=sent.is_live,
        created_at=sent.created_at,
    )


# ── Shares, likes, comments ──


@router.post("/share/activity/{activity_id}", response_model=ShareResponse, status_code=201)
async def share(
    activity_id: int,
    body: ShareRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    body = body or ShareRequest()
    created = await share_activity(db, user, activity_id, caption=body.caption, privacy=body.privacy.value)
    await db.commit()
    return _share(created)


@router.post("/posts/{share_id}/like", response_model=LikeResponse, status_code=201)
async def like(
    share_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    await like_share(db, redis, user, share_id)
    await db.commit()
    return LikeResponse(share_id=share_id, liked=True)


@router.delete("/posts/{share_id}/like", response_model=LikeResponse)
async def unlike(
    share_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await unlike_share(db, user, share_id)
    await db.commit()
    return LikeResponse(share_id=share_id, liked=False)


@router.post("/posts/{share_id}/comment", response_model=CommentResponse, status_code=201)
async def comment(
    share_id: int,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    created = await add_comment(db, redis, user, share_id, body.content)
    await db.commit()
    return CommentResponse(
        id=created.id,
        share_id=created.share_id,
        author=_summary(user),
        content=created.content,
        created_at=created.created_at,
    )


@router.get("/posts/{share_id}/comments", response_model=CommentsResponse)
async def comments(
    share_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rows = await list_comments(db, user.id, share_id)
    return CommentsResponse(
        comments=[
            CommentResponse(
                id=c.id,
                share_id=c.share_id,
                author=_summary(author),
                content=c.content,
                created_at=c.created_at,
            )
            for c, author in rows
        ]
    )
