"""Activity shares, likes, comments and the social feed.

Visibility of a share:
- Public: everyone
- FollowersOnly: the owner and the owner's friends
- Private: the owner only

Invisible shares are reported as missing.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.db.base import utcnow
from fitvibe.db.enums import ActivityStatus, SharePrivacy
from fitvibe.db.models import ActivityComment, ActivityLike, ActivityShare, User, UserActivity
from fitvibe.errors import ConflictError, DomainRuleError, ForbiddenError, NotFoundError
from fitvibe.social.friends_service import are_friends, get_friend_ids
from fitvibe.social.notification_service import create_notification

logger = structlog.get_logger()

MAX_CAPTION_LENGTH = 500
MAX_COMMENT_LENGTH = 1000


async def can_view_share(db: AsyncSession, share: ActivityShare, viewer_id: int) -> bool:
    if share.user_id == viewer_id or share.privacy == SharePrivacy.PUBLIC.value:
        return True
    if share.privacy == SharePrivacy.FOLLOWERS_ONLY.value:
        return await are_friends(db, share.user_id, viewer_id)
    return False


async def get_visible_share(db: AsyncSession, share_id: int, viewer_id: int) -> ActivityShare:
    share = await db.get(ActivityShare, share_id)
    if share is None or share.is_deleted or not await can_view_share(db, share, viewer_id):
        raise NotFoundError("Post", share_id)
    return share


async def share_activity(
    db: AsyncSession,
    user: User,
    user_activity_id: int,
    caption: str | None = None,
    privacy: str = SharePrivacy.PUBLIC.value,
) -> ActivityShare:
    """Post a completed activity to the feed."""
    activity = await db.get(UserActivity, user_activity_id)
    if activity is None or activity.is_deleted:
        raise NotFoundError("Activity", user_activity_id)
    if activity.user_id != user.id:
        msg = "You can only share your own activities"
        raise ForbiddenError(msg)
    if activity.status != ActivityStatus.COMPLETED.value:
        msg = "Only completed activities can be shared"
        raise DomainRuleError(msg)
    if caption is not None and len(caption) > MAX_CAPTION_LENGTH:
        msg = f"Caption must be at most {MAX_CAPTION_LENGTH} characters"
        raise DomainRuleError(msg)

    share = ActivityShare(
        user_id=user.id,
        user_activity_id=activity.id,
        caption=caption,
        privacy=privacy,
        created_at=utcnow(),
    )
    db.add(share)
    await db.flush()
    logger.info("activity_shared", user_id=user.id, share_id=share.id, privacy=privacy)
    return share


async def like_share(db: AsyncSession, redis: Any | None, user: User, share_id: int) -> ActivityLike:
    share = await get_visible_share(db, share_id, user.id)
    existing = await db.execute(
        select(ActivityLike.id).where(ActivityLike.share_id == share.id, ActivityLike.user_id == user.id)
    )
    if existing.scalar_one_or_none() is not None:
        msg = "You already liked this post"
        raise ConflictError(msg)

    like = ActivityLike(share_id=share.id, user_id=user.id, created_at=utcnow())
    db.add(like)
    await db.flush()

    if share.user_id != user.id:
        await create_notification(
            db,
            share.user_id,
            "social",
            "post_liked",
            title=f"{user.display_name} liked your activity",
            action_url=f"/social/posts/{share.id}",
            metadata={"share_id": share.id, "user_id": user.id},
            redis=redis,
        )
    return like


async def unlike_share(db: AsyncSession, user: User, share_id: int) -> None:
    share = await get_visible_share(db, share_id, user.id)
    result = await db.execute(
        delete(ActivityLike).where(ActivityLike.share_id == share.id, ActivityLike.user_id == user.id)
    )
    if not result.rowcount:  # type: ignore[attr-defined]
        raise NotFoundError("Like")
    await db.flush()


async def add_comment(
    db: AsyncSession,
    redis: Any | None,
    user: User,
    share_id: int,
    content: str,
) -> ActivityComment:
    share = await get_visible_share(db, share_id, user.id)
    content = (content or "").strip()
    if not content:
        msg = "Comment cannot be empty"
        raise DomainRuleError(msg)
    if len(content) > MAX_COMMENT_LENGTH:
        msg = f"Comment must be at most {MAX_COMMENT_LENGTH} characters"
        raise DomainRuleError(msg)

    comment = ActivityComment(share_id=share.id, user_id=user.id, content=content, created_at=utcnow())
    db.add(comment)
    await db.flush()

    if share.user_id != user.id:
        await create_notification(
            db,
            share.user_id,
            "social",
            "post_commented",
            title=f"{user.display_name} commented on your activity",
            description=content[:140],
            action_url=f"/social/posts/{share.id}",
            metadata={"share_id": share.id, "comment_id": comment.id},
            redis=redis,
        )
    return comment


async def list_comments(db: AsyncSession, viewer_id: int, share_id: int) -> list[tuple[ActivityComment, User]]:
    share = await get_visible_share(db, share_id, viewer_id)
    result = await db.execute(
        select(ActivityComment, User)
        .join(User, User.id == ActivityComment.user_id)
        .where(ActivityComment.share_id == share.id, ActivityComment.is_deleted.is_(False))
        .order_by(ActivityComment.created_at.asc(), ActivityComment.id.asc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_feed(
    db: AsyncSession,
    viewer_id: int,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[dict], int]:
    """Shares visible to ``viewer_id``, newest first, with engagement counts."""
    friend_ids = await get_friend_ids(db, viewer_id)
    visible = or_(
        ActivityShare.user_id == viewer_id,
        ActivityShare.privacy == SharePrivacy.PUBLIC.value,
        and_(
            ActivityShare.privacy == SharePrivacy.FOLLOWERS_ONLY.value,
            ActivityShare.user_id.in_(friend_ids),
        ),
    )
    conditions = [ActivityShare.is_deleted.is_(False), visible]

    total = await db.scalar(select(func.count()).select_from(ActivityShare).where(*conditions))
    result = await db.execute(
        select(ActivityShare, UserActivity, User)
        .join(UserActivity, UserActivity.id == ActivityShare.user_activity_id)
        .join(User, User.id == ActivityShare.user_id)
        .where(*conditions)
        .order_by(ActivityShare.created_at.desc(), ActivityShare.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    rows = result.all()
    share_ids = [row[0].id for row in rows]

    likes: dict[int, int] = {}
    comments: dict[int, int] = {}
    liked: set[int] = set()
    if share_ids:
        like_rows = await db.execute(
            select(ActivityLike.share_id, func.count())
            .where(ActivityLike.share_id.in_(share_ids))
            .group_by(ActivityLike.share_id)
        )
        likes = {sid: int(n) for sid, n in like_rows.all()}
        comment_rows = await db.execute(
            select(ActivityComment.share_id, func.count())
            .where(ActivityComment.share_id.in_(share_ids), ActivityComment.is_deleted.is_(False))
            .group_by(ActivityComment.share_id)
        )
        comments = {sid: int(n) for sid, n in comment_rows.all()}
        mine = await db.execute(
            select(ActivityLike.share_id).where(
                ActivityLike.share_id.in_(share_ids), ActivityLike.user_id == viewer_id
            )
        )
        liked = set(mine.scalars().all())

    items = []
    for share, activity, owner in rows:
        items.append(
            {
                "share": share,
                "activity": activity,
                "owner": owner,
                "like_count": likes.get(share.id, 0),
                "comment_count": comments.get(share.id, 0),
                "liked_by_me": share.id in liked,
            }
        )
    return items, int(total or 0)


async def live_friend_activities(db: AsyncSession, viewer_id: int) -> list[tuple[UserActivity, User]]:
    """Friends' sessions that are currently Active."""
    friend_ids = await get_friend_ids(db, viewer_id)
    if not friend_ids:
        return []
    result = await db.execute(
        select(UserActivity, User)
        .join(User, User.id == UserActivity.user_id)
        .where(
            UserActivity.user_id.in_(friend_ids),
            UserActivity.status == ActivityStatus.ACTIVE.value,
            UserActivity.is_deleted.is_(False),
        )
        .order_by(UserActivity.started_at.desc())
    )
    return [(row[0], row[1]) for row in result.all()]
