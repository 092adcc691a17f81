"""Pydantic schemas for social endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from fitvibe.db.enums import CheerType, SharePrivacy


class UserSummary(BaseModel):
    user_id: int
    display_name: str
    avatar_url: str | None = None
    level: int = 1


# --- Friends ---


class FriendResponse(UserSummary):
    friends_since: datetime


class FriendsResponse(BaseModel):
    friends: list[FriendResponse]
    total: int


class FriendRequestCreate(BaseModel):
    message: str | None = Field(None, max_length=280)


class FriendRequestResponse(BaseModel):
    id: int
    requester_id: int
    target_id: int
    message: str | None = None
    status: str
    created_at: datetime
    responded_at: datetime | None = None


class FriendRequestsResponse(BaseModel):
    incoming: list[FriendRequestResponse]
    outgoing: list[FriendRequestResponse]


class RespondRequest(BaseModel):
    accept: bool


# --- Cheers ---


class CheerRequest(BaseModel):
    cheer_type: CheerType
    message: str | None = None
    emoji_code: str | None = Field(None, max_length=32)
    audio_url: str | None = Field(None, max_length=512)
    power_up_value: int | None = None
    user_activity_id: int | None = None


class CheerResponse(BaseModel):
    id: int
    sender_id: int
    target_id: int
    user_activity_id: int | None = None
    cheer_type: str
    message: str | None = None
    emoji_code: str | None = None
    audio_url: str | None = None
    power_up_value: int
    is_live: bool
    created_at: datetime


# --- Shares / feed ---


class ShareRequest(BaseModel):
    caption: str | None = Field(None, max_length=500)
    privacy: SharePrivacy = SharePrivacy.PUBLIC


class ShareResponse(BaseModel):
    id: int
    user_id: int
    user_activity_id: int
    caption: str | None = None
    privacy: str
    created_at: datetime


class SharedActivity(BaseModel):
    id: int
    activity_type: str
    name: str
    duration_minutes: int
    distance_km: float
    calories_burned: float
    experience_points_earned: int
    completed_at: datetime | None = None


class FeedItem(BaseModel):
    share: ShareResponse
    owner: UserSummary
    activity: SharedActivity
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False


class LiveActivity(BaseModel):
    user_activity_id: int
    owner: UserSummary
    activity_type: str
    name: str
    started_at: datetime
    status: str


class FeedResponse(BaseModel):
    items: list[FeedItem]
    live_friend_activities: list[LiveActivity]
    total: int
    page: int
    per_page: int


class LikeResponse(BaseModel):
    share_id: int
    liked: bool


class CommentRequest(BaseModel):
    content: str = Field(..., max_length=1000)


class CommentResponse(BaseModel):
    id: int
    share_id: int
    author: UserSummary
    content: str
    created_at: datetime


class CommentsResponse(BaseModel):
    comments: list[CommentResponse]


# --- Notifications ---


class NotificationResponse(BaseModel):
    id: int
    type: str
    subtype: str
    title: str
    description: str | None = None
    timestamp: datetime
    read: bool
    action_url: str | None = None
    action_label: str | None = None
    metadata: dict = {}


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    page: int
    per_page: int


class NotificationCountsResponse(BaseModel):
    total: int
    unread: int
