"""Gamification API endpoints: dashboard, levels, badges, XP, streaks, leaderboard."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.auth.dependencies import get_current_admin, get_current_user
from fitvibe.database import get_session
from fitvibe.db.base import utcnow
from fitvibe.db.models import Badge, User
from fitvibe.dependencies import get_redis_dep
from fitvibe.errors import NotFoundError
from fitvibe.gamification.badge_service import award_badge, get_user_badges, list_badges, set_badge_visibility
from fitvibe.gamification.leaderboard_service import get_leaderboard, get_user_rank
from fitvibe.gamification.level_thresholds import compute_level, level_table
from fitvibe.gamification.schemas import (
    AllBadgesResponse,
    AllLevelsResponse,
    AwardBadgeRequest,
    AwardBadgeResponse,
    AwardXPRequest,
    AwardXPResponse,
    BadgeResponse,
    BadgeVisibilityRequest,
    DashboardResponse,
    EarnedBadgeResponse,
    LeaderboardResponse,
    LevelEntry,
    LevelInfo,
    StreakResponse,
    UserBadgesResponse,
    XPHistoryEntry,
    XPHistoryResponse,
)
from fitvibe.gamification.streak_service import streak_status
from fitvibe.gamification.trigger_engine import TriggerEngine
from fitvibe.gamification.xp_service import (
    calculate_xp_bonus,
    get_or_create_gamification,
    get_xp_history,
    grant_xp,
)
from fitvibe.social.friends_service import get_friend_ids

router = APIRouter(prefix="/api/v1/gamification", tags=["Gamification"])


def _earned_badge(ub) -> EarnedBadgeResponse:
    return EarnedBadgeResponse(
        slug=ub.badge.slug,
        name=ub.badge.name,
        category=ub.badge.category,
        rarity=ub.badge.rarity,
        points=ub.badge.points,
        earned_at=ub.earned_at,
        is_visible=ub.is_visible,
        context=ub.earned_context or {},
    )


def _xp_entry(row) -> XPHistoryEntry:
    return XPHistoryEntry(
        amount=row.amount,
        base_amount=row.base_amount,
        bonus_amount=row.bonus_amount,
        source=row.source,
        source_id=row.source_id,
        description=row.description,
        created_at=row.created_at,
    )


# ── Public endpoints ──


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels(max_level: int = Query(30, ge=1, le=100)):
    """Get the level ladder with titles and XP thresholds."""
    return AllLevelsResponse(levels=[LevelEntry(**row) for row in level_table(max_level)])


# ── Authenticated endpoints ──


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    """Level, XP, streak, badge count, recent XP and global rank for the current user."""
    gam = await get_or_create_gamification(db, user.id)
    recent, _ = await get_xp_history(db, user.id, page=1, per_page=5)
    await db.commit()

    return DashboardResponse(
        total_xp=user.experience_points,
        level=LevelInfo(**compute_level(user.experience_points)),
        streak=StreakResponse(**streak_status(gam)),
        badges_earned=gam.badges_earned,
        activities_completed=gam.activities_completed,
        total_distance_km=round(gam.total_distance_km, 2),
        total_calories=round(gam.total_calories, 1),
        total_active_minutes=gam.total_active_minutes,
        challenges_completed=gam.challenges_completed,
        recent_xp=[_xp_entry(r) for r in recent],
        global_rank=await get_user_rank(db, redis, user.id),
    )


@router.get("/badges", response_model=AllBadgesResponse)
async def list_all_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Badge catalog with the current user's earned flags."""
    badges = await list_badges(db)
    earned = {ub.badge_id: ub for ub in await get_user_badges(db, user.id)}

    items = [
        BadgeResponse(
            slug=b.slug,
            name=b.name,
            description=b.description,
            icon_url=b.icon_url,
            category=b.category,
            rarity=b.rarity,
            points=b.points,
            earned=b.id in earned,
            earned_at=earned[b.id].earned_at if b.id in earned else None,
        )
        for b in badges
    ]
    return AllBadgesResponse(badges=items, total_earned=len(earned))


@router.get("/badges/mine", response_model=UserBadgesResponse)
async def get_my_badges(
    visible_only: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Get current user's earned badges."""
    earned = await get_user_badges(db, user.id, visible_only=visible_only)
    total_available = await db.scalar(
        select(func.count()).select_from(Badge).where(Badge.is_active.is_(True))
    )
    return UserBadgesResponse(
        earned=[_earned_badge(ub) for ub in earned],
        total_available=int(total_available or 0),
        total_earned=len(earned),
    )


@router.patch("/badges/{slug}/visibility", response_model=EarnedBadgeResponse)
async def update_badge_visibility(
    slug: str,
    body: BadgeVisibilityRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    user_badge = await set_badge_visibility(db, user.id, slug, body.is_visible)
    await db.commit()
    return _earned_badge(user_badge)


@router.get("/xp/history", response_model=XPHistoryResponse)
async def xp_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Paginated XP ledger for the current user."""
    rows, total = await get_xp_history(db, user.id, page=page, per_page=per_page)
    return XPHistoryResponse(entries=[_xp_entry(r) for r in rows], total=total, page=page, per_page=per_page)


@router.get("/streaks", response_model=StreakResponse)
async def get_my_streak(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    gam = await get_or_create_gamification(db, user.id)
    await db.commit()
    return StreakResponse(**streak_status(gam))


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    metric: str = Query("xp"),
    timeframe: str = Query("all_time"),
    scope: str = Query("global"),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    """Ranked leaderboard by metric, timeframe and scope (global or friends)."""
    friend_ids = await get_friend_ids(db, user.id) if scope == "friends" else None
    data = await get_leaderboard(
        db,
        redis,
        user.id,
        metric=metric,
        timeframe=timeframe,
        scope=scope,
        friend_ids=friend_ids,
        page=page,
        per_page=per_page,
    )
    return LeaderboardResponse(**data)


# ── Admin endpoints ──


@router.post("/award-xp", response_model=AwardXPResponse)
async def admin_award_xp(
    body: AwardXPRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    """Manually grant XP to a user.

    The amount is the base; the optional multiplier and the usual time,
    streak and new-user bonuses are added on top.
    """
    target = await db.get(User, body.user_id)
    if target is None or target.is_deleted:
        raise NotFoundError("User", body.user_id)

    gam = await get_or_create_gamification(db, target.id)
    bonus = calculate_xp_bonus(
        body.amount,
        when=utcnow(),
        multiplier_pct=body.multiplier_percentage or 100,
        streak_days=gam.current_streak,
        account_created_at=target.created_at,
    )
    granted = await grant_xp(
        db,
        redis,
        target.id,
        bonus.total,
        source="admin",
        source_id=str(admin.id),
        description=body.reason,
        idempotency_key=body.idempotency_key or f"admin:{admin.id}:{uuid.uuid4()}",
        base_amount=bonus.base,
    )
    if granted:
        await TriggerEngine(db, redis).on_xp_changed(target.id)
    await db.commit()
    return AwardXPResponse(granted=granted, total_xp=target.experience_points, level=target.level)


@router.post("/award-badge", response_model=AwardBadgeResponse)
async def admin_award_badge(
    body: AwardBadgeRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    """Manually award a badge to a user."""
    target = await db.get(User, body.user_id)
    if target is None or target.is_deleted:
        raise NotFoundError("User", body.user_id)

    awarded = await award_badge(
        db, redis, target.id, body.badge_slug, context={"awarded_by": admin.id}
    )
    await db.commit()
    return AwardBadgeResponse(awarded=awarded, badge_slug=body.badge_slug)
