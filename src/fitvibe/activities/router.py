"""Activity API: catalog, templates, workout sessions and GPS routes."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.activities import catalog, service
from fitvibe.activities.schemas import (
    ActivityHistoryResponse,
    ActivityResponse,
    ActivityTypeResponse,
    ActivityTypesResponse,
    CancelActivityRequest,
    CompleteActivityRequest,
    CompleteActivityResponse,
    LiveStatusResponse,
    RateTemplateRequest,
    RoutePointResponse,
    RoutePointsAddedResponse,
    RoutePointsRequest,
    RouteResponse,
    RouteStatsResponse,
    StartActivityRequest,
    TemplateCreateRequest,
    TemplateResponse,
    TemplatesResponse,
)
from fitvibe.auth.dependencies import get_current_user
from fitvibe.database import get_session
from fitvibe.db.enums import ActivityStatus
from fitvibe.db.models import User
from fitvibe.dependencies import get_redis_dep

router = APIRouter(prefix="/api/v1/activities", tags=["Activities"])


# ── Catalog & templates ──


@router.get("/types", response_model=ActivityTypesResponse)
async def list_types(
    featured: bool = Query(False),
    db: AsyncSession = Depends(get_session),
):
    """Get the activity catalog."""
    types = await catalog.list_activity_types(db, featured_only=featured)
    return ActivityTypesResponse(types=[ActivityTypeResponse.model_validate(t) for t in types])


@router.get("/templates", response_model=TemplatesResponse)
async def list_templates(
    category: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Public templates plus the current user's private ones."""
    templates = await catalog.list_templates(db, user.id, category=category)
    return TemplatesResponse(templates=[TemplateResponse.model_validate(t) for t in templates])


@router.post("/templates", response_model=TemplateResponse, status_code=201)
async def create_template(
    body: TemplateCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    fields = body.model_dump()
    fields["category"] = body.category.value
    template = await catalog.create_template(db, user.id, **fields)
    await db.commit()
    return TemplateResponse.model_validate(template)


@router.post("/templates/{template_id}/rate", response_model=TemplateResponse)
async def rate_template(
    template_id: int,
    body: RateTemplateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    template = await catalog.rate_template(db, template_id, user.id, body.rating)
    await db.commit()
    return TemplateResponse.model_validate(template)


# ── Sessions ──


@router.post("/start", response_model=ActivityResponse, status_code=201)
async def start_activity(
    body: StartActivityRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Start a workout session. Only one session may be in progress per user."""
    session = await service.start_session(
        db,
        user,
        activity_type=body.activity_type,
        name=body.name,
        template_id=body.template_id,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    await db.commit()
    return ActivityResponse.model_validate(session)


@router.get("", response_model=ActivityHistoryResponse)
async def activity_history(
    status: ActivityStatus | None = Query(None),
    activity_type: str | None = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    activities, total = await service.list_history(
        db,
        user.id,
        status=status.value if status else None,
        activity_type=activity_type,
        page=page,
        per_page=per_page,
    )
    return ActivityHistoryResponse(
        activities=[ActivityResponse.model_validate(a) for a in activities],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    session = await service.get_session_for_user(db, activity_id, user.id)
    return ActivityResponse.model_validate(session)


@router.get("/{activity_id}/live", response_model=LiveStatusResponse)
async def live_status(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Elapsed/active time and distance so far for a session."""
    session = await service.get_session_for_user(db, activity_id, user.id)
    stats = await service.get_route_stats(db, session.id)
    return LiveStatusResponse(**service.live_status(session, stats.total_distance_km))


@router.post("/{activity_id}/pause", response_model=ActivityResponse)
async def pause_activity(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    session = await service.get_session_for_user(db, activity_id, user.id)
    await service.pause_session(db, session)
    await db.commit()
    return ActivityResponse.model_validate(session)


@router.post("/{activity_id}/resume", response_model=ActivityResponse)
async def resume_activity(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    session = await service.get_session_for_user(db, activity_id, user.id)
    await service.resume_session(db, session)
    await db.commit()
    return ActivityResponse.model_validate(session)


@router.post("/{activity_id}/cancel", response_model=ActivityResponse)
async def cancel_activity(
    activity_id: int,
    body: CancelActivityRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    session = await service.get_session_for_user(db, activity_id, user.id)
    await service.cancel_session(db, session, reason=body.reason if body else None)
    await db.commit()
    return ActivityResponse.model_validate(session)


@router.post("/{activity_id}/complete", response_model=CompleteActivityResponse)
async def complete_activity(
    activity_id: int,
    body: CompleteActivityRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    """Complete a session: awards XP, updates streak, badges, challenges and goals."""
    body = body or CompleteActivityRequest()
    session = await service.get_session_for_user(db, activity_id, user.id)
    result = await service.complete_session(
        db,
        redis,
        user,
        session,
        completed_at=body.completed_at,
        distance_km=body.distance_km,
        calories_burned=body.calories_burned,
        perceived_exertion=body.perceived_exertion,
        mood=body.mood,
        notes=body.notes,
    )
    await db.commit()
    result["activity"] = ActivityResponse.model_validate(result["activity"])
    return CompleteActivityResponse(**result)


# ── Route ──


@router.post("/{activity_id}/route/points", response_model=RoutePointsAddedResponse, status_code=201)
async def add_route_points(
    activity_id: int,
    body: RoutePointsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Append a batch of GPS samples to an active session."""
    session = await service.get_session_for_user(db, activity_id, user.id)
    added = await service.add_route_points(db, session, [p.model_dump() for p in body.points])
    await db.commit()
    return RoutePointsAddedResponse(added=len(added), last_sequence=added[-1].sequence)


@router.get("/{activity_id}/route", response_model=RouteResponse)
async def get_route(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    session = await service.get_session_for_user(db, activity_id, user.id)
    points = await service.get_route(db, session.id)
    return RouteResponse(points=[RoutePointResponse.model_validate(p) for p in points])


@router.get("/{activity_id}/route/stats", response_model=RouteStatsResponse)
async def get_route_stats(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    session = await service.get_session_for_user(db, activity_id, user.id)
    stats = await service.get_route_stats(db, session.id)
    return RouteStatsResponse(**asdict(stats), total_distance_km=stats.total_distance_km)
