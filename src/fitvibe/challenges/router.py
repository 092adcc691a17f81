"""Challenge API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.auth.dependencies import get_current_user
from fitvibe.challenges import service
from fitvibe.challenges.schemas import (
    ChallengeCreateRequest,
    ChallengeDetailResponse,
    ChallengeLeaderboardEntry,
    ChallengeLeaderboardResponse,
    ChallengeResponse,
    ChallengeSearchResponse,
    MyChallengeEntry,
    MyChallengesResponse,
    ParticipationResponse,
    ProgressResponse,
    ProgressUpdateRequest,
)
from fitvibe.database import get_session
from fitvibe.db.enums import ChallengeType
from fitvibe.db.models import Challenge, User
from fitvibe.dependencies import get_redis_dep

router = APIRouter(prefix="/api/v1/challenges", tags=["Challenges"])


async def _detail(db: AsyncSession, challenge: Challenge, user: User) -> ChallengeDetailResponse:
    participation = await service.get_participation(db, challenge.id, user.id)
    return ChallengeDetailResponse(
        **ChallengeResponse.model_validate(challenge).model_dump(),
        participant_count=await service.participant_count(db, challenge.id),
        my_participation=ParticipationResponse.model_validate(participation) if participation else None,
    )


@router.post("", response_model=ChallengeDetailResponse, status_code=201)
async def create_challenge(
    body: ChallengeCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Create a challenge. New challenges start inactive until activated."""
    challenge = await service.create_challenge(
        db,
        user,
        title=body.title,
        type_=body.type.value,
        target_value=body.target_value,
        unit=body.unit,
        start_date=body.start_date,
        end_date=body.end_date,
        description=body.description,
        activity_type=body.activity_type,
        is_private=body.is_private,
        xp_reward=body.xp_reward,
        max_participants=body.max_participants,
    )
    await db.commit()
    return await _detail(db, challenge, user)


@router.get("/search", response_model=ChallengeSearchResponse)
async def search(
    q: str | None = Query(None, max_length=100),
    type: ChallengeType | None = Query(None),  # noqa: A002
    active_only: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    challenges, total = await service.search_challenges(
        db,
        user.id,
        q=q,
        type_=type.value if type else None,
        active_only=active_only,
        page=page,
        per_page=per_page,
    )
    return ChallengeSearchResponse(
        challenges=[ChallengeResponse.model_validate(c) for c in challenges],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/my", response_model=MyChallengesResponse)
async def my_challenges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Challenges the current user joined or created."""
    rows = await service.my_challenges(db, user.id)
    return MyChallengesResponse(
        challenges=[
            MyChallengeEntry(
                challenge=ChallengeResponse.model_validate(challenge),
                participation=ParticipationResponse.model_validate(participant) if participant else None,
                progress_percentage=(
                    service.progress_percentage(participant.progress, challenge.target_value) if participant else 0.0
                ),
            )
            for challenge, participant in rows
        ]
    )


@router.get("/{challenge_id}", response_model=ChallengeDetailResponse)
async def get_challenge(
    challenge_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    challenge = await service.get_visible_challenge(db, challenge_id, user)
    return await _detail(db, challenge, user)


@router.post("/{challenge_id}/join", response_model=ParticipationResponse, status_code=201)
async def join(
    challenge_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    challenge = await service.get_visible_challenge(db, challenge_id, user)
    participant = await service.join_challenge(db, redis, challenge, user)
    await db.commit()
    return ParticipationResponse.model_validate(participant)


@router.put("/{challenge_id}/progress", response_model=ProgressResponse)
async def update_progress(
    challenge_id: int,
    body: ProgressUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis_dep),
):
    """Report absolute progress. Reaching the target completes the challenge."""
    challenge = await service.get_visible_challenge(db, challenge_id, user)
    summary = await service.update_progress(db, redis, challenge, user, body.value)
    await db.commit()
    return ProgressResponse(**summary)


@router.post("/{challenge_id}/activate", response_model=ChallengeResponse)
async def activate(
    challenge_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    challenge = await service.get_visible_challenge(db, challenge_id, user)
    await service.activate_challenge(db, challenge, user)
    await db.commit()
    return ChallengeResponse.model_validate(challenge)


@router.post("/{challenge_id}/deactivate", response_model=ChallengeResponse)
async def deactivate(
    challenge_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    challenge = await service.get_visible_challenge(db, challenge_id, user)
    await service.deactivate_challenge(db, challenge, user)
    await db.commit()
    return ChallengeResponse.model_validate(challenge)


@router.get("/{challenge_id}/leaderboard", response_model=ChallengeLeaderboardResponse)
async def leaderboard(
    challenge_id: int,
    limit: int = Query(100, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Participants ranked by progress."""
    challenge = await service.get_visible_challenge(db, challenge_id, user)
    board = await service.challenge_leaderboard(db, challenge.id, limit=limit)
    return ChallengeLeaderboardResponse(
        challenge_id=challenge.id,
        entries=[ChallengeLeaderboardEntry(**row) for row in board],
    )
