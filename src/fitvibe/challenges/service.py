"""Challenge lifecycle, participation and progress tracking."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.activities.metrics import normalize_activity_type
from fitvibe.db.base import utcnow
from fitvibe.db.enums import ChallengeType
from fitvibe.db.models import Challenge, ChallengeParticipant, User, UserActivity
from fitvibe.errors import ConflictError, DomainRuleError, ForbiddenError, NotFoundError
from fitvibe.gamification.trigger_engine import TriggerEngine
from fitvibe.gamification.xp_service import get_or_create_gamification, grant_xp
from fitvibe.social.notification_service import create_notification

logger = logging.getLogger(__name__)


def activity_increment(challenge_type: str, activity: UserActivity) -> float | None:
    """Progress a completed activity contributes; None for manually tracked types."""
    if challenge_type == ChallengeType.DISTANCE.value:
        return activity.distance_km
    if challenge_type == ChallengeType.CALORIES.value:
        return activity.calories_burned
    if challenge_type == ChallengeType.DURATION.value:
        return float(activity.duration_minutes)
    if challenge_type == ChallengeType.ACTIVITY_COUNT.value:
        return 1.0
    return None


def progress_percentage(progress: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return round(min(100.0, progress / target * 100), 2)


def _can_manage(challenge: Challenge, user: User) -> bool:
    return challenge.created_by == user.id or user.is_admin


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_challenge(db: AsyncSession, challenge_id: int) -> Challenge:
    challenge = await db.get(Challenge, challenge_id)
    if challenge is None or challenge.is_deleted:
        raise NotFoundError("Challenge", challenge_id)
    return challenge


async def get_participation(db: AsyncSession, challenge_id: int, user_id: int) -> ChallengeParticipant | None:
    result = await db.execute(
        select(ChallengeParticipant).where(
            ChallengeParticipant.challenge_id == challenge_id,
            ChallengeParticipant.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def get_visible_challenge(db: AsyncSession, challenge_id: int, user: User) -> Challenge:
    """Private challenges are reported as missing to outsiders."""
    challenge = await get_challenge(db, challenge_id)
    if challenge.is_private and not _can_manage(challenge, user):
        if await get_participation(db, challenge_id, user.id) is None:
            raise NotFoundError("Challenge", challenge_id)
    return challenge


async def participant_count(db: AsyncSession, challenge_id: int) -> int:
    count = await db.scalar(
        select(func.count()).select_from(ChallengeParticipant).where(ChallengeParticipant.challenge_id == challenge_id)
    )
    return int(count or 0)


async def participant_rank(db: AsyncSession, participation: ChallengeParticipant) -> int:
    ahead = await db.scalar(
        select(func.count())
        .select_from(ChallengeParticipant)
        .where(
            ChallengeParticipant.challenge_id == participation.challenge_id,
            ChallengeParticipant.progress > participation.progress,
        )
    )
    return int(ahead or 0) + 1


async def search_challenges(
    db: AsyncSession,
    user_id: int,
    q: str | None = None,
    type_: str | None = None,
    active_only: bool = False,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Challenge], int]:
    conditions: list[Any] = [
        Challenge.is_deleted.is_(False),
        or_(Challenge.is_private.is_(False), Challenge.created_by == user_id),
    ]
    if q:
        pattern = f"%{q.strip()}%"
        conditions.append(or_(Challenge.title.ilike(pattern), Challenge.description.ilike(pattern)))
    if type_:
        conditions.append(Challenge.type == type_)
    if active_only:
        conditions.append(Challenge.is_active.is_(True))

    total = await db.scalar(select(func.count()).select_from(Challenge).where(*conditions))
    result = await db.execute(
        select(Challenge)
        .where(*conditions)
        .order_by(Challenge.start_date.desc(), Challenge.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), int(total or 0)


async def my_challenges(db: AsyncSession, user_id: int) -> list[tuple[Challenge, ChallengeParticipant | None]]:
    """Challenges the user joined or created, with the user's participation."""
    result = await db.execute(
        select(Challenge, ChallengeParticipant)
        .outerjoin(
            ChallengeParticipant,
            (ChallengeParticipant.challenge_id == Challenge.id) & (ChallengeParticipant.user_id == user_id),
        )
        .where(
            Challenge.is_deleted.is_(False),
            or_(ChallengeParticipant.id.is_not(None), Challenge.created_by == user_id),
        )
        .order_by(Challenge.start_date.desc(), Challenge.id.desc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def challenge_leaderboard(db: AsyncSession, challenge_id: int, limit: int = 100) -> list[dict]:
    result = await db.execute(
        select(ChallengeParticipant, User)
        .join(User, User.id == ChallengeParticipant.user_id)
        .where(ChallengeParticipant.challenge_id == challenge_id)
        .order_by(
            ChallengeParticipant.progress.desc(),
            ChallengeParticipant.completed_at.asc().nulls_last(),
            ChallengeParticipant.joined_at.asc(),
        )
        .limit(limit)
    )
    board = []
    for position, (participant, user) in enumerate(result.all(), start=1):
        board.append(
            {
                "rank": position,
                "user_id": user.id,
                "display_name": user.display_name,
                "avatar_url": user.avatar_url,
                "progress": participant.progress,
                "is_completed": participant.is_completed,
                "completed_at": participant.completed_at,
            }
        )
    return board


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def create_challenge(
    db: AsyncSession,
    user: User,
    title: str,
    type_: str,
    target_value: float,
    unit: str,
    start_date: datetime,
    end_date: datetime | None = None,
    description: str = "",
    activity_type: str | None = None,
    is_private: bool = False,
    xp_reward: int = 100,
    max_participants: int | None = None,
) -> Challenge:
    if not title.strip():
        msg = "Title is required"
        raise DomainRuleError(msg)
    if target_value <= 0:
        msg = "Target value must be greater than zero"
        raise DomainRuleError(msg)
    if end_date is not None and end_date <= start_date:
        msg = "End date must be after the start date"
        raise DomainRuleError(msg)

    challenge = Challenge(
        title=title.strip(),
        description=description,
        type=type_,
        target_value=target_value,
        unit=unit,
        activity_type=normalize_activity_type(activity_type) if activity_type else None,
        start_date=start_date,
        end_date=end_date,
        is_private=is_private,
        is_active=False,
        xp_reward=xp_reward,
        max_participants=max_participants,
        created_by=user.id,
    )
    db.add(challenge)
    await db.flush()
    logger.info("User %s created challenge %s (%s)", user.id, challenge.id, type_)
    return challenge


async def activate_challenge(db: AsyncSession, challenge: Challenge, user: User, now: datetime | None = None) -> Challenge:
    now = now or utcnow()
    if not _can_manage(challenge, user):
        msg = "Only the creator can activate this challenge"
        raise ForbiddenError(msg)
    if challenge.is_active:
        msg = "Challenge is already active"
        raise DomainRuleError(msg)
    if now < challenge.start_date:
        msg = "Challenge cannot be activated before its start date"
        raise DomainRuleError(msg)
    if challenge.has_ended(now):
        msg = "Challenge has already ended"
        raise DomainRuleError(msg)
    challenge.is_active = True
    challenge.mark_updated()
    await db.flush()
    return challenge


async def deactivate_challenge(db: AsyncSession, challenge: Challenge, user: User) -> Challenge:
    if not _can_manage(challenge, user):
        msg = "Only the creator can deactivate this challenge"
        raise ForbiddenError(msg)
    if not challenge.is_active:
        msg = "Challenge is not active"
        raise DomainRuleError(msg)
    challenge.is_active = False
    challenge.mark_updated()
    await db.flush()
    return challenge


async def join_challenge(
    db: AsyncSession,
    redis: Any | None,
    challenge: Challenge,
    user: User,
    now: datetime | None = None,
) -> ChallengeParticipant:
    now = now or utcnow()
    if not challenge.is_active:
        msg = "Cannot join an inactive challenge"
        raise DomainRuleError(msg)
    if challenge.has_ended(now):
        msg = "Challenge has already ended"
        raise DomainRuleError(msg)
    if challenge.is_private and challenge.created_by != user.id:
        msg = "Private challenges require an invitation"
        raise ForbiddenError(msg)
    if await get_participation(db, challenge.id, user.id) is not None:
        msg = "Already participating in this challenge"
        raise ConflictError(msg)
    if challenge.max_participants is not None and await participant_count(db, challenge.id) >= challenge.max_participants:
        msg = "Challenge is full"
        raise ConflictError(msg)

    participant = ChallengeParticipant(challenge_id=challenge.id, user_id=user.id, joined_at=now)
    db.add(participant)
    await db.flush()

    if challenge.created_by != user.id:
        await create_notification(
            db,
            challenge.created_by,
            "challenge",
            "participant_joined",
            title=f"{user.display_name} joined {challenge.title}",
            action_url=f"/challenges/{challenge.id}",
            metadata={"challenge_id": challenge.id, "user_id": user.id},
            redis=redis,
        )
    return participant


async def update_progress(
    db: AsyncSession,
    redis: Any | None,
    challenge: Challenge,
    user: User,
    value: float,
    now: datetime | None = None,
) -> dict:
    """Set the caller's absolute progress. Progress never moves backwards."""
    now = now or utcnow()
    if not challenge.is_active:
        msg = "Cannot update progress for an inactive challenge"
        raise DomainRuleError(msg)
    participant = await get_participation(db, challenge.id, user.id)
    if participant is None:
        raise NotFoundError("Challenge participation")
    if participant.is_completed:
        msg = "Challenge already completed"
        raise DomainRuleError(msg)
    if value < participant.progress:
        msg = "Progress cannot decrease"
        raise DomainRuleError(msg)

    participant.progress = value
    participant.last_progress_at = now
    if participant.progress >= challenge.target_value:
        await _complete_participation(db, redis, challenge, participant, now)
    await db.flush()
    return await progress_summary(db, challenge, participant)


async def progress_summary(db: AsyncSession, challenge: Challenge, participant: ChallengeParticipant) -> dict:
    return {
        "challenge_id": challenge.id,
        "progress": participant.progress,
        "target_value": challenge.target_value,
        "progress_percentage": progress_percentage(participant.progress, challenge.target_value),
        "is_completed": participant.is_completed,
        "completed_at": participant.completed_at,
        "rank": await participant_rank(db, participant),
    }


async def _complete_participation(
    db: AsyncSession,
    redis: Any | None,
    challenge: Challenge,
    participant: ChallengeParticipant,
    now: datetime,
) -> None:
    participant.is_completed = True
    participant.completed_at = now

    gam = await get_or_create_gamification(db, participant.user_id)
    gam.challenges_completed += 1
    gam.updated_at = now
    await db.flush()

    await grant_xp(
        db,
        redis,
        participant.user_id,
        challenge.xp_reward,
        source="challenge",
        source_id=str(challenge.id),
        description=f'Completed challenge "{challenge.title}"',
        idempotency_key=f"challenge:{challenge.id}:{participant.user_id}",
    )
    await create_notification(
        db,
        participant.user_id,
        "challenge",
        "challenge_completed",
        title="Challenge Complete!",
        description=f'You completed "{challenge.title}" (+{challenge.xp_reward} XP)',
        action_url=f"/challenges/{challenge.id}",
        action_label="View Challenge",
        metadata={"challenge_id": challenge.id},
        redis=redis,
    )
    await TriggerEngine(db, redis).on_challenge_completed(participant.user_id, challenge.id)
    logger.info("User %s completed challenge %s", participant.user_id, challenge.id)


async def apply_activity_to_challenges(
    db: AsyncSession,
    redis: Any | None,
    user_id: int,
    activity: UserActivity,
    now: datetime | None = None,
) -> list[int]:
    """Feed a completed activity into every matching active participation.

    Returns the ids of challenges completed as a result.
    """
    now = now or utcnow()
    result = await db.execute(
        select(ChallengeParticipant, Challenge)
        .join(Challenge, Challenge.id == ChallengeParticipant.challenge_id)
        .where(
            ChallengeParticipant.user_id == user_id,
            ChallengeParticipant.is_completed.is_(False),
            Challenge.is_active.is_(True),
            Challenge.is_deleted.is_(False),
            or_(Challenge.activity_type.is_(None), Challenge.activity_type == activity.activity_type),
        )
    )
    completed: list[int] = []
    for participant, challenge in result.all():
        if challenge.has_ended(now):
            continue
        increment = activity_increment(challenge.type, activity)
        if not increment:
            continue
        participant.progress += increment
        participant.last_progress_at = now
        if participant.progress >= challenge.target_value:
            await _complete_participation(db, redis, challenge, participant, now)
            completed.append(challenge.id)
    await db.flush()
    return completed
