"""Activity catalog (seeded workout kinds) and user-authored templates."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.db.models import Activity, ActivityTemplate
from fitvibe.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

ACTIVITY_SEED_DATA: list[dict[str, Any]] = [
    {"name": "Running", "slug": "running", "type": "Outdoor", "category": "Cardio", "difficulty": 3,
     "estimated_calories_per_hour": 600, "requires_gps": True, "is_featured": True,
     "description": "Road, trail or track running"},
    {"name": "Cycling", "slug": "cycling", "type": "Outdoor", "category": "Endurance", "difficulty": 3,
     "estimated_calories_per_hour": 500, "requires_gps": True, "is_featured": True,
     "description": "Road and mountain biking"},
    {"name": "Swimming", "slug": "swimming", "type": "Indoor", "category": "Cardio", "difficulty": 3,
     "estimated_calories_per_hour": 650, "requires_gps": False, "is_featured": False,
     "description": "Pool or open-water swimming"},
    {"name": "Gym Workout", "slug": "gym", "type": "Indoor", "category": "Strength", "difficulty": 3,
     "estimated_calories_per_hour": 400, "requires_gps": False, "is_featured": True,
     "description": "Weights, machines and circuit training"},
    {"name": "Yoga", "slug": "yoga", "type": "Indoor", "category": "MindBody", "difficulty": 2,
     "estimated_calories_per_hour": 200, "requires_gps": False, "is_featured": False,
     "description": "Flow, hatha and restorative yoga"},
    {"name": "Hiking", "slug": "hiking", "type": "Outdoor", "category": "Endurance", "difficulty": 3,
     "estimated_calories_per_hour": 450, "requires_gps": True, "is_featured": False,
     "description": "Trail hiking and hillwalking"},
    {"name": "Walking", "slug": "walking", "type": "Outdoor", "category": "Cardio", "difficulty": 1,
     "estimated_calories_per_hour": 300, "requires_gps": True, "is_featured": False,
     "description": "Brisk walks and everyday steps"},
]


async def seed_activity_types(db: AsyncSession) -> int:
    """Insert missing catalog entries; existing rows are left untouched."""
    existing = set((await db.execute(select(Activity.slug))).scalars())
    added = 0
    for data in ACTIVITY_SEED_DATA:
        if data["slug"] not in existing:
            db.add(Activity(**data))
            added += 1
    await db.commit()
    logger.info("Seeded %d activity types (%d already present)", added, len(existing))
    return added


async def list_activity_types(db: AsyncSession, featured_only: bool = False) -> list[Activity]:
    stmt = select(Activity).where(Activity.is_deleted.is_(False)).order_by(Activity.id)
    if featured_only:
        stmt = stmt.where(Activity.is_featured.is_(True))
    return list((await db.execute(stmt)).scalars().all())


async def get_activity_type_by_slug(db: AsyncSession, slug: str) -> Activity | None:
    result = await db.execute(select(Activity).where(Activity.slug == slug, Activity.is_deleted.is_(False)))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


async def list_templates(db: AsyncSession, user_id: int, category: str | None = None) -> list[ActivityTemplate]:
    """Public templates plus the caller's private ones, most used first."""
    stmt = select(ActivityTemplate).where(
        ActivityTemplate.is_deleted.is_(False),
        or_(ActivityTemplate.is_public.is_(True), ActivityTemplate.created_by == user_id),
    )
    if category:
        stmt = stmt.where(ActivityTemplate.category == category)
    stmt = stmt.order_by(ActivityTemplate.usage_count.desc(), ActivityTemplate.id)
    return list((await db.execute(stmt)).scalars().all())


async def create_template(db: AsyncSession, user_id: int, **fields: Any) -> ActivityTemplate:
    template = ActivityTemplate(created_by=user_id, **fields)
    db.add(template)
    await db.flush()
    logger.info("User %s created template %s", user_id, template.id)
    return template


async def get_template(db: AsyncSession, template_id: int, user_id: int) -> ActivityTemplate:
    """Fetch a template the user may see.

    Raises:
        NotFoundError: Missing or deleted.
        ForbiddenError: Private template owned by someone else.
    """
    template = await db.get(ActivityTemplate, template_id)
    if template is None or template.is_deleted:
        raise NotFoundError("Template", template_id)
    if not template.is_public and template.created_by != user_id:
        raise ForbiddenError("This template is private")
    return template


async def rate_template(db: AsyncSession, template_id: int, user_id: int, rating: int) -> ActivityTemplate:
    template = await get_template(db, template_id, user_id)
    template.add_rating(rating)
    template.mark_updated()
    await db.flush()
    return template
