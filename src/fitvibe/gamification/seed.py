"""Badge catalog seed data.

``criteria`` holds the trigger config evaluated by the trigger engine:
``{"trigger": <type>, "threshold": <number>}``.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.db.models import Badge

logger = logging.getLogger(__name__)


def _badge(
    slug: str,
    name: str,
    description: str,
    category: str,
    rarity: str,
    points: int,
    trigger: str,
    threshold: float,
    sort_order: int,
) -> dict:
    return {
        "slug": slug,
        "name": name,
        "description": description,
        "category": category,
        "rarity": rarity,
        "points": points,
        "criteria": {"trigger": trigger, "threshold": threshold},
        "sort_order": sort_order,
        "icon_url": f"/assets/badges/{slug}.svg",
    }


BADGE_SEED_DATA: list[dict] = [
    # Activity volume
    _badge("first_workout", "First Sweat", "Complete your very first workout", "Activity", "Common", 50, "activity_count", 1, 1),
    _badge("workouts_10", "Getting Into It", "Complete 10 workouts", "Activity", "Uncommon", 100, "activity_count", 10, 2),
    _badge("workouts_50", "Habit Formed", "Complete 50 workouts", "Activity", "Rare", 250, "activity_count", 50, 3),
    _badge("workouts_100", "Centurion", "Complete 100 workouts", "Activity", "Epic", 500, "activity_count", 100, 4),
    # Distance
    _badge("distance_10k", "10K Club", "Cover 10 km in total", "Milestone", "Common", 50, "total_distance_km", 10, 10),
    _badge("distance_marathon", "Marathoner", "Cover a marathon distance (42.2 km) in total", "Milestone", "Uncommon", 150, "total_distance_km", 42.2, 11),
    _badge("distance_100k", "Road Warrior", "Cover 100 km in total", "Milestone", "Rare", 200, "total_distance_km", 100, 12),
    _badge("distance_1000k", "Globetrotter", "Cover 1,000 km in total", "Milestone", "Legendary", 1000, "total_distance_km", 1000, 13),
    # Streaks
    _badge("streak_3", "Warming Up", "Work out 3 days in a row", "Streak", "Common", 50, "streak_days", 3, 20),
    _badge("streak_7", "Week Warrior", "Work out 7 days in a row", "Streak", "Uncommon", 100, "streak_days", 7, 21),
    _badge("streak_30", "Unstoppable", "Work out 30 days in a row", "Streak", "Epic", 300, "streak_days", 30, 22),
    # Social
    _badge("first_friend", "Workout Buddy", "Make your first friend", "Social", "Common", 25, "friend_count", 1, 30),
    _badge("friends_10", "Social Butterfly", "Have 10 friends", "Social", "Uncommon", 100, "friend_count", 10, 31),
    # Challenges
    _badge("challenge_first", "Challenger", "Complete your first challenge", "Challenge", "Uncommon", 100, "challenges_completed", 1, 40),
    _badge("challenge_10", "Challenge Master", "Complete 10 challenges", "Challenge", "Epic", 300, "challenges_completed", 10, 41),
    # Special
    _badge("early_bird", "Early Bird", "Start a workout before 7 AM", "Special", "Uncommon", 75, "early_bird", 7, 50),
    # Levels
    _badge("level_5", "Rising Star", "Reach level 5", "Achievement", "Uncommon", 0, "level_reached", 5, 60),
    _badge("level_10", "Seasoned Athlete", "Reach level 10", "Achievement", "Rare", 0, "level_reached", 10, 61),
    _badge("level_25", "Living Legend", "Reach level 25", "Achievement", "Legendary", 0, "level_reached", 25, 62),
]


async def seed_badges(db: AsyncSession) -> int:
    """Insert or refresh every catalog badge. Returns number of badges seeded."""
    existing = {b.slug: b for b in (await db.execute(select(Badge))).scalars()}
    for badge_data in BADGE_SEED_DATA:
        badge = existing.get(badge_data["slug"])
        if badge is None:
            db.add(Badge(**badge_data))
        else:
            for key, value in badge_data.items():
                setattr(badge, key, value)
    await db.commit()
    logger.info("Seeded %d badge definitions", len(BADGE_SEED_DATA))
    return len(BADGE_SEED_DATA)
