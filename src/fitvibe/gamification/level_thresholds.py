"""Level thresholds and computation.

Levels follow a triangular curve: level ``n`` is reached at a cumulative
``100 * n * (n - 1) / 2`` XP, so each level costs 100 XP more than the last
(L2 = 100, L3 = 300, L4 = 600, L5 = 1000, ...).
"""

from __future__ import annotations

import math

XP_STEP = 100

# (first level of the band, title)
LEVEL_TITLES: list[tuple[int, str]] = [
    (1, "Couch Starter"),
    (2, "Warm-Up Walker"),
    (3, "Active Mover"),
    (5, "Fitness Enthusiast"),
    (8, "Trail Blazer"),
    (12, "Endurance Athlete"),
    (17, "Iron Will"),
    (23, "Elite Performer"),
    (30, "Fitness Legend"),
]


def xp_for_level(level: int) -> int:
    """Cumulative XP needed to reach ``level``."""
    if level <= 1:
        return 0
    return XP_STEP * level * (level - 1) // 2


def level_for_xp(total_xp: int) -> int:
    if total_xp < XP_STEP:
        return 1
    # Inverse of xp_for_level, then correct for float rounding
    level = int((1 + math.sqrt(1 + 8 * total_xp / XP_STEP)) / 2)
    while xp_for_level(level + 1) <= total_xp:
        level += 1
    while level > 1 and xp_for_level(level) > total_xp:
        level -= 1
    return level


def title_for_level(level: int) -> str:
    title = LEVEL_TITLES[0][1]
    for first_level, band_title in LEVEL_TITLES:
        if level >= first_level:
            title = band_title
    return title


def compute_level(total_xp: int) -> dict:
    """Compute level info from total XP."""
    level = level_for_xp(max(total_xp, 0))
    floor_xp = xp_for_level(level)
    ceiling_xp = xp_for_level(level + 1)
    return {
        "level": level,
        "title": title_for_level(level),
        "xp_into_level": max(total_xp, 0) - floor_xp,
        "xp_for_level": ceiling_xp - floor_xp,
        "next_level": level + 1,
        "next_title": title_for_level(level + 1),
    }


def level_table(max_level: int = 30) -> list[dict]:
    return [
        {
            "level": level,
            "title": title_for_level(level),
            "xp_required": xp_for_level(level) - xp_for_level(level - 1),
            "cumulative": xp_for_level(level),
        }
        for level in range(1, max_level + 1)
    ]
