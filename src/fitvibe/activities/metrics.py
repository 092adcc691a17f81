"""Pure workout math: calorie estimates, session naming and GPS route statistics."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from fitvibe.db.enums import FitnessLevel
from fitvibe.errors import DomainRuleError

EARTH_RADIUS_M = 6_371_000

CALORIES_PER_HOUR: dict[str, int] = {
    "running": 600,
    "cycling": 500,
    "swimming": 650,
    "gym": 400,
    "yoga": 200,
    "hiking": 450,
    "walking": 300,
}
DEFAULT_CALORIES_PER_HOUR = 350

FITNESS_FACTORS: dict[str, float] = {
    FitnessLevel.BEGINNER.value: 0.8,
    FitnessLevel.INTERMEDIATE.value: 1.0,
    FitnessLevel.ADVANCED.value: 1.2,
    FitnessLevel.ELITE.value: 1.3,
}

GPS_TYPES = frozenset({"running", "cycling", "walking", "hiking"})

SESSION_NOUNS: dict[str, str] = {
    "running": "Run",
    "cycling": "Ride",
    "swimming": "Swim",
    "gym": "Workout",
    "yoga": "Yoga",
    "hiking": "Hike",
    "walking": "Walk",
}

_ALIASES = {"gym workout": "gym", "gym_workout": "gym"}


def normalize_activity_type(value: str) -> str:
    """Map a user-supplied type to its calorie-table key (case-insensitive).

    Raises:
        DomainRuleError: If the type is not a known activity.
    """
    key = value.strip().lower()
    key = _ALIASES.get(key, key)
    if key not in CALORIES_PER_HOUR:
        msg = f"Unknown activity type: {value}"
        raise DomainRuleError(msg)
    return key


def estimate_calories_per_hour(activity_type: str, fitness_level: str | None) -> int:
    base = CALORIES_PER_HOUR.get(activity_type.lower(), DEFAULT_CALORIES_PER_HOUR)
    factor = FITNESS_FACTORS.get(fitness_level or "", 1.0)
    return round(base * factor)


def requires_gps(activity_type: str) -> bool:
    return activity_type.lower() in GPS_TYPES


def time_of_day(hour: int) -> str:
    if 5 <= hour <= 11:
        return "Morning"
    if 12 <= hour <= 16:
        return "Afternoon"
    if 17 <= hour <= 20:
        return "Evening"
    return "Late Night"


def default_session_name(first_name: str, activity_type: str, started_at: datetime) -> str:
    """e.g. "Dana's Morning Run"."""
    noun = SESSION_NOUNS.get(activity_type.lower(), "Workout")
    return f"{first_name}'s {time_of_day(started_at.hour)} {noun}"


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


class GeoPoint(Protocol):
    latitude: float
    longitude: float
    elevation: float | None
    speed: float | None
    recorded_at: datetime


@dataclass
class RouteStats:
    point_count: int = 0
    total_distance_m: float = 0.0
    average_speed_mps: float = 0.0
    max_speed_mps: float = 0.0
    min_elevation: float | None = None
    max_elevation: float | None = None
    elevation_gain_m: float = 0.0
    duration_seconds: float = 0.0

    @property
    def total_distance_km(self) -> float:
        return self.total_distance_m / 1000


def route_stats(points: Sequence[GeoPoint]) -> RouteStats:
    """Aggregate an ordered GPS track.

    Speed samples reported by the device win over segment-derived speeds for
    the maximum; the average is always distance over elapsed time.
    """
    stats = RouteStats(point_count=len(points))
    if not points:
        return stats

    elevations = [p.elevation for p in points if p.elevation is not None]
    if elevations:
        stats.min_elevation = min(elevations)
        stats.max_elevation = max(elevations)

    segment_speeds: list[float] = []
    for prev, cur in zip(points, points[1:]):
        segment = haversine_m(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
        stats.total_distance_m += segment
        elapsed = (cur.recorded_at - prev.recorded_at).total_seconds()
        if elapsed > 0:
            segment_speeds.append(segment / elapsed)
        if prev.elevation is not None and cur.elevation is not None and cur.elevation > prev.elevation:
            stats.elevation_gain_m += cur.elevation - prev.elevation

    stats.duration_seconds = max((points[-1].recorded_at - points[0].recorded_at).total_seconds(), 0.0)
    if stats.duration_seconds > 0:
        stats.average_speed_mps = stats.total_distance_m / stats.duration_seconds

    reported = [p.speed for p in points if p.speed is not None]
    stats.max_speed_mps = max(reported) if reported else max(segment_speeds, default=0.0)
    return stats
