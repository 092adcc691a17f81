"""Tests for calorie estimates, naming and GPS route statistics."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from fitvibe.activities.metrics import (
    default_session_name,
    estimate_calories_per_hour,
    haversine_m,
    normalize_activity_type,
    requires_gps,
    route_stats,
    time_of_day,
)
from fitvibe.activities.service import base_activity_xp
from fitvibe.errors import DomainRuleError

T0 = datetime(2026, 10, 14, 7, 0, tzinfo=timezone.utc)


@dataclass
class Point:
    latitude: float
    longitude: float
    recorded_at: datetime
    elevation: float | None = None
    speed: float | None = None


class TestActivityTypes:
    @pytest.mark.parametrize(
        ("raw", "key"),
        [("running", "running"), ("  Running ", "running"), ("Gym Workout", "gym"), ("gym_workout", "gym")],
    )
    def test_normalize(self, raw, key):
        assert normalize_activity_type(raw) == key

    def test_unknown_type(self):
        with pytest.raises(DomainRuleError, match="Unknown activity type"):
            normalize_activity_type("curling")

    def test_calories_scaled_by_fitness(self):
        assert estimate_calories_per_hour("running", "Intermediate") == 600
        assert estimate_calories_per_hour("running", "Advanced") == 720
        assert estimate_calories_per_hour("running", "Beginner") == 480
        assert estimate_calories_per_hour("yoga", None) == 200

    def test_calories_for_unlisted_type(self):
        assert estimate_calories_per_hour("dance", "Intermediate") == 350

    def test_gps_types(self):
        assert requires_gps("running")
        assert requires_gps("Hiking")
        assert not requires_gps("yoga")
        assert not requires_gps("gym")


class TestNaming:
    @pytest.mark.parametrize(
        ("hour", "label"),
        [(4, "Late Night"), (5, "Morning"), (11, "Morning"), (12, "Afternoon"), (16, "Afternoon"),
         (17, "Evening"), (20, "Evening"), (21, "Late Night"), (0, "Late Night")],
    )
    def test_time_of_day(self, hour, label):
        assert time_of_day(hour) == label

    def test_default_session_name(self):
        assert default_session_name("Alice", "running", T0) == "Alice's Morning Run"
        assert default_session_name("Bob", "cycling", T0.replace(hour=18)) == "Bob's Evening Ride"
        assert default_session_name("Cy", "gym", T0.replace(hour=23)) == "Cy's Late Night Workout"


class TestActivityXP:
    def test_formula(self):
        assert base_activity_xp(30, 5.0) == 10 + 30 + 25
        assert base_activity_xp(45, 0.0) == 55

    def test_partial_km_not_counted(self):
        assert base_activity_xp(0, 4.9) == 10 + 20

    def test_capped(self):
        assert base_activity_xp(600, 100.0) == 500


class TestRouteStats:
    def test_haversine_one_degree_latitude(self):
        assert haversine_m(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)

    def test_haversine_same_point(self):
        assert haversine_m(48.85, 2.35, 48.85, 2.35) == 0.0

    def test_empty_track(self):
        stats = route_stats([])
        assert stats.point_count == 0
        assert stats.total_distance_m == 0.0
        assert stats.min_elevation is None

    def test_track_aggregates(self):
        points = [
            Point(0.0, 0.0, T0, elevation=10.0),
            Point(0.001, 0.0, T0 + timedelta(seconds=60), elevation=15.0),
            Point(0.002, 0.0, T0 + timedelta(seconds=120), elevation=12.0),
        ]
        stats = route_stats(points)
        assert stats.point_count == 3
        assert stats.total_distance_m == pytest.approx(222.39, rel=1e-3)
        assert stats.total_distance_km == pytest.approx(0.22239, rel=1e-3)
        assert stats.duration_seconds == 120
        assert stats.average_speed_mps == pytest.approx(1.853, rel=1e-3)
        assert stats.max_speed_mps == pytest.approx(1.853, rel=1e-3)
        assert stats.elevation_gain_m == 5.0
        assert (stats.min_elevation, stats.max_elevation) == (10.0, 15.0)

    def test_reported_speed_wins_for_max(self):
        points = [
            Point(0.0, 0.0, T0, speed=2.5),
            Point(0.001, 0.0, T0 + timedelta(seconds=60), speed=3.0),
        ]
        assert route_stats(points).max_speed_mps == 3.0
