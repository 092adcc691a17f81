"""Tests for the level curve and titles."""

import pytest

from fitvibe.gamification.level_thresholds import (
    compute_level,
    level_for_xp,
    level_table,
    title_for_level,
    xp_for_level,
)


class TestLevelCurve:
    @pytest.mark.parametrize(
        ("level", "xp"),
        [(1, 0), (2, 100), (3, 300), (4, 600), (5, 1000), (10, 4500), (30, 43500)],
    )
    def test_cumulative_xp(self, level, xp):
        assert xp_for_level(level) == xp

    @pytest.mark.parametrize(
        ("xp", "level"),
        [(0, 1), (99, 1), (100, 2), (299, 2), (300, 3), (999, 4), (1000, 5), (43500, 30), (43499, 29)],
    )
    def test_level_for_xp(self, xp, level):
        assert level_for_xp(xp) == level

    def test_level_for_xp_is_inverse(self):
        for level in range(1, 200):
            assert level_for_xp(xp_for_level(level)) == level
            if level > 1:
                assert level_for_xp(xp_for_level(level) - 1) == level - 1


class TestTitles:
    @pytest.mark.parametrize(
        ("level", "title"),
        [
            (1, "Couch Starter"),
            (2, "Warm-Up Walker"),
            (4, "Active Mover"),
            (5, "Fitness Enthusiast"),
            (8, "Trail Blazer"),
            (12, "Endurance Athlete"),
            (17, "Iron Will"),
            (23, "Elite Performer"),
            (30, "Fitness Legend"),
            (99, "Fitness Legend"),
        ],
    )
    def test_title_bands(self, level, title):
        assert title_for_level(level) == title


class TestComputeLevel:
    def test_new_user(self):
        info = compute_level(0)
        assert info == {
            "level": 1,
            "title": "Couch Starter",
            "xp_into_level": 0,
            "xp_for_level": 100,
            "next_level": 2,
            "next_title": "Warm-Up Walker",
        }

    def test_mid_level(self):
        info = compute_level(350)
        assert info["level"] == 3
        assert info["xp_into_level"] == 50
        assert info["xp_for_level"] == 300

    def test_negative_xp_clamped(self):
        info = compute_level(-20)
        assert info["level"] == 1
        assert info["xp_into_level"] == 0

    def test_level_table(self):
        table = level_table(5)
        assert [row["level"] for row in table] == [1, 2, 3, 4, 5]
        assert table[0]["xp_required"] == 0
        assert table[4] == {"level": 5, "title": "Fitness Enthusiast", "xp_required": 400, "cumulative": 1000}
