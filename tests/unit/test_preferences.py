"""Tests for the preferences value object."""

import pytest

from fitvibe.errors import DomainRuleError
from fitvibe.users.preferences import (
    UserPreferences,
    default_preferences,
    load_preferences,
    merge_preferences,
)


class TestQuietHours:
    @pytest.mark.parametrize(("hour", "quiet"), [(21, False), (22, True), (23, True), (0, True), (6, True), (7, False), (12, False)])
    def test_default_window_wraps_midnight(self, hour, quiet):
        assert UserPreferences().is_in_quiet_hours(hour) is quiet

    def test_same_day_window(self):
        prefs = UserPreferences(quiet_hours_start=9, quiet_hours_end=17)
        assert prefs.is_in_quiet_hours(9)
        assert prefs.is_in_quiet_hours(16)
        assert not prefs.is_in_quiet_hours(17)
        assert not prefs.is_in_quiet_hours(8)

    def test_empty_window(self):
        prefs = UserPreferences(quiet_hours_start=5, quiet_hours_end=5)
        assert not any(prefs.is_in_quiet_hours(h) for h in range(24))


class TestLoadAndMerge:
    def test_defaults(self):
        defaults = default_preferences()
        assert defaults["timezone"] == "UTC"
        assert defaults["allow_friend_requests"] is True
        assert defaults["share_to_social_media"] is False

    def test_load_fills_missing_keys(self):
        prefs = load_preferences({"preferred_units": "imperial"})
        assert prefs.preferred_units == "imperial"
        assert prefs.allow_notifications is True

    def test_load_none(self):
        assert load_preferences(None) == UserPreferences()

    def test_merge_overrides_only_given_keys(self):
        merged = merge_preferences({"timezone": "Europe/Paris", "enable_audio_cues": False}, {"timezone": "Asia/Tokyo"})
        assert merged.timezone == "Asia/Tokyo"
        assert merged.enable_audio_cues is False

    def test_merge_rejects_bad_units(self):
        with pytest.raises(DomainRuleError, match="preferred_units"):
            merge_preferences(None, {"preferred_units": "furlongs"})

    def test_merge_rejects_out_of_range_hour(self):
        with pytest.raises(DomainRuleError, match="quiet_hours_end"):
            merge_preferences(None, {"quiet_hours_end": 24})
