"""Per-user preference value object, stored as JSON on ``users.preferences``."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from fitvibe.errors import DomainRuleError


class UserPreferences(BaseModel):
    timezone: str = "UTC"
    allow_notifications: bool = True
    share_activities_publicly: bool = False
    receive_motivational_messages: bool = True
    allow_friend_requests: bool = True
    quiet_hours_start: int = Field(22, ge=0, le=23)
    quiet_hours_end: int = Field(7, ge=0, le=23)
    preferred_units: Literal["metric", "imperial"] = "metric"
    enable_audio_cues: bool = True
    share_to_social_media: bool = False

    def is_in_quiet_hours(self, hour: int) -> bool:
        """True when ``hour`` falls in [start, end), wrapping past midnight."""
        start, end = self.quiet_hours_start, self.quiet_hours_end
        if start == end:
            return False
        if start < end:
            return start <= hour < end
        return hour >= start or hour < end


def default_preferences() -> dict[str, Any]:
    return UserPreferences().model_dump()


def load_preferences(raw: dict[str, Any] | None) -> UserPreferences:
    """Build preferences from stored JSON, filling defaults for missing keys."""
    return UserPreferences.model_validate(raw or {})


def merge_preferences(current: dict[str, Any] | None, updates: dict[str, Any]) -> UserPreferences:
    """
    Apply a partial update on top of the stored preferences.

    Raises:
        DomainRuleError: If the merged preferences are invalid.
    """
    merged = {**load_preferences(current).model_dump(), **updates}
    try:
        return UserPreferences.model_validate(merged)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        msg = f"Invalid preference '{field}': {first['msg']}"
        raise DomainRuleError(msg) from e
