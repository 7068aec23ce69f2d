"""Schemas for notification preference endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PreferencesRead(BaseModel):
    user_id: int
    preferences: dict[str, dict[str, bool]]
    do_not_disturb: bool
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    updated_at: datetime | None = None


class PreferencesUpdate(BaseModel):
    """Partial update; an empty quiet-hours string clears that bound."""

    model_config = ConfigDict(extra="forbid")

    preferences: dict[str, dict[str, bool]] | None = None
    do_not_disturb: bool | None = None
    quiet_hours_start: str | None = Field(default=None, max_length=5)
    quiet_hours_end: str | None = Field(default=None, max_length=5)


__all__ = ["PreferencesRead", "PreferencesUpdate"]
