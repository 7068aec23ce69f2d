"""Use case for updating a user's notification preferences."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.validators import ensure_notification_type
from notifyhub.domain.entities import PREFERENCE_CHANNELS, NotificationPreferences
from notifyhub.domain.errors import InvalidChannelError, ValidationError
from notifyhub.infrastructure.repositories import PreferenceRepository
from notifyhub.utils import parse_time_of_day

from .get_preferences import get_preferences


def _normalize_map(
    preferences: Mapping[str, Mapping[str, bool]],
) -> dict[str, dict[str, bool]]:
    normalized: dict[str, dict[str, bool]] = {}
    for notification_type, channels in preferences.items():
        ensure_notification_type(notification_type)
        toggles: dict[str, bool] = {}
        for channel, enabled in channels.items():
            if channel not in PREFERENCE_CHANNELS:
                raise InvalidChannelError(
                    f"Channel '{channel}' cannot be configured in preferences"
                )
            toggles[channel] = bool(enabled)
        normalized[notification_type] = toggles
    return normalized


def update_preferences(
    session: Session,
    *,
    user_id: int,
    preferences: Mapping[str, Mapping[str, bool]] | None = None,
    do_not_disturb: bool | None = None,
    quiet_hours_start: str | None = None,
    quiet_hours_end: str | None = None,
) -> NotificationPreferences:
    """Update preferences; a provided map replaces the stored one entirely.

    Quiet hours are ``HH:MM`` strings; an empty string clears the bound.

    Raises:
        InvalidTypeError: If the map names an unknown notification type.
        InvalidChannelError: If the map names a channel that is not configurable.
        ValidationError: If a quiet-hours bound is not ``HH:MM``.
    """

    current = get_preferences(session, user_id=user_id)
    updated: NotificationPreferences = replace(current)
    if preferences is not None:
        updated.preferences = _normalize_map(preferences)
    if do_not_disturb is not None:
        updated.do_not_disturb = do_not_disturb
    try:
        if quiet_hours_start is not None:
            updated.quiet_hours_start = (
                parse_time_of_day(quiet_hours_start) if quiet_hours_start else None
            )
        if quiet_hours_end is not None:
            updated.quiet_hours_end = (
                parse_time_of_day(quiet_hours_end) if quiet_hours_end else None
            )
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    return PreferenceRepository(session).upsert(updated)


__all__ = ["update_preferences"]
