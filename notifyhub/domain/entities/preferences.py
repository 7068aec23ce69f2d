"""Domain entity holding per-user notification preferences."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time

from .notification import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    TYPE_NEW_PROMOTION,
    TYPE_ORDER_STATUS,
    TYPE_PAYMENT,
    TYPE_PROMOTION_REMOVED,
    TYPE_REVIEW_RESPONSE,
    TYPE_SYSTEM_ALERT,
)

PREFERENCE_CHANNELS = (CHANNEL_IN_APP, CHANNEL_EMAIL, CHANNEL_PUSH)
DEFAULT_QUIET_HOURS_START = time(22, 0)
DEFAULT_QUIET_HOURS_END = time(7, 0)


def default_preference_map() -> dict[str, dict[str, bool]]:
    """Return the channel toggles a user starts with."""

    transactional = {CHANNEL_IN_APP: True, CHANNEL_EMAIL: True, CHANNEL_PUSH: False}
    in_app_only = {CHANNEL_IN_APP: True, CHANNEL_EMAIL: False, CHANNEL_PUSH: False}
    return {
        TYPE_ORDER_STATUS: dict(transactional),
        TYPE_PAYMENT: dict(transactional),
        TYPE_SYSTEM_ALERT: dict(transactional),
        TYPE_NEW_PROMOTION: dict(in_app_only),
        TYPE_PROMOTION_REMOVED: dict(in_app_only),
        TYPE_REVIEW_RESPONSE: dict(in_app_only),
    }


@dataclass
class NotificationPreferences:
    """Channel toggles per notification type plus quiet hours and DND."""

    id: int | None
    user_id: int
    preferences: dict[str, dict[str, bool]] = field(default_factory=dict)
    do_not_disturb: bool = False
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def defaults_for(cls, user_id: int) -> "NotificationPreferences":
        return cls(
            id=None,
            user_id=user_id,
            preferences=default_preference_map(),
            do_not_disturb=False,
            quiet_hours_start=DEFAULT_QUIET_HOURS_START,
            quiet_hours_end=DEFAULT_QUIET_HOURS_END,
        )

    def channel_enabled(self, notification_type: str, channel: str) -> bool:
        channels = self.preferences.get(notification_type)
        if not channels or channel not in channels:
            return True
        return bool(channels[channel])

    def in_quiet_hours(self, moment: time) -> bool:
        start, end = self.quiet_hours_start, self.quiet_hours_end
        if start is None or end is None or start == end:
            return False
        if start < end:
            return start <= moment < end
        return moment >= start or moment < end


__all__ = [
    "DEFAULT_QUIET_HOURS_END",
    "DEFAULT_QUIET_HOURS_START",
    "NotificationPreferences",
    "PREFERENCE_CHANNELS",
    "default_preference_map",
]
