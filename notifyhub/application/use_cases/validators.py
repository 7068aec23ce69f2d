"""Input checks shared by several use cases."""

from __future__ import annotations

from collections.abc import Iterable

from notifyhub.domain.entities import CHANNELS, NOTIFICATION_TYPES, PRIORITIES
from notifyhub.domain.errors import InvalidChannelError, InvalidTypeError, ValidationError


def ensure_notification_type(notification_type: str) -> str:
    if notification_type not in NOTIFICATION_TYPES:
        raise InvalidTypeError(f"Unknown notification type '{notification_type}'")
    return notification_type


def ensure_channels(channels: Iterable[str], *, allow_empty: bool = False) -> list[str]:
    """Return ``channels`` without duplicates, rejecting unknown names."""

    unique: list[str] = []
    for channel in channels:
        if channel not in CHANNELS:
            raise InvalidChannelError(f"Unknown channel '{channel}'")
        if channel not in unique:
            unique.append(channel)
    if not unique and not allow_empty:
        raise InvalidChannelError("At least one channel is required")
    return unique


def ensure_priority(priority: int) -> int:
    if priority not in PRIORITIES:
        raise ValidationError(f"Priority must be one of {list(PRIORITIES)}")
    return priority


__all__ = ["ensure_channels", "ensure_notification_type", "ensure_priority"]
