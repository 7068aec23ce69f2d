"""Preferences gate deciding whether a channel may be used right now."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notifyhub.domain.entities import CHANNEL_EMAIL, CHANNEL_PUSH, NotificationPreferences
from notifyhub.infrastructure.repositories import PreferenceRepository
from notifyhub.utils import ensure_app_timezone, now_in_app_timezone

from .get_preferences import get_preferences

logger = logging.getLogger(__name__)

REASON_DND = "dnd"
REASON_QUIET_HOURS = "quiet_hours"
REASON_CHANNEL_DISABLED = "channel_disabled"
REASON_PREFERENCES_UNAVAILABLE = "preferences_unavailable"

# in-app is pulled by the user and SMS is reserved for urgent traffic
QUIET_HOURS_CHANNELS = frozenset({CHANNEL_EMAIL, CHANNEL_PUSH})


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: str | None = None


def evaluate(
    preferences: NotificationPreferences,
    notification_type: str,
    channel: str,
    now: datetime,
) -> GateDecision:
    """Apply DND, then quiet hours, then the per-type toggle."""

    if preferences.do_not_disturb:
        return GateDecision(False, REASON_DND)
    local_time = ensure_app_timezone(now).time()
    if channel in QUIET_HOURS_CHANNELS and preferences.in_quiet_hours(local_time):
        return GateDecision(False, REASON_QUIET_HOURS)
    if not preferences.channel_enabled(notification_type, channel):
        return GateDecision(False, REASON_CHANNEL_DISABLED)
    return GateDecision(True)


def can_send(
    session: Session,
    *,
    user_id: int,
    notification_type: str,
    channel: str,
    now: datetime | None = None,
) -> GateDecision:
    """Decide a single ``(user, type, channel)`` triple.

    Store failures are logged and treated as allowed.
    """

    now = now or now_in_app_timezone()
    try:
        get_preferences(session, user_id=user_id)
        repository = PreferenceRepository(session)
        if repository.do_not_disturb(user_id):
            return GateDecision(False, REASON_DND)
        local_time = ensure_app_timezone(now).time()
        if channel in QUIET_HOURS_CHANNELS and repository.in_quiet_hours(user_id, local_time):
            return GateDecision(False, REASON_QUIET_HOURS)
        if not repository.channel_enabled(user_id, notification_type, channel):
            return GateDecision(False, REASON_CHANNEL_DISABLED)
    except SQLAlchemyError:
        session.rollback()
        logger.warning(
            "Preferences lookup failed for user %s; allowing %s", user_id, channel, exc_info=True
        )
        return GateDecision(True, REASON_PREFERENCES_UNAVAILABLE)
    return GateDecision(True)


def filter_channels(
    session: Session,
    *,
    user_id: int,
    notification_type: str,
    channels: Iterable[str],
    now: datetime | None = None,
) -> tuple[list[str], dict[str, str]]:
    """Split ``channels`` into the allowed ones and a ``channel -> reason`` map of denials."""

    now = now or now_in_app_timezone()
    channels = list(channels)
    try:
        preferences = get_preferences(session, user_id=user_id)
    except SQLAlchemyError:
        session.rollback()
        logger.warning(
            "Preferences lookup failed for user %s; allowing all channels",
            user_id,
            exc_info=True,
        )
        return channels, {}

    allowed: list[str] = []
    denied: dict[str, str] = {}
    for channel in channels:
        decision = evaluate(preferences, notification_type, channel, now)
        if decision.allowed:
            allowed.append(channel)
        else:
            denied[channel] = decision.reason or REASON_CHANNEL_DISABLED
    return allowed, denied


__all__ = [
    "GateDecision",
    "QUIET_HOURS_CHANNELS",
    "REASON_CHANNEL_DISABLED",
    "REASON_DND",
    "REASON_PREFERENCES_UNAVAILABLE",
    "REASON_QUIET_HOURS",
    "can_send",
    "evaluate",
    "filter_channels",
]
