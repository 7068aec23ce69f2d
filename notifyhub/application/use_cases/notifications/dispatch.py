"""Helpers shared by the dispatcher entry points."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.preferences import filter_channels
from notifyhub.application.use_cases.rate_limits import (
    check_user_rate_limit,
    release_user_rate_limit,
)
from notifyhub.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    Notification,
)
from notifyhub.domain.errors import DuplicateError, NoChannelsError, RateLimitedError
from notifyhub.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)

_HEADLINE_ORDER = (CHANNEL_IN_APP, CHANNEL_PUSH, CHANNEL_EMAIL, CHANNEL_SMS)


def derive_idempotency_key(
    prefix: str,
    user_id: int,
    *,
    reference_type: str | None = None,
    reference_id: str | int | None = None,
    nonce: str | None = None,
) -> str | None:
    """Build the deduplication key for a send request.

    With a reference the key is ``prefix:reference_type:reference_id:user_id``;
    otherwise a caller nonce gives ``prefix:user_id:nonce``. Without either the
    request is not deduplicated.
    """

    if reference_id not in (None, ""):
        return f"{prefix}:{reference_type or 'ref'}:{reference_id}:{user_id}"
    if nonce:
        return f"{prefix}:{user_id}:{nonce}"
    return None


def find_live_duplicate(
    repository: NotificationRepository, key: str | None, now: datetime
) -> Notification | None:
    """Return the live notification holding ``key``.

    An expired holder gives up the key so a fresh notification can take it.
    """

    if key is None:
        return None
    existing = repository.get_by_idempotency_key(key)
    if existing is None:
        return None
    if existing.is_expired(now):
        repository.release_idempotency_key(existing.id)
        return None
    return existing


def gate_channels(
    session: Session,
    *,
    user_id: int,
    notification_type: str,
    channels: list[str],
    now: datetime,
) -> list[str]:
    allowed, denied = filter_channels(
        session,
        user_id=user_id,
        notification_type=notification_type,
        channels=channels,
        now=now,
    )
    if denied:
        logger.info(
            "Preferences removed channels for user %s (%s): %s",
            user_id,
            notification_type,
            denied,
        )
    if not allowed:
        raise NoChannelsError("No channel is allowed by the user's preferences")
    return allowed


def consume_rate_limit(session: Session, *, user_id: int, now: datetime) -> None:
    if not check_user_rate_limit(session, user_id=user_id, now=now):
        raise RateLimitedError(f"Notification rate limit reached for user {user_id}")


def headline(rendered: Mapping[str, Mapping[str, str]]) -> tuple[str, str]:
    """Pick the stored title and message, preferring the in-app rendering."""

    for channel in _HEADLINE_ORDER:
        content = rendered.get(channel)
        if content:
            return content.get("title", ""), content.get("body", "")
    return "", ""


def persist(session: Session, notification: Notification) -> Notification:
    """Store ``notification``; losing a concurrent idempotency race returns the winner."""

    repository = NotificationRepository(session)
    try:
        return repository.create(notification)
    except DuplicateError:
        if notification.idempotency_key is None:
            raise
        existing = repository.get_by_idempotency_key(notification.idempotency_key)
        if existing is None:
            raise
        release_user_rate_limit(
            session, user_id=notification.user_id, consumed_at=notification.created_at
        )
        return existing


__all__ = [
    "consume_rate_limit",
    "derive_idempotency_key",
    "find_live_duplicate",
    "gate_channels",
    "headline",
    "persist",
]
