"""Dispatcher entry point for notifications with caller-supplied content."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.validators import (
    ensure_channels,
    ensure_notification_type,
    ensure_priority,
)
from notifyhub.domain.entities import PRIORITY_MEDIUM, Notification
from notifyhub.domain.errors import ValidationError
from notifyhub.infrastructure.repositories import NotificationRepository, TemplateRepository
from notifyhub.utils import now_in_app_timezone

from .dispatch import (
    consume_rate_limit,
    derive_idempotency_key,
    find_live_duplicate,
    gate_channels,
    persist,
)


def create_raw(
    session: Session,
    *,
    user_id: int,
    notification_type: str,
    title: str,
    message: str,
    channels: Sequence[str],
    data: Mapping[str, Any] | None = None,
    reference_type: str | None = None,
    reference_id: str | int | None = None,
    priority: int | None = None,
    expires_at: datetime | None = None,
    template_code: str | None = None,
    template_data: Mapping[str, Any] | None = None,
    idempotency_key: str | None = None,
    now: datetime | None = None,
) -> Notification:
    """Persist a pending notification whose title and message are already final.

    Raises:
        InvalidTypeError, InvalidChannelError, ValidationError: On invalid input.
        NoChannelsError: If preferences leave no channel.
        RateLimitedError: If the user's send window is exhausted.
    """

    now = now or now_in_app_timezone()
    notification_type = ensure_notification_type(notification_type)
    requested = ensure_channels(channels)
    if not (title or "").strip():
        raise ValidationError("Notification title is required")
    if not (message or "").strip():
        raise ValidationError("Notification message is required")

    key = derive_idempotency_key(
        notification_type,
        user_id,
        reference_type=reference_type,
        reference_id=reference_id,
        nonce=idempotency_key,
    )
    existing = find_live_duplicate(NotificationRepository(session), key, now)
    if existing is not None:
        return existing

    allowed = gate_channels(
        session,
        user_id=user_id,
        notification_type=notification_type,
        channels=requested,
        now=now,
    )
    consume_rate_limit(session, user_id=user_id, now=now)

    template_version = None
    if template_code:
        template = TemplateRepository(session).get_by_code(template_code)
        template_version = template.version if template else None

    notification = Notification(
        id=None,
        user_id=user_id,
        notification_type=notification_type,
        title=title.strip(),
        message=message,
        channels=allowed,
        payload=dict(data or {}),
        reference_type=reference_type,
        reference_id=str(reference_id) if reference_id not in (None, "") else None,
        idempotency_key=key,
        priority=ensure_priority(priority or PRIORITY_MEDIUM),
        expires_at=expires_at,
        template_code=template_code,
        template_version=template_version,
        template_data=dict(template_data or {}),
        created_at=now,
    )
    return persist(session, notification)


__all__ = ["create_raw"]
