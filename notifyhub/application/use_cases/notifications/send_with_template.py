"""Dispatcher entry point for template-based notifications."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.rate_limits import release_user_rate_limit
from notifyhub.application.use_cases.templates import (
    get_active_template,
    render_template,
    substitute,
    validate_variables,
)
from notifyhub.application.use_cases.validators import (
    ensure_channels,
    ensure_notification_type,
    ensure_priority,
)
from notifyhub.domain.entities import Notification
from notifyhub.domain.errors import NoChannelsError, TemplateRenderError
from notifyhub.infrastructure.repositories import NotificationRepository
from notifyhub.utils import now_in_app_timezone

from .dispatch import (
    consume_rate_limit,
    derive_idempotency_key,
    find_live_duplicate,
    gate_channels,
    headline,
    persist,
)

logger = logging.getLogger(__name__)


def send_with_template(
    session: Session,
    *,
    user_id: int,
    template_code: str,
    data: Mapping[str, Any] | None = None,
    channels: Sequence[str] | None = None,
    reference_type: str | None = None,
    reference_id: str | int | None = None,
    priority: int | None = None,
    idempotency_key: str | None = None,
    now: datetime | None = None,
) -> Notification:
    """Render ``template_code`` for ``user_id`` and persist a pending notification.

    Delivery is left to the delivery worker. A repeated request with the same
    template, reference and user returns the notification created first.

    Raises:
        TemplateNotFoundError, TemplateInactiveError, MissingVariablesError:
            If the template cannot be used with ``data``.
        InvalidChannelError: If ``channels`` names an unknown channel.
        NoChannelsError: If preferences or rendering leave no channel.
        RateLimitedError: If the user's send window is exhausted.
    """

    now = now or now_in_app_timezone()
    data = dict(data or {})

    template = get_active_template(session, code=template_code)
    validate_variables(template, data)
    notification_type = ensure_notification_type(template.notification_type)
    requested = (
        ensure_channels(channels)
        if channels
        else ensure_channels(template.default_channels, allow_empty=True)
    )
    if not requested:
        raise NoChannelsError(f"Template '{template.code}' has no default channels")

    key = derive_idempotency_key(
        template.code,
        user_id,
        reference_type=reference_type,
        reference_id=reference_id,
        nonce=idempotency_key,
    )
    existing = find_live_duplicate(NotificationRepository(session), key, now)
    if existing is not None:
        logger.info("Send for user %s deduplicated by key %s", user_id, key)
        return existing

    allowed = gate_channels(
        session,
        user_id=user_id,
        notification_type=notification_type,
        channels=requested,
        now=now,
    )
    consume_rate_limit(session, user_id=user_id, now=now)

    rendered: dict[str, dict[str, str]] = {}
    for channel in allowed:
        try:
            content = render_template(template, channel, data)
        except TemplateRenderError as exc:
            logger.warning("Dropping %s for template %s: %s", channel, template.code, exc)
            continue
        rendered[channel] = {"title": content.title, "body": content.body}
        if content.text:
            rendered[channel]["text"] = content.text
    if not rendered:
        release_user_rate_limit(session, user_id=user_id, consumed_at=now)
        raise NoChannelsError(f"Template '{template.code}' rendered no channel")

    payload = dict(data)
    if template.in_app_action_url:
        payload["action_url"] = substitute(template.in_app_action_url, data)
    title, message = headline(rendered)
    expires_at = (
        now + timedelta(hours=template.expires_after_hours)
        if template.expires_after_hours
        else None
    )
    notification = Notification(
        id=None,
        user_id=user_id,
        notification_type=notification_type,
        title=title,
        message=message,
        channels=list(rendered),
        payload=payload,
        rendered=rendered,
        reference_type=reference_type,
        reference_id=str(reference_id) if reference_id not in (None, "") else None,
        idempotency_key=key,
        priority=ensure_priority(priority or template.default_priority),
        expires_at=expires_at,
        template_code=template.code,
        template_version=template.version,
        template_data=data,
        created_at=now,
    )
    return persist(session, notification)


__all__ = ["send_with_template"]
