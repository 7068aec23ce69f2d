"""Delivery statistics."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.validators import ensure_channels
from notifyhub.domain.entities import DeliveryAttempt
from notifyhub.domain.errors import ValidationError
from notifyhub.infrastructure.repositories import DeliveryLogRepository


def get_delivery_rate(
    session: Session,
    *,
    start: datetime,
    end: datetime,
    channel: str | None = None,
) -> float:
    """Return the share (0-100) of attempts in ``[start, end]`` that reached the user."""

    if start > end:
        raise ValidationError("start must not be after end")
    if channel is not None:
        ensure_channels([channel])
    return DeliveryLogRepository(session).delivery_rate(start, end, channel)


def list_delivery_attempts(
    session: Session, *, notification_id: int
) -> Sequence[DeliveryAttempt]:
    return DeliveryLogRepository(session).list_by_notification(notification_id)


__all__ = ["get_delivery_rate", "list_delivery_attempts"]
