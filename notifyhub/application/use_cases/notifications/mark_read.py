"""Use cases for marking notifications as read."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.infrastructure.repositories import NotificationRepository
from notifyhub.utils import now_in_app_timezone


def mark_read(
    session: Session,
    *,
    user_id: int,
    notification_ids: Iterable[int],
    now: datetime | None = None,
) -> int:
    """Mark the caller's notifications as read; ids owned by others are ignored."""

    unique_ids = list(dict.fromkeys(notification_ids))
    return NotificationRepository(session).mark_read(
        unique_ids, user_id=user_id, now=now or now_in_app_timezone()
    )


def mark_all_read(session: Session, *, user_id: int, now: datetime | None = None) -> int:
    return NotificationRepository(session).mark_all_read(
        user_id, now=now or now_in_app_timezone()
    )


__all__ = ["mark_all_read", "mark_read"]
