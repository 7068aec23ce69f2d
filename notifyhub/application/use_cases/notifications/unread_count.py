"""Use case returning the caller's unread badge count."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.infrastructure.repositories import NotificationRepository
from notifyhub.utils import now_in_app_timezone


def unread_count(session: Session, *, user_id: int, now: datetime | None = None) -> int:
    return NotificationRepository(session).unread_count(
        user_id, now=now or now_in_app_timezone()
    )


__all__ = ["unread_count"]
