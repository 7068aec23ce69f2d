"""Use case for reading one notification owned by the caller."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.domain.entities import Notification
from notifyhub.domain.errors import ExpiredError, NotFoundError
from notifyhub.infrastructure.repositories import NotificationRepository
from notifyhub.utils import now_in_app_timezone


def get_owned_notification(
    session: Session, *, user_id: int, notification_id: int
) -> Notification:
    """Return the notification if ``user_id`` owns it.

    Foreign notifications are reported as missing so their existence does not leak.
    """

    notification = NotificationRepository(session).get_by_id(notification_id)
    if notification is None or notification.user_id != user_id:
        raise NotFoundError(f"Notification with id {notification_id} not found")
    return notification


def get_notification(
    session: Session,
    *,
    user_id: int,
    notification_id: int,
    now: datetime | None = None,
) -> Notification:
    notification = get_owned_notification(
        session, user_id=user_id, notification_id=notification_id
    )
    if notification.is_expired(now or now_in_app_timezone()):
        raise ExpiredError(f"Notification with id {notification_id} has expired")
    return notification


__all__ = ["get_notification", "get_owned_notification"]
