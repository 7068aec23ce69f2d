"""Use case for deleting a notification owned by the caller."""

from sqlalchemy.orm import Session

from notifyhub.infrastructure.repositories import NotificationRepository

from .get_notification import get_owned_notification


def delete_notification(session: Session, *, user_id: int, notification_id: int) -> None:
    """Delete the notification and its delivery log.

    Raises:
        NotFoundError: If the notification does not exist or belongs to another user.
    """

    get_owned_notification(session, user_id=user_id, notification_id=notification_id)
    NotificationRepository(session).delete(notification_id)


__all__ = ["delete_notification"]
