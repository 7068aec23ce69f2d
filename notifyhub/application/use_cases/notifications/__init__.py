"""Notification use cases: dispatching, inbox operations and maintenance."""

from .cleanup import cleanup_expired_notifications, cleanup_read_notifications
from .create_raw import create_raw
from .delete_notification import delete_notification
from .get_notification import get_notification, get_owned_notification
from .list_notifications import NotificationPage, list_notifications
from .mark_read import mark_all_read, mark_read
from .send_with_template import send_with_template
from .unread_count import unread_count

__all__ = [
    "NotificationPage",
    "cleanup_expired_notifications",
    "cleanup_read_notifications",
    "create_raw",
    "delete_notification",
    "get_notification",
    "get_owned_notification",
    "list_notifications",
    "mark_all_read",
    "mark_read",
    "send_with_template",
    "unread_count",
]
