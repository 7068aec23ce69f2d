"""Use case for listing a user's notifications."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.validators import ensure_channels, ensure_notification_type
from notifyhub.domain.entities import Notification
from notifyhub.domain.errors import ValidationError
from notifyhub.infrastructure.repositories import (
    SORTABLE_FIELDS,
    NotificationQuery,
    NotificationRepository,
)
from notifyhub.utils import now_in_app_timezone

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class NotificationPage:
    items: Sequence[Notification]
    total: int
    page: int
    page_size: int
    unread_count: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.total else 0


def list_notifications(
    session: Session,
    *,
    user_id: int,
    notification_type: str | None = None,
    is_read: bool | None = None,
    channel: str | None = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    now: datetime | None = None,
) -> NotificationPage:
    """Return one page of the user's live notifications; expired ones are hidden."""

    if page < 1:
        raise ValidationError("page must be at least 1")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
    if sort_by not in SORTABLE_FIELDS:
        raise ValidationError(f"sort_by must be one of {list(SORTABLE_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sort_order must be 'asc' or 'desc'")
    if notification_type is not None:
        ensure_notification_type(notification_type)
    if channel is not None:
        ensure_channels([channel])

    now = now or now_in_app_timezone()
    repository = NotificationRepository(session)
    items, total = repository.list(
        NotificationQuery(
            user_id=user_id,
            notification_type=notification_type,
            is_read=is_read,
            channel=channel,
            sort_by=sort_by,
            sort_order=sort_order,
        ),
        now=now,
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return NotificationPage(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        unread_count=repository.unread_count(user_id, now=now),
    )


__all__ = ["DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE", "NotificationPage", "list_notifications"]
