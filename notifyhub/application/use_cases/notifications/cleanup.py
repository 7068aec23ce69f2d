"""Maintenance jobs removing notifications that are no longer useful."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from notifyhub.config import get_settings
from notifyhub.infrastructure.repositories import NotificationRepository
from notifyhub.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


def cleanup_expired_notifications(session: Session, *, now: datetime | None = None) -> int:
    """Delete notifications whose expiry has passed."""

    deleted = NotificationRepository(session).delete_expired(now or now_in_app_timezone())
    if deleted:
        logger.info("Deleted %s expired notifications", deleted)
    return deleted


def cleanup_read_notifications(
    session: Session,
    *,
    retention_days: int | None = None,
    now: datetime | None = None,
) -> int:
    """Delete read notifications older than the retention period (30 days by default)."""

    retention_days = retention_days or get_settings().cleanup_retention_days
    before = (now or now_in_app_timezone()) - timedelta(days=retention_days)
    deleted = NotificationRepository(session).delete_old_read(before)
    if deleted:
        logger.info("Deleted %s read notifications older than %s days", deleted, retention_days)
    return deleted


__all__ = ["cleanup_expired_notifications", "cleanup_read_notifications"]
