"""Recurring background jobs.

Each task opens its own session, runs one sweep and closes the session, so
any number of workers can run the same task concurrently.
"""

from __future__ import annotations

import logging
from typing import Any

from notifyhub.application.use_cases.campaigns import advance_running_campaigns
from notifyhub.application.use_cases.delivery import (
    fail_stale_deliveries,
    process_unsent_notifications,
    retry_failed_deliveries as retry_failed_deliveries_uc,
)
from notifyhub.application.use_cases.notifications import (
    cleanup_expired_notifications as cleanup_expired_notifications_uc,
    cleanup_read_notifications as cleanup_read_notifications_uc,
)
from notifyhub.config import get_settings
from notifyhub.domain.ports import DirectoryError, UserDirectory
from notifyhub.infrastructure.database import SessionLocal
from notifyhub.infrastructure.drivers import build_drivers
from notifyhub.infrastructure.user_directory import HttpUserDirectory
from notifyhub.utils import Deadline

from .celery_app import celery_app

logger = logging.getLogger(__name__)


def _directory() -> UserDirectory | None:
    try:
        return HttpUserDirectory.from_settings()
    except DirectoryError:
        logger.error("User directory is not configured; skipping sweep")
        return None


def _sweep_deadline() -> Deadline:
    return Deadline.after(get_settings().sweep_timeout_seconds)


@celery_app.task(name="notifyhub.deliver_pending_notifications")
def deliver_pending_notifications() -> dict[str, Any]:
    directory = _directory()
    if directory is None:
        return {"skipped": True}
    session = SessionLocal()
    try:
        summary = process_unsent_notifications(
            session,
            drivers=build_drivers(),
            directory=directory,
            deadline=_sweep_deadline(),
        )
    finally:
        session.close()
    logger.info("Delivery sweep finished: %s", summary)
    return {"notifications": summary.notifications, "sent": summary.sent, "failed": summary.failed}


@celery_app.task(name="notifyhub.retry_failed_deliveries")
def retry_failed_deliveries() -> dict[str, Any]:
    """Convert stale ``processing`` attempts to failures, then retry due failures."""

    directory = _directory()
    if directory is None:
        return {"skipped": True}
    session = SessionLocal()
    try:
        stale = fail_stale_deliveries(session)
        summary = retry_failed_deliveries_uc(
            session,
            drivers=build_drivers(),
            directory=directory,
            deadline=_sweep_deadline(),
        )
    finally:
        session.close()
    logger.info("Retry sweep finished (%s stale): %s", stale, summary)
    return {"stale": stale, "sent": summary.sent, "failed": summary.failed}


@celery_app.task(name="notifyhub.advance_campaigns")
def advance_campaigns() -> dict[str, Any]:
    directory = _directory()
    if directory is None:
        return {"skipped": True}
    session = SessionLocal()
    try:
        results = advance_running_campaigns(
            session, directory=directory, deadline=_sweep_deadline()
        )
    finally:
        session.close()
    return {"batches": len(results), "processed": sum(result.processed for result in results)}


@celery_app.task(name="notifyhub.cleanup_expired_notifications")
def cleanup_expired_notifications() -> int:
    session = SessionLocal()
    try:
        return cleanup_expired_notifications_uc(session)
    finally:
        session.close()


@celery_app.task(name="notifyhub.cleanup_read_notifications")
def cleanup_read_notifications() -> int:
    session = SessionLocal()
    try:
        return cleanup_read_notifications_uc(session)
    finally:
        session.close()


__all__ = [
    "advance_campaigns",
    "cleanup_expired_notifications",
    "cleanup_read_notifications",
    "deliver_pending_notifications",
    "retry_failed_deliveries",
]
