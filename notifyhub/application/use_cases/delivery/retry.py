"""Retry scheduler re-sending failed attempts whose backoff has elapsed."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notifyhub.config import get_settings
from notifyhub.domain.entities import STATUS_FAILED, DeliveryAttempt
from notifyhub.domain.errors import DuplicateError, NotFoundError, StoreError
from notifyhub.domain.ports import ChannelDriver, DirectoryError, UserDirectory
from notifyhub.infrastructure.repositories import DeliveryLogRepository, NotificationRepository
from notifyhub.utils import Deadline, now_in_app_timezone

from .deliver import DeliverySummary, deliver_channel, resolve_recipient

logger = logging.getLogger(__name__)


def retry_failed_deliveries(
    session: Session,
    *,
    drivers: Mapping[str, ChannelDriver],
    directory: UserDirectory,
    limit: int | None = None,
    now: datetime | None = None,
    deadline: Deadline | None = None,
) -> DeliverySummary:
    """Re-send every retry-eligible attempt as ``attempt_number + 1``.

    Each failed row is claimed by clearing its ``retry_after`` before the new
    attempt is appended, so concurrent sweeps never retry the same row twice.
    When the retry breaks before attempt ``n + 1`` is recorded, the claim is
    handed back so a later sweep tries again.
    """

    settings = get_settings()
    now = now or now_in_app_timezone()
    deadline = deadline or Deadline.after(settings.sweep_timeout_seconds)
    log_repository = DeliveryLogRepository(session)
    notification_repository = NotificationRepository(session)
    summary = DeliverySummary()

    for failed in log_repository.list_retry_eligible(
        limit or settings.retry_failed_limit, now=now
    ):
        if deadline.expired:
            summary.interrupted = True
            break
        claimed = False
        try:
            notification = notification_repository.get_by_id(failed.notification_id)
            latest = log_repository.latest_for_channel(failed.notification_id, failed.channel)
            superseded = latest is not None and latest.id != failed.id
            if notification is None or superseded or notification.is_expired(now):
                log_repository.claim_retry(failed.id)
                summary.skipped += 1
                continue
            if not log_repository.claim_retry(failed.id):
                continue
            claimed = True

            recipient = failed.recipient or None
            if recipient is None:
                contact = directory.lookup(notification.user_id, deadline=deadline)
                recipient = resolve_recipient(failed.channel, notification, contact)
            attempt = deliver_channel(
                session,
                notification,
                failed.channel,
                recipient=recipient,
                drivers=drivers,
                attempt_number=failed.attempt_number + 1,
                now=now,
                deadline=deadline,
                settings=settings,
            )
        except DuplicateError:
            continue
        except (NotFoundError, StoreError, SQLAlchemyError, DirectoryError):
            session.rollback()
            summary.skipped += 1
            logger.exception("Skipping retry of delivery attempt %s", failed.id)
            if claimed:
                _hand_back_claim(session, failed)
            continue
        summary.notifications += 1
        summary.record(attempt)

    return summary


def _hand_back_claim(session: Session, failed: DeliveryAttempt) -> None:
    try:
        restored = DeliveryLogRepository(session).release_retry_claim(failed)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Could not restore the retry slot of delivery attempt %s", failed.id)
        return
    if restored:
        logger.info("Delivery attempt %s stays eligible for retry", failed.id)


def fail_stale_deliveries(
    session: Session,
    *,
    now: datetime | None = None,
    stale_after_minutes: int | None = None,
) -> int:
    """Turn attempts stuck in ``queued`` or ``processing`` into retryable failures."""

    settings = get_settings()
    now = now or now_in_app_timezone()
    stale_after_minutes = stale_after_minutes or settings.stale_processing_minutes
    failed = DeliveryLogRepository(session).fail_stale_processing(
        now - timedelta(minutes=stale_after_minutes),
        now=now,
        base_delay_minutes=settings.retry_base_delay_minutes,
    )
    notification_repository = NotificationRepository(session)
    for attempt in failed:
        notification_repository.update_channel_delivery_status(
            attempt.notification_id, attempt.channel, STATUS_FAILED
        )
    if failed:
        logger.warning("Marked %s stale delivery attempts as failed", len(failed))
    return len(failed)


__all__ = ["fail_stale_deliveries", "retry_failed_deliveries"]
