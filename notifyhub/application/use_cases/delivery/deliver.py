"""Delivery worker: first delivery pass over pending notifications."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notifyhub.config import Settings, get_settings
from notifyhub.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    STATUS_FAILED,
    STATUS_QUEUED,
    STATUS_SENT,
    DeliveryAttempt,
    Notification,
    RecipientContact,
)
from notifyhub.domain.errors import DuplicateError, NotFoundError, StoreError
from notifyhub.domain.ports import ChannelDriver, DirectoryError, DriverError, UserDirectory
from notifyhub.infrastructure.repositories import DeliveryLogRepository, NotificationRepository
from notifyhub.utils import Deadline, now_in_app_timezone

logger = logging.getLogger(__name__)


@dataclass
class DeliverySummary:
    """Counters reported by one sweep."""

    notifications: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    interrupted: bool = False

    def record(self, attempt: DeliveryAttempt) -> None:
        if attempt.status == STATUS_SENT:
            self.sent += 1
        else:
            self.failed += 1


def resolve_recipient(
    channel: str, notification: Notification, contact: RecipientContact | None
) -> str | None:
    """Return the address ``channel`` delivers to, or ``None`` when the user has none."""

    if channel == CHANNEL_IN_APP:
        return str(notification.id)
    if contact is None:
        return None
    if channel == CHANNEL_EMAIL:
        return contact.email
    if channel == CHANNEL_SMS:
        return contact.phone
    if channel == CHANNEL_PUSH:
        return contact.device_token
    return None


def deliver_channel(
    session: Session,
    notification: Notification,
    channel: str,
    *,
    recipient: str | None,
    drivers: Mapping[str, ChannelDriver],
    attempt_number: int,
    now: datetime,
    deadline: Deadline | None = None,
    settings: Settings | None = None,
) -> DeliveryAttempt:
    """Record and perform one delivery attempt for ``channel``.

    The attempt row is written (``queued`` then ``processing``) before the driver
    runs, so a crash during the call leaves a ``processing`` row for the stale
    sweep. On success the notification is flagged as sent.
    """

    settings = settings or get_settings()
    log_repository = DeliveryLogRepository(session)
    notification_repository = NotificationRepository(session)
    driver = drivers.get(channel)

    attempt = log_repository.append(
        DeliveryAttempt(
            id=None,
            notification_id=notification.id,
            channel=channel,
            attempt_number=attempt_number,
            status=STATUS_QUEUED,
            recipient=recipient or "",
            provider=driver.provider if driver else None,
            max_retries=settings.delivery_max_retries,
            queued_at=now,
            created_at=now,
        )
    )

    if recipient is None or driver is None:
        error_code = "NO_RECIPIENT" if recipient is None else "NO_DRIVER"
        logger.info(
            "Notification %s cannot use %s: %s", notification.id, channel, error_code
        )
        attempt = log_repository.mark_failed_with_backoff(
            attempt.id,
            error_code=error_code,
            error_message=f"No {'recipient' if recipient is None else 'driver'} for {channel}",
            now=now,
            base_delay_minutes=settings.retry_base_delay_minutes,
            retryable=False,
        )
        notification_repository.update_channel_delivery_status(
            notification.id, channel, STATUS_FAILED
        )
        return attempt

    attempt = log_repository.mark_processing(attempt.id, now=now)
    title, body = notification.content_for(channel)
    payload = {
        **notification.payload,
        "notification_id": notification.id,
        "notification_type": notification.notification_type,
    }
    text_body = (notification.rendered.get(channel) or {}).get("text")
    if text_body:
        payload["text_body"] = text_body
    try:
        result = driver.send(recipient, title, body, payload, deadline=deadline)
    except DriverError as exc:
        logger.warning(
            "Attempt %s of notification %s on %s failed (%s, transient=%s): %s",
            attempt.attempt_number,
            notification.id,
            channel,
            exc.error_code,
            exc.transient,
            exc.message,
        )
        attempt = log_repository.mark_failed_with_backoff(
            attempt.id,
            error_code=exc.error_code,
            error_message=exc.message,
            now=now,
            base_delay_minutes=settings.retry_base_delay_minutes,
            retryable=exc.transient,
            provider=driver.provider,
            provider_response=exc.provider_response,
        )
        notification_repository.update_channel_delivery_status(
            notification.id, channel, STATUS_FAILED
        )
        return attempt

    attempt = log_repository.mark_sent(
        attempt.id,
        provider=result.provider,
        provider_message_id=result.message_id,
        provider_response=result.response,
        now=now,
    )
    notification_repository.update_channel_delivery_status(notification.id, channel, STATUS_SENT)
    notification_repository.mark_sent(notification.id, now=now)
    return attempt


def _deliver_notification(
    session: Session,
    notification: Notification,
    *,
    drivers: Mapping[str, ChannelDriver],
    directory: UserDirectory,
    now: datetime,
    deadline: Deadline,
    settings: Settings,
    summary: DeliverySummary,
) -> None:
    log_repository = DeliveryLogRepository(session)
    contact = None
    if any(channel != CHANNEL_IN_APP for channel in notification.channels):
        contact = directory.lookup(notification.user_id, deadline=deadline)

    for channel in notification.channels:
        # channels attempted by an earlier, interrupted pass belong to the retry sweep
        if log_repository.latest_for_channel(notification.id, channel) is not None:
            continue
        if deadline.expired:
            summary.interrupted = True
            return
        try:
            attempt = deliver_channel(
                session,
                notification,
                channel,
                recipient=resolve_recipient(channel, notification, contact),
                drivers=drivers,
                attempt_number=1,
                now=now,
                deadline=deadline,
                settings=settings,
            )
        except DuplicateError:
            logger.info(
                "Notification %s on %s was claimed by another worker", notification.id, channel
            )
            continue
        summary.record(attempt)

    NotificationRepository(session).mark_dispatched(notification.id, now=now)


def process_unsent_notifications(
    session: Session,
    *,
    drivers: Mapping[str, ChannelDriver],
    directory: UserDirectory,
    limit: int | None = None,
    now: datetime | None = None,
    deadline: Deadline | None = None,
) -> DeliverySummary:
    """Run one delivery pass over pending notifications.

    Notifications are taken by priority then age, expired ones excluded. A
    notification whose processing fails on store or directory errors is logged
    and skipped; the sweep continues with the next one.
    """

    settings = get_settings()
    now = now or now_in_app_timezone()
    deadline = deadline or Deadline.after(settings.sweep_timeout_seconds)
    summary = DeliverySummary()

    pending = NotificationRepository(session).list_unsent(
        limit or settings.send_pending_limit, now=now
    )
    for notification in pending:
        if deadline.expired:
            summary.interrupted = True
            break
        try:
            _deliver_notification(
                session,
                notification,
                drivers=drivers,
                directory=directory,
                now=now,
                deadline=deadline,
                settings=settings,
                summary=summary,
            )
        except (NotFoundError, StoreError, SQLAlchemyError, DirectoryError):
            session.rollback()
            summary.skipped += 1
            logger.exception("Skipping notification %s after a delivery error", notification.id)
            continue
        summary.notifications += 1
        if summary.interrupted:
            break

    if summary.interrupted:
        logger.warning("Delivery sweep stopped at its deadline: %s", summary)
    return summary


__all__ = [
    "DeliverySummary",
    "deliver_channel",
    "process_unsent_notifications",
    "resolve_recipient",
]
