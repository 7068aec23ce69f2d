"""Provider callbacks advancing delivery attempts after the send."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.domain.entities import (
    CAMPAIGN_REFERENCE_TYPE,
    STATUS_BOUNCED,
    STATUS_CLICKED,
    STATUS_DELIVERED,
    STATUS_OPENED,
    DeliveryAttempt,
)
from notifyhub.domain.errors import NotFoundError, ValidationError
from notifyhub.infrastructure.repositories import (
    CampaignRepository,
    DeliveryLogRepository,
    NotificationRepository,
)
from notifyhub.utils import now_in_app_timezone

DELIVERY_EVENTS = (STATUS_DELIVERED, STATUS_BOUNCED, STATUS_OPENED, STATUS_CLICKED)


def record_delivery_event(
    session: Session,
    *,
    attempt_id: int,
    event: str,
    error_message: str | None = None,
    now: datetime | None = None,
) -> DeliveryAttempt:
    """Apply a provider event to an attempt and mirror it on the notification.

    A first ``delivered`` event for a campaign notification also advances the
    campaign's delivered counter.

    Raises:
        ValidationError: If ``event`` is not a supported callback.
        NotFoundError: If the attempt does not exist.
        ConflictError: If the attempt already reached a different final status.
    """

    if event not in DELIVERY_EVENTS:
        raise ValidationError(f"event must be one of {list(DELIVERY_EVENTS)}")
    now = now or now_in_app_timezone()
    repository = DeliveryLogRepository(session)
    previous = repository.get(attempt_id)
    if previous is None:
        raise NotFoundError(f"Delivery attempt with id {attempt_id} not found")

    if event == STATUS_DELIVERED:
        attempt = repository.mark_delivered(attempt_id, now=now)
    elif event == STATUS_BOUNCED:
        attempt = repository.mark_bounced(attempt_id, error_message=error_message, now=now)
    else:
        attempt = repository.record_engagement(attempt_id, event, now=now)

    notification = NotificationRepository(session).update_channel_delivery_status(
        attempt.notification_id, attempt.channel, attempt.status
    )
    newly_delivered = event == STATUS_DELIVERED and previous.status != STATUS_DELIVERED
    if (
        newly_delivered
        and notification.reference_type == CAMPAIGN_REFERENCE_TYPE
        and notification.reference_id
    ):
        CampaignRepository(session).increment_progress(
            int(notification.reference_id), delivered=1
        )
    return attempt


__all__ = ["DELIVERY_EVENTS", "record_delivery_event"]
