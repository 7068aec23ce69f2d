"""Endpoints for provider delivery callbacks and delivery statistics."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from notifyhub.application.use_cases.delivery import (
    get_delivery_rate as get_delivery_rate_uc,
    list_delivery_attempts as list_delivery_attempts_uc,
    record_delivery_event as record_delivery_event_uc,
)
from notifyhub.application.use_cases.notifications import get_owned_notification
from notifyhub.domain.errors import NotificationError
from notifyhub.infrastructure.database import get_db
from notifyhub.interfaces.api.dependencies import get_current_user_id
from notifyhub.interfaces.api.errors import http_error
from notifyhub.interfaces.api.schemas import (
    DeliveryAttemptRead,
    DeliveryEventRequest,
    DeliveryRateRead,
)
from notifyhub.utils import ensure_app_timezone

router = APIRouter(prefix="/delivery", tags=["delivery"])


@router.post("/events", response_model=DeliveryAttemptRead)
def record_delivery_event(
    payload: DeliveryEventRequest,
    db: Session = Depends(get_db),
) -> DeliveryAttemptRead:
    """Record a provider callback (delivered, bounced, opened, clicked)."""

    try:
        attempt = record_delivery_event_uc(
            db,
            attempt_id=payload.attempt_id,
            event=payload.event,
            error_message=payload.error_message,
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return DeliveryAttemptRead.model_validate(attempt)


@router.get("/rate", response_model=DeliveryRateRead)
def read_delivery_rate(
    start: datetime = Query(...),
    end: datetime = Query(...),
    channel: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> DeliveryRateRead:
    start, end = ensure_app_timezone(start), ensure_app_timezone(end)
    try:
        rate = get_delivery_rate_uc(db, start=start, end=end, channel=channel)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return DeliveryRateRead(start=start, end=end, channel=channel, delivery_rate=rate)


@router.get("/notifications/{notification_id}", response_model=list[DeliveryAttemptRead])
def list_delivery_attempts(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> list[DeliveryAttemptRead]:
    """Return the delivery log of one of the caller's notifications."""

    try:
        get_owned_notification(db, user_id=user_id, notification_id=notification_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    attempts = list_delivery_attempts_uc(db, notification_id=notification_id)
    return [DeliveryAttemptRead.model_validate(attempt) for attempt in attempts]
