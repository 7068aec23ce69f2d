"""Endpoints for a user's notification inbox and for dispatch requests."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from notifyhub.application.use_cases.notifications import (
    create_raw as create_raw_uc,
    delete_notification as delete_notification_uc,
    get_notification as get_notification_uc,
    list_notifications as list_notifications_uc,
    mark_all_read as mark_all_read_uc,
    mark_read as mark_read_uc,
    send_with_template as send_with_template_uc,
    unread_count as unread_count_uc,
)
from notifyhub.domain.entities import Notification
from notifyhub.domain.errors import NotificationError
from notifyhub.infrastructure.database import get_db
from notifyhub.interfaces.api.dependencies import get_current_user_id
from notifyhub.interfaces.api.errors import http_error
from notifyhub.interfaces.api.schemas import (
    CreateRawRequest,
    MarkReadResponse,
    NotificationMarkReadRequest,
    NotificationPageRead,
    NotificationRead,
    SendTemplateRequest,
    UnreadCountResponse,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_read_model(notification: Notification) -> NotificationRead:
    return NotificationRead.model_validate(notification)


@router.get("/", response_model=NotificationPageRead)
def list_notifications(
    notification_type: str | None = Query(default=None, alias="type"),
    is_read: bool | None = Query(default=None),
    channel: str | None = Query(default=None),
    page: int = Query(default=1),
    page_size: int = Query(default=20),
    sort_by: str = Query(default="created_at"),
    sort_order: str = Query(default="desc"),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationPageRead:
    """Return one page of the caller's live notifications."""

    try:
        result = list_notifications_uc(
            db,
            user_id=user_id,
            notification_type=notification_type,
            is_read=is_read,
            channel=channel,
            page=page,
            page_size=page_size,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return NotificationPageRead(
        items=[_notification_to_read_model(item) for item in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        unread_count=result.unread_count,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=unread_count_uc(db, user_id=user_id))


@router.post("/mark-read", response_model=MarkReadResponse)
def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> MarkReadResponse:
    """Mark the given notifications as read; ids owned by others are ignored."""

    updated = mark_read_uc(db, user_id=user_id, notification_ids=payload.ids)
    return MarkReadResponse(updated=updated)


@router.post("/mark-all-read", response_model=MarkReadResponse)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> MarkReadResponse:
    return MarkReadResponse(updated=mark_all_read_uc(db, user_id=user_id))


@router.post("/send", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def send_notification(
    payload: SendTemplateRequest,
    db: Session = Depends(get_db),
) -> NotificationRead:
    """Render a template for a user and queue the notification for delivery."""

    try:
        notification = send_with_template_uc(
            db,
            user_id=payload.user_id,
            template_code=payload.template_code,
            data=payload.data,
            channels=payload.channels,
            reference_type=payload.reference_type,
            reference_id=payload.reference_id,
            priority=payload.priority,
            idempotency_key=payload.idempotency_key,
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _notification_to_read_model(notification)


@router.post("/raw", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_raw_notification(
    payload: CreateRawRequest,
    db: Session = Depends(get_db),
) -> NotificationRead:
    """Queue a notification whose content is supplied verbatim."""

    try:
        notification = create_raw_uc(
            db,
            user_id=payload.user_id,
            notification_type=payload.notification_type,
            title=payload.title,
            message=payload.message,
            channels=payload.channels,
            data=payload.data,
            reference_type=payload.reference_type,
            reference_id=payload.reference_id,
            priority=payload.priority,
            expires_at=payload.expires_at,
            idempotency_key=payload.idempotency_key,
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _notification_to_read_model(notification)


@router.get("/{notification_id}", response_model=NotificationRead)
def get_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationRead:
    try:
        notification = get_notification_uc(db, user_id=user_id, notification_id=notification_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _notification_to_read_model(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> Response:
    try:
        delete_notification_uc(db, user_id=user_id, notification_id=notification_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
