"""Persistence helpers for notification entities."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import String, cast, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from notifyhub.domain.entities import Notification
from notifyhub.domain.errors import DuplicateError, NotFoundError, StoreError
from notifyhub.infrastructure.models import DeliveryLogModel, NotificationModel
from notifyhub.utils import ensure_app_naive_datetime, ensure_app_timezone

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "read_at", "priority")


@dataclass
class NotificationQuery:
    """Filters and ordering accepted by :meth:`NotificationRepository.list`."""

    user_id: int
    notification_type: str | None = None
    is_read: bool | None = None
    channel: str | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


class NotificationRepository:
    """Provide CRUD and state operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, notification: Notification) -> Notification:
        model = self._add(notification)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateError("Notification idempotency key already exists") from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def create_in_tx(self, notification: Notification) -> Notification:
        """Add ``notification`` to the open transaction and flush it.

        Nothing is committed; the caller owns the transaction. On a duplicate
        idempotency key the flush is rolled back and :class:`DuplicateError` raised.
        """

        model = self._add(notification)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateError("Notification idempotency key already exists") from exc
        return self._to_entity(model)

    def get_by_id(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def get_by_idempotency_key(self, key: str) -> Notification | None:
        model = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.idempotency_key == key)
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    def list(
        self,
        query: NotificationQuery,
        *,
        now: datetime,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        """Return one page of live notifications and the total match count."""

        base = self._live_for_user(query.user_id, now)
        if query.notification_type is not None:
            base = base.filter(NotificationModel.notification_type == query.notification_type)
        if query.is_read is not None:
            base = base.filter(NotificationModel.is_read.is_(query.is_read))
        if query.channel is not None:
            # channels is a JSON array; match the quoted element in its text form
            base = base.filter(
                cast(NotificationModel.channels, String).like(f'%"{query.channel}"%')
            )
        total = base.count()

        column = getattr(NotificationModel, query.sort_by)
        ordering = column.asc() if query.sort_order == "asc" else column.desc()
        models = (
            base.order_by(ordering, NotificationModel.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [self._to_entity(model) for model in models], total

    def list_unsent(self, limit: int, *, now: datetime) -> Sequence[Notification]:
        """Return notifications awaiting their first delivery pass.

        Ordered by priority (highest first) then age; expired rows are skipped.
        Rows whose stored state cannot be decoded are logged and left out so
        one corrupt notification never blocks the rest.
        """

        naive_now = ensure_app_naive_datetime(now)
        models = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.is_sent.is_(False))
            .filter(NotificationModel.dispatched_at.is_(None))
            .filter(
                or_(
                    NotificationModel.expires_at.is_(None),
                    NotificationModel.expires_at >= naive_now,
                )
            )
            .order_by(
                NotificationModel.priority.desc(),
                NotificationModel.created_at.asc(),
                NotificationModel.id.asc(),
            )
            .limit(limit)
            .all()
        )
        pending: list[Notification] = []
        for model in models:
            try:
                pending.append(self._to_entity(model))
            except StoreError:
                logger.exception("Skipping undecodable notification %s", model.id)
        return pending

    def mark_read(self, notification_ids: Iterable[int], *, user_id: int, now: datetime) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(now),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def mark_all_read(self, user_id: int, *, now: datetime) -> int:
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(now),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def mark_sent(self, notification_id: int, *, now: datetime) -> bool:
        """Flag the notification as sent; returns ``False`` if it already was."""

        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id == notification_id,
                NotificationModel.is_sent.is_(False),
            )
            .update(
                {
                    NotificationModel.is_sent: True,
                    NotificationModel.sent_at: ensure_app_naive_datetime(now),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated == 1

    def mark_dispatched(self, notification_id: int, *, now: datetime) -> None:
        self.session.query(NotificationModel).filter(
            NotificationModel.id == notification_id,
            NotificationModel.dispatched_at.is_(None),
        ).update(
            {NotificationModel.dispatched_at: ensure_app_naive_datetime(now)},
            synchronize_session=False,
        )
        self.session.commit()

    def update_channel_delivery_status(
        self, notification_id: int, channel: str, status: str
    ) -> Notification:
        model = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .with_for_update()
            .one_or_none()
        )
        if model is None:
            self.session.rollback()
            raise NotFoundError(f"Notification with id {notification_id} not found")
        statuses = dict(model.delivery_status or {})
        statuses[channel] = status
        model.delivery_status = statuses
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def release_idempotency_key(self, notification_id: int) -> None:
        self.session.query(NotificationModel).filter(
            NotificationModel.id == notification_id
        ).update({NotificationModel.idempotency_key: None}, synchronize_session=False)
        self.session.commit()

    def delete(self, notification_id: int) -> bool:
        self.session.query(DeliveryLogModel).filter(
            DeliveryLogModel.notification_id == notification_id
        ).delete(synchronize_session=False)
        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted == 1

    def delete_expired(self, before: datetime) -> int:
        condition = NotificationModel.expires_at < ensure_app_naive_datetime(before)
        return self._delete_where(condition)

    def delete_old_read(self, before: datetime) -> int:
        condition = (NotificationModel.is_read.is_(True)) & (
            NotificationModel.read_at < ensure_app_naive_datetime(before)
        )
        return self._delete_where(condition)

    def unread_count(self, user_id: int, *, now: datetime) -> int:
        return (
            self._live_for_user(user_id, now)
            .filter(NotificationModel.is_read.is_(False))
            .with_entities(func.count(NotificationModel.id))
            .scalar()
            or 0
        )

    def _live_for_user(self, user_id: int, now: datetime) -> Query:
        naive_now = ensure_app_naive_datetime(now)
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(
                or_(
                    NotificationModel.expires_at.is_(None),
                    NotificationModel.expires_at >= naive_now,
                )
            )
        )

    def _delete_where(self, condition) -> int:
        ids = self.session.query(NotificationModel.id).filter(condition).scalar_subquery()
        self.session.query(DeliveryLogModel).filter(
            DeliveryLogModel.notification_id.in_(ids)
        ).delete(synchronize_session=False)
        deleted = (
            self.session.query(NotificationModel)
            .filter(condition)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def _add(self, notification: Notification) -> NotificationModel:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        return model

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        model.user_id = notification.user_id
        model.notification_type = notification.notification_type
        model.title = notification.title
        model.message = notification.message
        model.channels = list(notification.channels)
        model.payload = dict(notification.payload or {})
        model.rendered = {
            channel: dict(content) for channel, content in (notification.rendered or {}).items()
        }
        model.delivery_status = dict(notification.delivery_status or {})
        model.reference_type = notification.reference_type
        model.reference_id = notification.reference_id
        model.idempotency_key = notification.idempotency_key
        model.priority = notification.priority
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)
        model.template_code = notification.template_code
        model.template_version = notification.template_version
        model.template_data = dict(notification.template_data or {})
        model.is_read = notification.is_read
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.is_sent = notification.is_sent
        model.sent_at = ensure_app_naive_datetime(notification.sent_at)
        model.dispatched_at = ensure_app_naive_datetime(notification.dispatched_at)
        if notification.created_at is not None:
            model.created_at = ensure_app_naive_datetime(notification.created_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        channels = model.channels
        if not isinstance(channels, list) or not channels:
            raise StoreError(f"Notification {model.id} has an invalid channel list")
        for name, value in (
            ("payload", model.payload),
            ("rendered", model.rendered),
            ("delivery_status", model.delivery_status),
            ("template_data", model.template_data),
        ):
            if value is not None and not isinstance(value, dict):
                raise StoreError(f"Notification {model.id} has an invalid {name} field")

        return Notification(
            id=model.id,
            user_id=model.user_id,
            notification_type=model.notification_type,
            title=model.title,
            message=model.message,
            channels=list(channels),
            payload=dict(model.payload or {}),
            rendered={key: dict(value) for key, value in (model.rendered or {}).items()},
            delivery_status=dict(model.delivery_status or {}),
            reference_type=model.reference_type,
            reference_id=model.reference_id,
            idempotency_key=model.idempotency_key,
            priority=model.priority,
            expires_at=ensure_app_timezone(model.expires_at),
            template_code=model.template_code,
            template_version=model.template_version,
            template_data=dict(model.template_data or {}),
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            is_sent=bool(model.is_sent),
            sent_at=ensure_app_timezone(model.sent_at),
            dispatched_at=ensure_app_timezone(model.dispatched_at),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationQuery", "NotificationRepository", "SORTABLE_FIELDS"]
