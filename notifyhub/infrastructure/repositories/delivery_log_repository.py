"""Persistence helpers for the delivery log."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notifyhub.domain.entities import (
    FINAL_STATUSES,
    STATUS_BOUNCED,
    STATUS_CLICKED,
    STATUS_DELIVERED,
    STATUS_FAILED,
    STATUS_OPENED,
    STATUS_PROCESSING,
    STATUS_QUEUED,
    STATUS_SENT,
    SUCCESS_STATUSES,
    DeliveryAttempt,
)
from notifyhub.domain.errors import ConflictError, DuplicateError, NotFoundError
from notifyhub.infrastructure.models import DeliveryLogModel
from notifyhub.utils import ensure_app_naive_datetime, ensure_app_timezone


def compute_retry_after(
    attempt_number: int, max_retries: int, failed_at: datetime, base_delay_minutes: int
) -> datetime | None:
    """Return when attempt ``attempt_number`` may be retried, or ``None`` at the cap."""

    if attempt_number >= max_retries:
        return None
    return failed_at + timedelta(minutes=base_delay_minutes * 2 ** (attempt_number - 1))


class DeliveryLogRepository:
    """Append and transition :class:`DeliveryAttempt` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def append(self, attempt: DeliveryAttempt) -> DeliveryAttempt:
        model = DeliveryLogModel()
        self._apply_entity_to_model(model, attempt)
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            msg = (
                f"Attempt {attempt.attempt_number} for notification "
                f"{attempt.notification_id} on {attempt.channel} already exists"
            )
            raise DuplicateError(msg) from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, attempt: DeliveryAttempt) -> DeliveryAttempt:
        if attempt.id is None:
            raise ValueError("Delivery attempt id is required for updates")
        model = self._get_model(attempt.id)
        self._apply_entity_to_model(model, attempt)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def get(self, attempt_id: int) -> DeliveryAttempt | None:
        model = self.session.get(DeliveryLogModel, attempt_id)
        return self._to_entity(model) if model else None

    def latest_for_channel(self, notification_id: int, channel: str) -> DeliveryAttempt | None:
        model = (
            self.session.query(DeliveryLogModel)
            .filter(
                DeliveryLogModel.notification_id == notification_id,
                DeliveryLogModel.channel == channel,
            )
            .order_by(DeliveryLogModel.attempt_number.desc())
            .first()
        )
        return self._to_entity(model) if model else None

    def list_by_notification(self, notification_id: int) -> Sequence[DeliveryAttempt]:
        models = (
            self.session.query(DeliveryLogModel)
            .filter(DeliveryLogModel.notification_id == notification_id)
            .order_by(DeliveryLogModel.channel.asc(), DeliveryLogModel.attempt_number.asc())
            .all()
        )
        return [self._to_entity(model) for model in models]

    def mark_processing(self, attempt_id: int, *, now: datetime) -> DeliveryAttempt:
        return self._transition(
            attempt_id,
            from_statuses=(STATUS_QUEUED,),
            values={
                DeliveryLogModel.status: STATUS_PROCESSING,
                DeliveryLogModel.processing_at: ensure_app_naive_datetime(now),
            },
        )

    def mark_sent(
        self,
        attempt_id: int,
        *,
        provider: str,
        provider_message_id: str,
        provider_response: Mapping[str, Any] | None = None,
        now: datetime,
    ) -> DeliveryAttempt:
        return self._transition(
            attempt_id,
            from_statuses=(STATUS_QUEUED, STATUS_PROCESSING),
            values={
                DeliveryLogModel.status: STATUS_SENT,
                DeliveryLogModel.provider: provider,
                DeliveryLogModel.provider_message_id: provider_message_id,
                DeliveryLogModel.provider_response: dict(provider_response or {}),
                DeliveryLogModel.sent_at: ensure_app_naive_datetime(now),
                DeliveryLogModel.retry_after: None,
            },
        )

    def mark_failed_with_backoff(
        self,
        attempt_id: int,
        *,
        error_code: str,
        error_message: str,
        now: datetime,
        base_delay_minutes: int,
        retryable: bool = True,
        provider: str | None = None,
        provider_response: Mapping[str, Any] | None = None,
        from_statuses: Sequence[str] = (STATUS_QUEUED, STATUS_PROCESSING),
    ) -> DeliveryAttempt:
        """Fail the attempt and schedule the next try with exponential backoff.

        ``retry_after`` is ``now + base * 2^(attempt - 1)`` while the attempt is
        under its ``max_retries`` cap and the failure is retryable, else ``None``.
        """

        model = self._get_model(attempt_id)
        retry_after = None
        if retryable:
            retry_after = compute_retry_after(
                model.attempt_number, model.max_retries, now, base_delay_minutes
            )
        values: dict[Any, Any] = {
            DeliveryLogModel.status: STATUS_FAILED,
            DeliveryLogModel.error_code: error_code,
            DeliveryLogModel.error_message: error_message,
            DeliveryLogModel.failed_at: ensure_app_naive_datetime(now),
            DeliveryLogModel.retry_after: ensure_app_naive_datetime(retry_after),
        }
        if provider is not None:
            values[DeliveryLogModel.provider] = provider
        if provider_response is not None:
            values[DeliveryLogModel.provider_response] = dict(provider_response)
        return self._transition(attempt_id, from_statuses=from_statuses, values=values)

    def mark_delivered(self, attempt_id: int, *, now: datetime) -> DeliveryAttempt:
        return self._provider_event(
            attempt_id,
            STATUS_DELIVERED,
            {
                DeliveryLogModel.status: STATUS_DELIVERED,
                DeliveryLogModel.delivered_at: ensure_app_naive_datetime(now),
            },
        )

    def mark_bounced(
        self, attempt_id: int, *, error_message: str | None, now: datetime
    ) -> DeliveryAttempt:
        return self._provider_event(
            attempt_id,
            STATUS_BOUNCED,
            {
                DeliveryLogModel.status: STATUS_BOUNCED,
                DeliveryLogModel.error_code: "BOUNCED",
                DeliveryLogModel.error_message: error_message,
                DeliveryLogModel.failed_at: ensure_app_naive_datetime(now),
            },
        )

    def record_engagement(self, attempt_id: int, event: str, *, now: datetime) -> DeliveryAttempt:
        """Record an ``opened`` or ``clicked`` callback.

        Final statuses keep their value; only the timestamp is recorded.
        """

        if event not in (STATUS_OPENED, STATUS_CLICKED):
            raise ValueError(f"Unsupported engagement event '{event}'")
        model = self._get_model(attempt_id)
        if model.status not in SUCCESS_STATUSES:
            raise ConflictError(
                f"Delivery attempt {attempt_id} cannot record '{event}' from '{model.status}'"
            )
        timestamp_column = (
            DeliveryLogModel.opened_at if event == STATUS_OPENED else DeliveryLogModel.clicked_at
        )
        values: dict[Any, Any] = {timestamp_column: ensure_app_naive_datetime(now)}
        if model.status not in FINAL_STATUSES:
            values[DeliveryLogModel.status] = event
        self.session.query(DeliveryLogModel).filter(DeliveryLogModel.id == attempt_id).update(
            values, synchronize_session=False
        )
        self.session.commit()
        return self._reload(attempt_id)

    def claim_retry(self, attempt_id: int) -> bool:
        """Consume the retry slot of a failed attempt.

        Only one concurrent caller wins; the others see ``False``.
        """

        updated = (
            self.session.query(DeliveryLogModel)
            .filter(
                DeliveryLogModel.id == attempt_id,
                DeliveryLogModel.status == STATUS_FAILED,
                DeliveryLogModel.retry_after.is_not(None),
            )
            .update({DeliveryLogModel.retry_after: None}, synchronize_session=False)
        )
        self.session.commit()
        return updated == 1

    def release_retry_claim(self, attempt: DeliveryAttempt) -> bool:
        """Restore the ``retry_after`` consumed by :meth:`claim_retry`.

        Applies only while ``attempt`` is still the latest try on its channel.
        """

        latest = self.latest_for_channel(attempt.notification_id, attempt.channel)
        if latest is None or latest.id != attempt.id or attempt.retry_after is None:
            return False
        updated = (
            self.session.query(DeliveryLogModel)
            .filter(
                DeliveryLogModel.id == attempt.id,
                DeliveryLogModel.status == STATUS_FAILED,
                DeliveryLogModel.retry_after.is_(None),
            )
            .update(
                {DeliveryLogModel.retry_after: ensure_app_naive_datetime(attempt.retry_after)},
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated == 1

    def list_retry_eligible(self, limit: int, *, now: datetime) -> Sequence[DeliveryAttempt]:
        models = (
            self.session.query(DeliveryLogModel)
            .filter(
                DeliveryLogModel.status == STATUS_FAILED,
                DeliveryLogModel.retry_after.is_not(None),
                DeliveryLogModel.retry_after <= ensure_app_naive_datetime(now),
                DeliveryLogModel.attempt_number < DeliveryLogModel.max_retries,
            )
            .order_by(DeliveryLogModel.retry_after.asc(), DeliveryLogModel.id.asc())
            .limit(limit)
            .all()
        )
        return [self._to_entity(model) for model in models]

    def list_stale_processing(
        self, before: datetime, *, limit: int | None = None
    ) -> Sequence[DeliveryAttempt]:
        """Return attempts left in ``queued`` or ``processing`` since before ``before``."""

        naive_before = ensure_app_naive_datetime(before)
        query = (
            self.session.query(DeliveryLogModel)
            .filter(
                or_(
                    and_(
                        DeliveryLogModel.status == STATUS_QUEUED,
                        DeliveryLogModel.queued_at < naive_before,
                    ),
                    and_(
                        DeliveryLogModel.status == STATUS_PROCESSING,
                        DeliveryLogModel.processing_at < naive_before,
                    ),
                )
            )
            .order_by(DeliveryLogModel.id.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def fail_stale_processing(
        self, before: datetime, *, now: datetime, base_delay_minutes: int
    ) -> Sequence[DeliveryAttempt]:
        """Convert attempts stuck in ``queued`` or ``processing`` into failures."""

        failed: list[DeliveryAttempt] = []
        for attempt in self.list_stale_processing(before):
            try:
                failed.append(
                    self.mark_failed_with_backoff(
                        attempt.id,
                        error_code="STALE_PROCESSING",
                        error_message="Delivery did not complete before the staleness threshold",
                        now=now,
                        base_delay_minutes=base_delay_minutes,
                        from_statuses=(STATUS_QUEUED, STATUS_PROCESSING),
                    )
                )
            except ConflictError:
                continue
        return failed

    def delivery_rate(
        self, start: datetime, end: datetime, channel: str | None = None
    ) -> float:
        """Return the percentage of attempts created in ``[start, end]`` that succeeded."""

        query = self.session.query(DeliveryLogModel).filter(
            DeliveryLogModel.created_at >= ensure_app_naive_datetime(start),
            DeliveryLogModel.created_at <= ensure_app_naive_datetime(end),
        )
        if channel is not None:
            query = query.filter(DeliveryLogModel.channel == channel)
        total = query.count()
        if total == 0:
            return 0.0
        succeeded = query.filter(DeliveryLogModel.status.in_(tuple(SUCCESS_STATUSES))).count()
        return succeeded * 100.0 / total

    def _provider_event(
        self, attempt_id: int, status: str, values: dict[Any, Any]
    ) -> DeliveryAttempt:
        model = self._get_model(attempt_id)
        if model.status in FINAL_STATUSES:
            if model.status == status:
                return self._to_entity(model)
            raise ConflictError(
                f"Delivery attempt {attempt_id} is already {model.status}"
            )
        return self._transition(
            attempt_id,
            from_statuses=(STATUS_PROCESSING, STATUS_SENT, STATUS_OPENED, STATUS_CLICKED),
            values=values,
        )

    def _transition(
        self,
        attempt_id: int,
        *,
        from_statuses: Sequence[str],
        values: dict[Any, Any],
    ) -> DeliveryAttempt:
        updated = (
            self.session.query(DeliveryLogModel)
            .filter(
                DeliveryLogModel.id == attempt_id,
                DeliveryLogModel.status.in_(tuple(from_statuses)),
            )
            .update(values, synchronize_session=False)
        )
        self.session.commit()
        if updated != 1:
            current = self.get(attempt_id)
            if current is None:
                raise NotFoundError(f"Delivery attempt with id {attempt_id} not found")
            raise ConflictError(
                f"Delivery attempt {attempt_id} cannot move from '{current.status}'"
            )
        return self._reload(attempt_id)

    def _reload(self, attempt_id: int) -> DeliveryAttempt:
        model = self._get_model(attempt_id)
        self.session.refresh(model)
        return self._to_entity(model)

    def _get_model(self, attempt_id: int) -> DeliveryLogModel:
        model = self.session.get(DeliveryLogModel, attempt_id)
        if model is None:
            raise NotFoundError(f"Delivery attempt with id {attempt_id} not found")
        return model

    @staticmethod
    def _apply_entity_to_model(model: DeliveryLogModel, attempt: DeliveryAttempt) -> None:
        model.notification_id = attempt.notification_id
        model.channel = attempt.channel
        model.attempt_number = attempt.attempt_number
        model.status = attempt.status
        model.recipient = attempt.recipient or ""
        model.provider = attempt.provider
        model.provider_message_id = attempt.provider_message_id
        model.provider_response = dict(attempt.provider_response or {})
        model.error_code = attempt.error_code
        model.error_message = attempt.error_message
        model.max_retries = attempt.max_retries
        model.retry_after = ensure_app_naive_datetime(attempt.retry_after)
        model.queued_at = ensure_app_naive_datetime(attempt.queued_at)
        model.processing_at = ensure_app_naive_datetime(attempt.processing_at)
        model.sent_at = ensure_app_naive_datetime(attempt.sent_at)
        model.delivered_at = ensure_app_naive_datetime(attempt.delivered_at)
        model.opened_at = ensure_app_naive_datetime(attempt.opened_at)
        model.clicked_at = ensure_app_naive_datetime(attempt.clicked_at)
        model.failed_at = ensure_app_naive_datetime(attempt.failed_at)
        if attempt.created_at is not None:
            model.created_at = ensure_app_naive_datetime(attempt.created_at)

    @staticmethod
    def _to_entity(model: DeliveryLogModel) -> DeliveryAttempt:
        return DeliveryAttempt(
            id=model.id,
            notification_id=model.notification_id,
            channel=model.channel,
            attempt_number=model.attempt_number,
            status=model.status,
            recipient=model.recipient or "",
            provider=model.provider,
            provider_message_id=model.provider_message_id,
            provider_response=dict(model.provider_response or {}),
            error_code=model.error_code,
            error_message=model.error_message,
            max_retries=model.max_retries,
            retry_after=ensure_app_timezone(model.retry_after),
            queued_at=ensure_app_timezone(model.queued_at),
            processing_at=ensure_app_timezone(model.processing_at),
            sent_at=ensure_app_timezone(model.sent_at),
            delivered_at=ensure_app_timezone(model.delivered_at),
            opened_at=ensure_app_timezone(model.opened_at),
            clicked_at=ensure_app_timezone(model.clicked_at),
            failed_at=ensure_app_timezone(model.failed_at),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["DeliveryLogRepository", "compute_retry_after"]
