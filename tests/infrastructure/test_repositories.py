"""Tests for the conditional updates the repositories rely on."""

from __future__ import annotations

from datetime import timedelta

import pytest

from notifyhub.application.use_cases.notifications import create_raw
from notifyhub.domain.entities import DeliveryAttempt, Notification
from notifyhub.domain.errors import ConflictError, DuplicateError
from notifyhub.infrastructure.repositories import (
    DeliveryLogRepository,
    NotificationRepository,
)
from notifyhub.infrastructure.repositories.delivery_log_repository import compute_retry_after


@pytest.fixture()
def notification(session, now):
    return create_raw(
        session,
        user_id=1,
        notification_type="system_alert",
        title="Maintenance",
        message="Tonight at 23:00",
        channels=["in_app", "email"],
        now=now,
    )


def _attempt(notification, channel: str, number: int = 1) -> DeliveryAttempt:
    return DeliveryAttempt(
        id=None, notification_id=notification.id, channel=channel, attempt_number=number
    )


@pytest.mark.parametrize(
    ("attempt_number", "expected_minutes"),
    [(1, 5), (2, 10), (3, None)],
)
def test_compute_retry_after_doubles_until_the_cap(now, attempt_number, expected_minutes) -> None:
    retry_after = compute_retry_after(attempt_number, 3, now, 5)

    if expected_minutes is None:
        assert retry_after is None
    else:
        assert retry_after == now + timedelta(minutes=expected_minutes)


def test_attempt_numbers_are_unique_per_channel(session, notification) -> None:
    repository = DeliveryLogRepository(session)
    repository.append(_attempt(notification, "email"))
    repository.append(_attempt(notification, "in_app"))

    with pytest.raises(DuplicateError):
        repository.append(_attempt(notification, "email"))
    assert repository.latest_for_channel(notification.id, "email").attempt_number == 1


def test_status_transitions_are_conditional(session, notification, now) -> None:
    repository = DeliveryLogRepository(session)
    attempt = repository.append(_attempt(notification, "email"))

    processing = repository.mark_processing(attempt.id, now=now)
    assert processing.status == "processing"
    with pytest.raises(ConflictError):
        repository.mark_processing(attempt.id, now=now)

    failed = repository.mark_failed_with_backoff(
        attempt.id,
        error_code="HTTP_503",
        error_message="unavailable",
        now=now,
        base_delay_minutes=5,
    )
    assert failed.status == "failed"
    assert failed.retry_after == now + timedelta(minutes=5)


def test_only_one_sweeper_claims_a_retry(session, notification, now) -> None:
    repository = DeliveryLogRepository(session)
    attempt = repository.append(_attempt(notification, "email"))
    repository.mark_failed_with_backoff(
        attempt.id, error_code="TIMEOUT", error_message="slow", now=now, base_delay_minutes=5
    )

    assert repository.list_retry_eligible(10, now=now) == []
    due = repository.list_retry_eligible(10, now=now + timedelta(minutes=5))
    assert [item.id for item in due] == [attempt.id]

    assert repository.claim_retry(attempt.id) is True
    assert repository.claim_retry(attempt.id) is False
    assert repository.list_retry_eligible(10, now=now + timedelta(minutes=5)) == []


def test_permanent_failure_has_no_retry(session, notification, now) -> None:
    repository = DeliveryLogRepository(session)
    attempt = repository.append(_attempt(notification, "email"))

    failed = repository.mark_failed_with_backoff(
        attempt.id,
        error_code="InvalidRegistration",
        error_message="bad token",
        now=now,
        base_delay_minutes=5,
        retryable=False,
    )

    assert failed.retry_after is None
    assert repository.claim_retry(attempt.id) is False


def test_channel_delivery_status_is_merged(session, notification) -> None:
    repository = NotificationRepository(session)

    repository.update_channel_delivery_status(notification.id, "in_app", "sent")
    updated = repository.update_channel_delivery_status(notification.id, "email", "failed")

    assert updated.delivery_status == {"in_app": "sent", "email": "failed"}


def test_mark_sent_happens_once(session, notification, now) -> None:
    repository = NotificationRepository(session)

    assert repository.mark_sent(notification.id, now=now) is True
    assert repository.mark_sent(notification.id, now=now) is False
    assert repository.get_by_id(notification.id).sent_at == now


def _staged(key: str | None = None) -> Notification:
    return Notification(
        id=None,
        user_id=2,
        notification_type="payment",
        title="Payment received",
        message="Thanks",
        channels=["in_app"],
        idempotency_key=key,
    )


def test_create_in_tx_flushes_without_committing(session) -> None:
    repository = NotificationRepository(session)

    staged = repository.create_in_tx(_staged("payment:order:7:2"))
    assert staged.id is not None
    assert repository.get_by_idempotency_key("payment:order:7:2").id == staged.id

    session.rollback()

    assert repository.get_by_id(staged.id) is None
    assert repository.get_by_idempotency_key("payment:order:7:2") is None


def test_create_in_tx_is_kept_by_the_callers_commit(session) -> None:
    repository = NotificationRepository(session)
    staged = repository.create_in_tx(_staged("payment:order:8:2"))
    session.commit()

    with pytest.raises(DuplicateError):
        repository.create_in_tx(_staged("payment:order:8:2"))

    assert repository.get_by_id(staged.id).title == "Payment received"


def test_release_retry_claim_only_while_the_attempt_is_latest(session, notification, now) -> None:
    repository = DeliveryLogRepository(session)
    attempt = repository.append(_attempt(notification, "email"))
    failed = repository.mark_failed_with_backoff(
        attempt.id, error_code="HTTP_503", error_message="down", now=now, base_delay_minutes=5
    )

    assert repository.claim_retry(failed.id) is True
    assert repository.release_retry_claim(failed) is True
    assert repository.get(failed.id).retry_after == now + timedelta(minutes=5)

    assert repository.claim_retry(failed.id) is True
    repository.append(_attempt(notification, "email", number=2))
    assert repository.release_retry_claim(failed) is False
    assert repository.get(failed.id).retry_after is None
