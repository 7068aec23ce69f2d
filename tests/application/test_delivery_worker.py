"""Tests for the delivery worker, the retry scheduler and provider feedback."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from notifyhub.application.use_cases.delivery import (
    fail_stale_deliveries,
    get_delivery_rate,
    list_delivery_attempts,
    process_unsent_notifications,
    record_delivery_event,
    retry_failed_deliveries,
)
from notifyhub.application.use_cases.notifications import (
    cleanup_expired_notifications,
    create_raw,
    list_notifications,
    send_with_template,
)
from notifyhub.application.use_cases.preferences import update_preferences
from notifyhub.domain.entities import DeliveryAttempt
from notifyhub.domain.errors import ConflictError, ValidationError
from notifyhub.infrastructure.models import NotificationModel
from notifyhub.infrastructure.repositories import DeliveryLogRepository, NotificationRepository


def _raw(session, now, *, user_id=1, channels=("in_app",), **kwargs):
    return create_raw(
        session,
        user_id=user_id,
        notification_type="system_alert",
        title="Heads up",
        message="Something happened",
        channels=list(channels),
        now=now,
        **kwargs,
    )


def test_worker_pass_sends_only_allowed_channels(
    session, make_template, drivers, directory, now
) -> None:
    """Template send with email disabled: one in-app attempt, notification sent."""

    make_template()
    update_preferences(
        session, user_id=1, preferences={"order_status": {"in_app": True, "email": False}}
    )
    notification = send_with_template(
        session, user_id=1, template_code="order_shipped", data={"order_no": "A-100"}, now=now
    )

    summary = process_unsent_notifications(
        session, drivers=drivers, directory=directory, now=now
    )

    attempts = list_delivery_attempts(session, notification_id=notification.id)
    assert [(a.channel, a.status, a.attempt_number) for a in attempts] == [("in_app", "sent", 1)]
    stored = NotificationRepository(session).get_by_id(notification.id)
    assert stored.is_sent is True
    assert stored.delivery_status == {"in_app": "sent"}
    assert drivers["email"].calls == []
    assert summary.sent == 1 and summary.failed == 0


def test_transient_email_failure_is_retried_after_backoff(
    session, make_template, drivers, directory, now
) -> None:
    make_template(default_channels=["email"])
    notification = send_with_template(
        session, user_id=1, template_code="order_shipped", data={"order_no": "A-1"}, now=now
    )
    drivers["email"].fail_next(transient=True)

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)

    first = list_delivery_attempts(session, notification_id=notification.id)[0]
    assert first.status == "failed"
    assert first.retry_after == now + timedelta(minutes=5)
    assert NotificationRepository(session).get_by_id(notification.id).is_sent is False

    early = retry_failed_deliveries(
        session, drivers=drivers, directory=directory, now=now + timedelta(minutes=4)
    )
    assert early.notifications == 0
    assert len(drivers["email"].calls) == 1

    retried = retry_failed_deliveries(
        session,
        drivers=drivers,
        directory=directory,
        now=now + timedelta(minutes=5, seconds=1),
    )
    assert retried.sent == 1

    attempts = list_delivery_attempts(session, notification_id=notification.id)
    assert [(a.attempt_number, a.status) for a in attempts] == [(1, "failed"), (2, "sent")]
    assert attempts[0].retry_after is None
    assert drivers["email"].calls[-1]["recipient"] == "user1@example.com"
    assert NotificationRepository(session).get_by_id(notification.id).is_sent is True


def test_backoff_doubles_until_the_retry_cap(session, drivers, directory, now) -> None:
    notification = _raw(session, now, channels=["email"])
    for _ in range(3):
        drivers["email"].fail_next(transient=True)

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)
    retry_failed_deliveries(
        session, drivers=drivers, directory=directory, now=now + timedelta(minutes=5)
    )
    second = DeliveryLogRepository(session).latest_for_channel(notification.id, "email")
    assert second.attempt_number == 2
    assert second.retry_after == now + timedelta(minutes=5) + timedelta(minutes=10)

    retry_failed_deliveries(
        session, drivers=drivers, directory=directory, now=now + timedelta(minutes=15)
    )
    third = DeliveryLogRepository(session).latest_for_channel(notification.id, "email")
    assert third.attempt_number == 3
    assert third.status == "failed"
    assert third.retry_after is None

    summary = retry_failed_deliveries(
        session, drivers=drivers, directory=directory, now=now + timedelta(days=1)
    )
    assert summary.notifications == 0
    numbers = [a.attempt_number for a in list_delivery_attempts(session, notification_id=notification.id)]
    assert numbers == [1, 2, 3]
    assert NotificationRepository(session).get_by_id(notification.id).is_sent is False


def test_permanent_failure_is_not_retried(session, drivers, directory, now) -> None:
    notification = _raw(session, now, channels=["email"])
    drivers["email"].fail_next(transient=False, error_code="HTTP_400")

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)

    attempt = list_delivery_attempts(session, notification_id=notification.id)[0]
    assert attempt.status == "failed"
    assert attempt.error_code == "HTTP_400"
    assert attempt.retry_after is None


def test_one_success_marks_the_notification_sent(session, drivers, directory, now) -> None:
    notification = _raw(session, now, channels=["in_app", "email"])
    drivers["email"].fail_next(transient=False)

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)

    stored = NotificationRepository(session).get_by_id(notification.id)
    assert stored.is_sent is True
    assert stored.delivery_status == {"in_app": "sent", "email": "failed"}


def test_missing_contact_fails_the_channel_permanently(session, drivers, directory, now) -> None:
    notification = _raw(session, now, user_id=99, channels=["sms"])

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)

    attempt = list_delivery_attempts(session, notification_id=notification.id)[0]
    assert attempt.error_code == "NO_RECIPIENT"
    assert attempt.retry_after is None
    assert drivers["sms"].calls == []


def test_directory_outage_skips_the_notification(session, drivers, directory, now) -> None:
    notification = _raw(session, now, channels=["email"])
    directory.unavailable = True

    summary = process_unsent_notifications(
        session, drivers=drivers, directory=directory, now=now
    )

    assert summary.skipped == 1
    assert list_delivery_attempts(session, notification_id=notification.id) == []
    assert NotificationRepository(session).get_by_id(notification.id).dispatched_at is None


def test_higher_priority_is_delivered_first(session, drivers, directory, now) -> None:
    low = _raw(session, now, priority=1)
    high = _raw(session, now + timedelta(seconds=1), priority=3)

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)

    delivered = [call["recipient"] for call in drivers["in_app"].calls]
    assert delivered == [str(high.id), str(low.id)]


def test_second_pass_does_not_resend(session, drivers, directory, now) -> None:
    _raw(session, now)

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)
    summary = process_unsent_notifications(
        session, drivers=drivers, directory=directory, now=now
    )

    assert summary.notifications == 0
    assert len(drivers["in_app"].calls) == 1


def test_expired_notifications_are_hidden_skipped_and_cleaned(
    session, drivers, directory, now
) -> None:
    expired = _raw(session, now - timedelta(hours=1), expires_at=now - timedelta(seconds=1))

    page = list_notifications(session, user_id=1, now=now)
    assert page.items == []

    summary = process_unsent_notifications(
        session, drivers=drivers, directory=directory, now=now
    )
    assert summary.notifications == 0

    assert cleanup_expired_notifications(session, now=now) == 1
    assert NotificationRepository(session).get_by_id(expired.id) is None


def test_stale_processing_attempt_becomes_retryable(session, now) -> None:
    notification = _raw(session, now)
    repository = DeliveryLogRepository(session)
    attempt = repository.append(
        DeliveryAttempt(
            id=None,
            notification_id=notification.id,
            channel="in_app",
            attempt_number=1,
            recipient=str(notification.id),
            created_at=now,
        )
    )
    repository.mark_processing(attempt.id, now=now)

    assert fail_stale_deliveries(session, now=now + timedelta(minutes=5)) == 0
    assert fail_stale_deliveries(session, now=now + timedelta(minutes=11)) == 1

    stale = repository.get(attempt.id)
    assert stale.status == "failed"
    assert stale.error_code == "STALE_PROCESSING"
    assert stale.retry_after == now + timedelta(minutes=16)


def test_provider_events_follow_the_attempt_state_machine(
    session, drivers, directory, now
) -> None:
    notification = _raw(session, now, channels=["email"])
    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)
    attempt = list_delivery_attempts(session, notification_id=notification.id)[0]

    opened = record_delivery_event(session, attempt_id=attempt.id, event="opened", now=now)
    assert opened.status == "opened"
    delivered = record_delivery_event(session, attempt_id=attempt.id, event="delivered", now=now)
    assert delivered.status == "delivered"
    clicked = record_delivery_event(session, attempt_id=attempt.id, event="clicked", now=now)
    assert clicked.status == "delivered"
    assert clicked.clicked_at == now

    with pytest.raises(ConflictError):
        record_delivery_event(session, attempt_id=attempt.id, event="bounced", now=now)
    with pytest.raises(ValidationError):
        record_delivery_event(session, attempt_id=attempt.id, event="exploded", now=now)


def test_delivery_rate_counts_successful_statuses(session, drivers, directory, now) -> None:
    _raw(session, now, channels=["in_app", "email"])
    drivers["email"].fail_next(transient=False)
    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)

    rate = get_delivery_rate(
        session, start=now - timedelta(minutes=1), end=now + timedelta(minutes=1)
    )
    email_rate = get_delivery_rate(
        session,
        start=now - timedelta(minutes=1),
        end=now + timedelta(minutes=1),
        channel="email",
    )

    assert rate == pytest.approx(50.0)
    assert email_rate == 0.0


def test_undecodable_notification_does_not_block_the_sweep(
    session, drivers, directory, now, caplog
) -> None:
    broken = _raw(session, now)
    healthy = _raw(session, now + timedelta(seconds=1))
    session.query(NotificationModel).filter(NotificationModel.id == broken.id).update(
        {NotificationModel.channels: "oops"}, synchronize_session=False
    )
    session.commit()

    with caplog.at_level("ERROR"):
        summary = process_unsent_notifications(
            session, drivers=drivers, directory=directory, now=now
        )

    assert summary.notifications == 1
    assert [call["recipient"] for call in drivers["in_app"].calls] == [str(healthy.id)]
    assert f"Skipping undecodable notification {broken.id}" in caplog.text


def test_retry_interrupted_before_the_next_attempt_stays_eligible(
    session, drivers, directory, now, monkeypatch
) -> None:
    notification = _raw(session, now, channels=["email"])
    drivers["email"].fail_next(transient=True)
    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)

    append = DeliveryLogRepository.append
    outages = [OperationalError("INSERT", {}, Exception("database is locked"))]

    def flaky_append(self, attempt):
        if attempt.attempt_number == 2 and outages:
            raise outages.pop()
        return append(self, attempt)

    monkeypatch.setattr(DeliveryLogRepository, "append", flaky_append)

    interrupted = retry_failed_deliveries(
        session, drivers=drivers, directory=directory, now=now + timedelta(minutes=6)
    )
    assert interrupted.skipped == 1
    first = list_delivery_attempts(session, notification_id=notification.id)[0]
    assert first.retry_after == now + timedelta(minutes=5)

    retry_failed_deliveries(
        session, drivers=drivers, directory=directory, now=now + timedelta(minutes=36)
    )

    attempts = list_delivery_attempts(session, notification_id=notification.id)
    assert [(a.attempt_number, a.status) for a in attempts] == [(1, "failed"), (2, "sent")]


def test_attempt_left_queued_is_failed_by_the_stale_sweep(
    session, drivers, directory, now
) -> None:
    notification = _raw(session, now)
    repository = DeliveryLogRepository(session)
    queued = repository.append(
        DeliveryAttempt(
            id=None,
            notification_id=notification.id,
            channel="in_app",
            attempt_number=1,
            recipient=str(notification.id),
            queued_at=now,
            created_at=now,
        )
    )

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)
    assert drivers["in_app"].calls == []

    assert fail_stale_deliveries(session, now=now + timedelta(minutes=11)) == 1
    stale = repository.get(queued.id)
    assert (stale.status, stale.error_code) == ("failed", "STALE_PROCESSING")

    retry_failed_deliveries(
        session, drivers=drivers, directory=directory, now=now + timedelta(minutes=16)
    )

    latest = repository.latest_for_channel(notification.id, "in_app")
    assert (latest.attempt_number, latest.status) == (2, "sent")


def test_email_carries_the_rendered_plain_text_body(
    session, make_template, drivers, directory, now
) -> None:
    make_template(
        default_channels=["email"],
        content={"email_body_text": "Order {{order_no}} is on its way"},
    )
    notification = send_with_template(
        session, user_id=1, template_code="order_shipped", data={"order_no": "A-7"}, now=now
    )

    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)

    assert notification.rendered["email"]["text"] == "Order A-7 is on its way"
    call = drivers["email"].calls[0]
    assert call["body"] == "<p>Your order A-7 is on its way</p>"
    assert call["payload"]["text_body"] == "Order A-7 is on its way"
