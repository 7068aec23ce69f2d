"""Tests for the Celery application and its recurring jobs."""

from __future__ import annotations

from datetime import timedelta

import pytest
from celery.schedules import crontab

from notifyhub.application.use_cases.notifications import create_raw
from notifyhub.config import Settings
from notifyhub.infrastructure.repositories import NotificationRepository
from notifyhub.infrastructure.tasks import jobs
from notifyhub.infrastructure.tasks.celery_app import make_celery


@pytest.fixture()
def wired(monkeypatch, session_factory, drivers, directory):
    """Point the jobs at the test database, fake drivers and fake directory."""

    monkeypatch.setattr(jobs, "SessionLocal", session_factory)
    monkeypatch.setattr(jobs, "build_drivers", lambda: drivers)
    monkeypatch.setattr(jobs, "_directory", lambda: directory)
    return drivers


def test_beat_schedule_uses_configured_intervals() -> None:
    app = make_celery(
        Settings(
            celery_broker_url="memory://",
            celery_result_backend="cache+memory://",
            unsent_sweep_seconds=15,
            retry_sweep_seconds=45,
            campaign_sweep_seconds=2,
        )
    )
    schedule = app.conf.beat_schedule

    assert schedule["deliver-pending-notifications"]["schedule"] == timedelta(seconds=15)
    assert schedule["retry-failed-deliveries"]["schedule"] == timedelta(seconds=45)
    assert schedule["advance-campaigns"]["schedule"] == timedelta(seconds=2)
    assert schedule["cleanup-read-notifications"]["schedule"] == crontab(minute=30, hour=3)
    assert {entry["task"] for entry in schedule.values()} == {
        "notifyhub.deliver_pending_notifications",
        "notifyhub.retry_failed_deliveries",
        "notifyhub.advance_campaigns",
        "notifyhub.cleanup_expired_notifications",
        "notifyhub.cleanup_read_notifications",
    }


def test_deliver_job_sends_pending_in_app_notifications(wired, session) -> None:
    notification = create_raw(
        session,
        user_id=1,
        notification_type="system_alert",
        title="Maintenance",
        message="Back soon",
        channels=["in_app"],
    )

    result = jobs.deliver_pending_notifications()

    assert result == {"notifications": 1, "sent": 1, "failed": 0}
    assert wired["in_app"].calls[0]["title"] == "Maintenance"
    session.expire_all()
    assert NotificationRepository(session).get_by_id(notification.id).is_sent is True


def test_jobs_skip_without_a_directory(monkeypatch, session_factory) -> None:
    monkeypatch.setattr(jobs, "SessionLocal", session_factory)
    monkeypatch.setattr(jobs, "_directory", lambda: None)

    assert jobs.deliver_pending_notifications() == {"skipped": True}
    assert jobs.retry_failed_deliveries() == {"skipped": True}
    assert jobs.advance_campaigns() == {"skipped": True}


def test_unconfigured_directory_is_reported(caplog) -> None:
    with caplog.at_level("ERROR"):
        assert jobs._directory() is None

    assert "User directory is not configured" in caplog.text


def test_retry_job_reports_stale_and_retried(wired) -> None:
    assert jobs.retry_failed_deliveries() == {"stale": 0, "sent": 0, "failed": 0}


def test_advance_job_with_no_campaigns(wired) -> None:
    assert jobs.advance_campaigns() == {"batches": 0, "processed": 0}


def test_cleanup_expired_job_deletes_past_notifications(wired, session, now) -> None:
    create_raw(
        session,
        user_id=1,
        notification_type="system_alert",
        title="Flash sale",
        message="Ends soon",
        channels=["in_app"],
        expires_at=now + timedelta(hours=1),
        now=now,
    )

    assert jobs.cleanup_expired_notifications() == 1
    assert jobs.cleanup_read_notifications() == 0
