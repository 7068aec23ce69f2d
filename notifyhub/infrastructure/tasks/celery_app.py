"""Celery application running the recurring notification jobs."""

from __future__ import annotations

from datetime import timedelta

from celery import Celery
from celery.schedules import crontab

from notifyhub.config import Settings, get_settings


def make_celery(settings: Settings | None = None) -> Celery:
    settings = settings or get_settings()
    broker = settings.celery_broker_url
    backend = settings.celery_result_backend or broker
    app = Celery(
        "notifyhub",
        broker=broker,
        backend=backend,
        include=["notifyhub.infrastructure.tasks.jobs"],
    )
    app.conf.update(
        task_track_started=True,
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone=settings.app_timezone,
        worker_hijack_root_logger=False,
        beat_schedule={
            "deliver-pending-notifications": {
                "task": "notifyhub.deliver_pending_notifications",
                "schedule": timedelta(seconds=settings.unsent_sweep_seconds),
            },
            "retry-failed-deliveries": {
                "task": "notifyhub.retry_failed_deliveries",
                "schedule": timedelta(seconds=settings.retry_sweep_seconds),
            },
            "advance-campaigns": {
                "task": "notifyhub.advance_campaigns",
                "schedule": timedelta(seconds=settings.campaign_sweep_seconds),
            },
            "cleanup-expired-notifications": {
                "task": "notifyhub.cleanup_expired_notifications",
                "schedule": crontab(minute=0),
            },
            "cleanup-read-notifications": {
                "task": "notifyhub.cleanup_read_notifications",
                "schedule": crontab(minute=30, hour=3),
            },
        },
    )
    return app


celery_app = make_celery()
