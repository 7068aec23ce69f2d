"""Shared fixtures: in-memory database, fake channel drivers and user directory."""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_TIMEZONE"] = "UTC"
for _name in ("SENDGRID_API_KEY", "SENDGRID_SENDER", "USER_DIRECTORY_URL"):
    os.environ.pop(_name, None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from notifyhub.application.use_cases.templates import create_template
from notifyhub.config import reset_settings_cache
from notifyhub.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    NotificationTemplate,
    RecipientContact,
)
from notifyhub.domain.ports import (
    ChannelDriver,
    DirectoryError,
    DriverError,
    DriverResult,
    UserDirectory,
)
from notifyhub.infrastructure import models  # noqa: F401  # register tables
from notifyhub.infrastructure.database import Base
from notifyhub.utils.deadline import Deadline

NOON = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class RecordingDriver(ChannelDriver):
    """Driver double that records calls and raises queued failures in order."""

    def __init__(self, channel: str, provider: str | None = None) -> None:
        self.channel = channel
        self.provider = provider or f"fake_{channel}"
        self.calls: list[dict[str, Any]] = []
        self.failures: list[DriverError] = []

    def fail_next(self, *, transient: bool = True, error_code: str = "HTTP_503") -> None:
        self.failures.append(
            DriverError("provider failure", error_code=error_code, transient=transient)
        )

    def send(
        self,
        recipient: str,
        title: str,
        body: str,
        payload: Mapping[str, Any] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> DriverResult:
        self.calls.append(
            {"recipient": recipient, "title": title, "body": body, "payload": dict(payload or {})}
        )
        if self.failures:
            raise self.failures.pop(0)
        return DriverResult(
            message_id=f"{self.channel}-{len(self.calls)}", provider=self.provider
        )


class FakeDirectory(UserDirectory):
    """In-memory user directory with a fixed audience for campaign targeting."""

    def __init__(
        self,
        contacts: Mapping[int, RecipientContact] | None = None,
        audience: Sequence[int] = (),
    ) -> None:
        self.contacts = dict(contacts or {})
        self.audience = list(audience)
        self.unavailable = False
        self.list_calls: list[dict[str, Any]] = []

    def add_user(
        self,
        user_id: int,
        *,
        email: str | None = None,
        phone: str | None = None,
        device_token: str | None = None,
    ) -> None:
        self.contacts[user_id] = RecipientContact(
            user_id=user_id, email=email, phone=phone, device_token=device_token
        )

    def lookup(
        self, user_id: int, *, deadline: Deadline | None = None
    ) -> RecipientContact | None:
        if self.unavailable:
            raise DirectoryError("directory down")
        return self.contacts.get(user_id)

    def list_user_ids(
        self,
        *,
        target_type: str,
        segment: str | None = None,
        filters: Mapping[str, Any] | None = None,
        offset: int = 0,
        limit: int = 1000,
        deadline: Deadline | None = None,
    ) -> Sequence[int]:
        if self.unavailable:
            raise DirectoryError("directory down")
        self.list_calls.append(
            {
                "target_type": target_type,
                "segment": segment,
                "filters": dict(filters or {}),
                "offset": offset,
                "limit": limit,
            }
        )
        return self.audience[offset : offset + limit]


@pytest.fixture(autouse=True)
def _settings_cache() -> Iterator[None]:
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture()
def override_settings(monkeypatch: pytest.MonkeyPatch):
    """Set environment-backed settings for one test."""

    def apply(**values: Any) -> None:
        for name, value in values.items():
            monkeypatch.setenv(name.upper(), str(value))
        reset_settings_cache()

    return apply


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def session(session_factory) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def now() -> datetime:
    """A fixed instant outside the default 22:00-07:00 quiet hours."""

    return NOON


@pytest.fixture()
def drivers() -> dict[str, RecordingDriver]:
    return {
        channel: RecordingDriver(channel)
        for channel in (CHANNEL_IN_APP, CHANNEL_EMAIL, CHANNEL_PUSH, CHANNEL_SMS)
    }


@pytest.fixture()
def directory() -> FakeDirectory:
    directory = FakeDirectory()
    for user_id in range(1, 6):
        directory.add_user(
            user_id,
            email=f"user{user_id}@example.com",
            phone=f"+1555000000{user_id}",
            device_token=f"device-{user_id}",
        )
    return directory


@pytest.fixture()
def make_template(session: Session):
    """Create an active template; keyword arguments override the defaults."""

    def factory(code: str = "order_shipped", **overrides: Any) -> NotificationTemplate:
        content = {
            "email_subject": "Order {{order_no}} shipped",
            "email_body_html": "<p>Your order {{order_no}} is on its way</p>",
            "sms_body": "Order {{order_no}} shipped",
            "push_title": "Order shipped",
            "push_body": "Order {{order_no}} is on its way",
            "in_app_title": "Order {{order_no}} shipped",
            "in_app_body": "Track order {{order_no}} in your account",
        }
        content.update(overrides.pop("content", {}))
        options: dict[str, Any] = {
            "name": code.replace("_", " ").title(),
            "notification_type": "order_status",
            "default_channels": ["in_app", "email"],
            "required_variables": ["order_no"],
        }
        options.update(overrides)
        return create_template(session, code=code, content=content, **options)

    return factory
