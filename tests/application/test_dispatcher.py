"""Tests for the dispatcher entry points (template and raw sends)."""

from __future__ import annotations

from datetime import timedelta

import pytest

from notifyhub.application.use_cases.notifications import create_raw, send_with_template
from notifyhub.application.use_cases.notifications.dispatch import derive_idempotency_key
from notifyhub.application.use_cases.preferences import update_preferences
from notifyhub.domain.errors import (
    InvalidChannelError,
    InvalidTypeError,
    MissingVariablesError,
    NoChannelsError,
    TemplateInactiveError,
    TemplateNotFoundError,
)
from notifyhub.infrastructure.models import NotificationModel
from notifyhub.infrastructure.repositories import NotificationRepository, RateLimitRepository


def _count_notifications(session) -> int:
    return session.query(NotificationModel).count()


def test_send_with_template_renders_allowed_channels(session, make_template, now) -> None:
    """The stored notification keeps per-channel content rendered at send time."""

    make_template()

    notification = send_with_template(
        session, user_id=1, template_code="order_shipped", data={"order_no": "A-100"}, now=now
    )

    assert notification.id is not None
    assert notification.channels == ["in_app", "email"]
    assert notification.is_sent is False
    assert notification.title == "Order A-100 shipped"
    assert notification.rendered["email"]["title"] == "Order A-100 shipped"
    assert notification.rendered["in_app"]["body"] == "Track order A-100 in your account"
    assert notification.template_code == "order_shipped"
    assert notification.template_version == 1


def test_disabled_channel_is_dropped_before_persisting(session, make_template, now) -> None:
    """A channel switched off for the type never reaches the stored notification."""

    make_template()
    update_preferences(
        session, user_id=1, preferences={"order_status": {"in_app": True, "email": False}}
    )

    notification = send_with_template(
        session, user_id=1, template_code="order_shipped", data={"order_no": "A-100"}, now=now
    )

    assert notification.channels == ["in_app"]
    assert notification.is_sent is False


def test_same_reference_returns_the_first_notification(session, make_template, now) -> None:
    """Repeating a send for the same reference neither duplicates nor consumes quota."""

    make_template()
    kwargs = dict(
        user_id=1,
        template_code="order_shipped",
        data={"order_no": "A-100"},
        reference_type="order",
        reference_id="O1",
        now=now,
    )

    first = send_with_template(session, **kwargs)
    second = send_with_template(session, **kwargs)

    assert first.id == second.id
    assert first.idempotency_key == "order_shipped:order:O1:1"
    assert _count_notifications(session) == 1
    window = RateLimitRepository(session).get("user", "1", 60)
    assert window is not None
    assert window.current_count == 1


def test_sends_without_reference_or_nonce_are_not_deduplicated(
    session, make_template, now
) -> None:
    make_template()

    first = send_with_template(
        session, user_id=1, template_code="order_shipped", data={"order_no": "A-1"}, now=now
    )
    second = send_with_template(
        session, user_id=1, template_code="order_shipped", data={"order_no": "A-1"}, now=now
    )

    assert first.id != second.id
    assert first.idempotency_key is None


def test_caller_nonce_deduplicates_reference_less_sends(session, make_template, now) -> None:
    make_template()

    first = send_with_template(
        session,
        user_id=1,
        template_code="order_shipped",
        data={"order_no": "A-1"},
        idempotency_key="req-42",
        now=now,
    )
    second = send_with_template(
        session,
        user_id=1,
        template_code="order_shipped",
        data={"order_no": "A-1"},
        idempotency_key="req-42",
        now=now,
    )

    assert first.id == second.id
    assert first.idempotency_key == "order_shipped:1:req-42"


def test_expired_holder_gives_up_its_key(session, make_template, now) -> None:
    """Once the first notification expired, the same reference creates a new one."""

    make_template(expires_after_hours=1)
    kwargs = dict(
        user_id=1,
        template_code="order_shipped",
        data={"order_no": "A-100"},
        reference_type="order",
        reference_id="O1",
    )

    first = send_with_template(session, now=now, **kwargs)
    second = send_with_template(session, now=now + timedelta(hours=2), **kwargs)

    assert first.id != second.id
    assert NotificationRepository(session).get_by_id(first.id).idempotency_key is None
    assert second.idempotency_key == "order_shipped:order:O1:1"


def test_missing_variables_are_reported(session, make_template, now) -> None:
    make_template()

    with pytest.raises(MissingVariablesError) as excinfo:
        send_with_template(session, user_id=1, template_code="order_shipped", data={}, now=now)

    assert excinfo.value.missing == ["order_no"]
    assert excinfo.value.code == "MISSING_VARIABLES"
    assert _count_notifications(session) == 0


def test_unknown_and_inactive_templates_are_rejected(session, make_template, now) -> None:
    make_template(code="disabled_one", is_active=False)

    with pytest.raises(TemplateNotFoundError):
        send_with_template(session, user_id=1, template_code="nope", data={}, now=now)
    with pytest.raises(TemplateInactiveError):
        send_with_template(
            session, user_id=1, template_code="disabled_one", data={"order_no": "1"}, now=now
        )


def test_do_not_disturb_leaves_no_channel(session, make_template, now) -> None:
    make_template()
    update_preferences(session, user_id=1, do_not_disturb=True)

    with pytest.raises(NoChannelsError):
        send_with_template(
            session, user_id=1, template_code="order_shipped", data={"order_no": "1"}, now=now
        )
    assert _count_notifications(session) == 0


def test_quiet_hours_only_hold_back_email_and_push(session, make_template, now) -> None:
    make_template(default_channels=["in_app", "email", "push", "sms"])
    update_preferences(
        session,
        user_id=1,
        preferences={"order_status": {"in_app": True, "email": True, "push": True}},
    )
    late_evening = now.replace(hour=23)

    notification = send_with_template(
        session,
        user_id=1,
        template_code="order_shipped",
        data={"order_no": "1"},
        now=late_evening,
    )

    assert notification.channels == ["in_app", "sms"]


def test_channel_without_content_is_dropped_at_render(session, make_template, now) -> None:
    """A requested channel whose template slots are empty is skipped, not fatal."""

    make_template(content={"sms_body": None})

    notification = send_with_template(
        session,
        user_id=1,
        template_code="order_shipped",
        data={"order_no": "1"},
        channels=["in_app", "sms"],
        now=now,
    )

    assert notification.channels == ["in_app"]


def test_no_rendered_channel_releases_the_rate_slot(session, make_template, now) -> None:
    make_template(content={"sms_body": None})

    with pytest.raises(NoChannelsError):
        send_with_template(
            session,
            user_id=1,
            template_code="order_shipped",
            data={"order_no": "1"},
            channels=["sms"],
            now=now,
        )

    window = RateLimitRepository(session).get("user", "1", 60)
    assert window.current_count == 0


def test_create_raw_validates_type_and_channels(session, now) -> None:
    with pytest.raises(InvalidTypeError):
        create_raw(
            session,
            user_id=1,
            notification_type="newsletter",
            title="Hi",
            message="Body",
            channels=["in_app"],
            now=now,
        )
    with pytest.raises(InvalidChannelError):
        create_raw(
            session,
            user_id=1,
            notification_type="system_alert",
            title="Hi",
            message="Body",
            channels=["fax"],
            now=now,
        )


def test_create_raw_persists_literal_content(session, now) -> None:
    notification = create_raw(
        session,
        user_id=3,
        notification_type="system_alert",
        title="Maintenance tonight",
        message="The store will be offline at 02:00",
        channels=["in_app", "email"],
        data={"window": "02:00-03:00"},
        reference_type="maintenance",
        reference_id=7,
        priority=3,
        now=now,
    )

    assert notification.channels == ["in_app", "email"]
    assert notification.payload == {"window": "02:00-03:00"}
    assert notification.priority == 3
    assert notification.idempotency_key == "system_alert:maintenance:7:3"


def test_derive_idempotency_key_forms() -> None:
    assert derive_idempotency_key("t", 5, reference_type="order", reference_id=9) == "t:order:9:5"
    assert derive_idempotency_key("t", 5, reference_id="9") == "t:ref:9:5"
    assert derive_idempotency_key("t", 5, nonce="abc") == "t:5:abc"
    assert derive_idempotency_key("t", 5) is None
