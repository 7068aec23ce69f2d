"""Tests for preference management and the send gate."""

from __future__ import annotations

from datetime import time

import pytest
from sqlalchemy.exc import OperationalError

from notifyhub.application.use_cases.preferences import (
    can_send,
    evaluate,
    filter_channels,
    get_preferences,
    update_preferences,
)
from notifyhub.domain.entities import NotificationPreferences
from notifyhub.domain.errors import InvalidChannelError, InvalidTypeError, ValidationError
from notifyhub.infrastructure.repositories import PreferenceRepository


def test_first_read_seeds_defaults(session) -> None:
    preferences = get_preferences(session, user_id=4)

    assert preferences.id is not None
    assert preferences.quiet_hours_start == time(22, 0)
    assert preferences.quiet_hours_end == time(7, 0)
    assert preferences.preferences["new_promotion"] == {
        "in_app": True,
        "email": False,
        "push": False,
    }


def test_update_replaces_map_and_parses_quiet_hours(session) -> None:
    updated = update_preferences(
        session,
        user_id=4,
        preferences={"payment": {"email": False}},
        quiet_hours_start="23:30",
        quiet_hours_end="",
    )

    assert updated.preferences == {"payment": {"email": False}}
    assert updated.quiet_hours_start == time(23, 30)
    assert updated.quiet_hours_end is None
    assert PreferenceRepository(session).get(4).preferences == {"payment": {"email": False}}


@pytest.mark.parametrize(
    ("kwargs", "error"),
    [
        ({"preferences": {"newsletter": {"email": True}}}, InvalidTypeError),
        ({"preferences": {"payment": {"sms": True}}}, InvalidChannelError),
        ({"quiet_hours_start": "25:00"}, ValidationError),
    ],
)
def test_update_rejects_invalid_values(session, kwargs, error) -> None:
    with pytest.raises(error):
        update_preferences(session, user_id=4, **kwargs)


def test_gate_order_is_dnd_then_quiet_hours_then_toggle(now) -> None:
    preferences = NotificationPreferences.defaults_for(1)
    night = now.replace(hour=23)

    assert evaluate(preferences, "order_status", "email", now).allowed is True
    assert evaluate(preferences, "order_status", "push", now).reason == "channel_disabled"
    assert evaluate(preferences, "order_status", "email", night).reason == "quiet_hours"
    assert evaluate(preferences, "order_status", "in_app", night).allowed is True
    assert evaluate(preferences, "order_status", "sms", night).allowed is True

    preferences.do_not_disturb = True
    assert evaluate(preferences, "order_status", "in_app", now).reason == "dnd"


def test_quiet_hours_window_wraps_midnight() -> None:
    preferences = NotificationPreferences(
        id=None, user_id=1, quiet_hours_start=time(22, 0), quiet_hours_end=time(7, 0)
    )

    assert preferences.in_quiet_hours(time(23, 59))
    assert preferences.in_quiet_hours(time(6, 59))
    assert not preferences.in_quiet_hours(time(7, 0))
    assert not preferences.in_quiet_hours(time(12, 0))


def test_repository_predicates_default_for_unknown_users(session) -> None:
    repository = PreferenceRepository(session)

    assert repository.channel_enabled(77, "payment", "email") is True
    assert repository.in_quiet_hours(77, time(23, 0)) is False
    assert repository.do_not_disturb(77) is False


def test_can_send_checks_stored_preferences(session, now) -> None:
    update_preferences(session, user_id=1, preferences={"payment": {"email": False}})

    assert can_send(session, user_id=1, notification_type="payment", channel="email", now=now).allowed is False
    assert can_send(session, user_id=1, notification_type="payment", channel="in_app", now=now).allowed is True


def test_store_failure_allows_every_channel(session, now, monkeypatch) -> None:
    def broken(*_args, **_kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(
        "notifyhub.application.use_cases.preferences.can_send.get_preferences", broken
    )

    allowed, denied = filter_channels(
        session,
        user_id=1,
        notification_type="payment",
        channels=["email", "push"],
        now=now,
    )
    decision = can_send(session, user_id=1, notification_type="payment", channel="push", now=now)

    assert allowed == ["email", "push"]
    assert denied == {}
    assert decision.allowed is True
    assert decision.reason == "preferences_unavailable"
