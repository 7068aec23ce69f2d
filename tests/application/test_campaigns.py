"""Tests for campaign administration, transitions and batch fan-out."""

from __future__ import annotations

from datetime import timedelta

import pytest

from notifyhub.application.use_cases.campaigns import (
    advance_running_campaigns,
    cancel_campaign,
    create_campaign,
    delete_campaign,
    get_campaign,
    list_campaigns,
    pause_campaign,
    resume_campaign,
    run_campaign,
    run_campaign_batch,
    start_campaign,
    update_campaign,
)
from notifyhub.application.use_cases.delivery import (
    list_delivery_attempts,
    process_unsent_notifications,
    record_delivery_event,
)
from notifyhub.application.use_cases.notifications import list_notifications
from notifyhub.application.use_cases.preferences import update_preferences
from notifyhub.domain.errors import (
    CampaignNotFoundError,
    ConflictError,
    InvalidTargetTypeError,
    MissingVariablesError,
    ValidationError,
)


@pytest.fixture()
def promo(make_template):
    return make_template(
        "promo_week",
        notification_type="new_promotion",
        default_channels=["in_app"],
        required_variables=["order_no"],
    )


def _campaign(session, now, **overrides):
    options = {
        "name": "Promo week",
        "template_code": "promo_week",
        "target_type": "specific_users",
        "target_user_ids": [1, 2, 3],
        "template_data": {"order_no": "PROMO"},
        "batch_size": 2,
        "batch_delay_seconds": 0,
        "now": now,
    }
    options.update(overrides)
    return create_campaign(session, **options)


def test_campaign_runs_in_batches_until_completed(session, promo, directory, now) -> None:
    """Three users in batches of two: two sending batches and one closing batch."""

    campaign = _campaign(session, now)
    start_campaign(session, campaign_id=campaign.id, now=now)
    sleeps: list[float] = []

    results = run_campaign(
        session,
        campaign_id=campaign.id,
        directory=directory,
        sleep=sleeps.append,
        now_factory=lambda: now,
    )

    assert [result.processed for result in results] == [2, 1, 0]
    assert sleeps == []
    finished = get_campaign(session, campaign_id=campaign.id)
    assert finished.status == "completed"
    assert finished.processed_count == 3
    assert finished.sent_count + finished.failed_count == 3
    assert finished.sent_count == 3
    assert finished.completed_at is not None

    inbox = list_notifications(session, user_id=3, now=now)
    assert inbox.total == 1
    assert inbox.items[0].reference_type == "campaign"
    assert inbox.items[0].reference_id == str(campaign.id)


def test_users_that_cannot_be_notified_count_as_failed(session, promo, directory, now) -> None:
    update_preferences(session, user_id=2, do_not_disturb=True)
    campaign = _campaign(session, now, batch_size=10)
    start_campaign(session, campaign_id=campaign.id, now=now)

    result = run_campaign_batch(session, campaign_id=campaign.id, directory=directory, now=now)

    assert (result.processed, result.sent, result.failed) == (3, 2, 1)
    assert result.status == "running"


def test_campaign_sleeps_between_batches(session, promo, directory, now) -> None:
    campaign = _campaign(session, now, batch_delay_seconds=3)
    start_campaign(session, campaign_id=campaign.id, now=now)
    sleeps: list[float] = []

    run_campaign(
        session,
        campaign_id=campaign.id,
        directory=directory,
        sleep=sleeps.append,
        now_factory=lambda: now,
    )

    assert sleeps == [3, 3]


def test_directory_audience_is_paged_by_processed_count(session, promo, directory, now) -> None:
    directory.audience = [1, 2, 3, 4, 5]
    campaign = _campaign(
        session,
        now,
        target_type="segment",
        target_user_ids=[],
        target_segment="vip",
    )
    start_campaign(session, campaign_id=campaign.id, now=now)

    run_campaign(
        session,
        campaign_id=campaign.id,
        directory=directory,
        sleep=lambda _: None,
        now_factory=lambda: now,
    )

    assert [call["offset"] for call in directory.list_calls] == [0, 2, 4, 5]
    assert {call["segment"] for call in directory.list_calls} == {"vip"}
    assert get_campaign(session, campaign_id=campaign.id).processed_count == 5


def test_cancel_between_batches_stops_the_fan_out(session, promo, directory, now) -> None:
    campaign = _campaign(session, now)
    start_campaign(session, campaign_id=campaign.id, now=now)
    run_campaign_batch(session, campaign_id=campaign.id, directory=directory, now=now)

    cancel_campaign(session, campaign_id=campaign.id, now=now)
    result = run_campaign_batch(session, campaign_id=campaign.id, directory=directory, now=now)

    assert result.processed == 0
    assert result.finished is True
    stored = get_campaign(session, campaign_id=campaign.id)
    assert stored.status == "cancelled"
    assert stored.processed_count == 2
    assert list_notifications(session, user_id=3, now=now).total == 0


def test_pause_and_resume(session, promo, directory, now) -> None:
    campaign = _campaign(session, now)
    start_campaign(session, campaign_id=campaign.id, now=now)

    paused = pause_campaign(session, campaign_id=campaign.id, now=now)
    skipped = run_campaign_batch(session, campaign_id=campaign.id, directory=directory, now=now)
    resumed = resume_campaign(session, campaign_id=campaign.id)

    assert paused.status == "paused" and paused.paused_at is not None
    assert skipped.processed == 0
    assert resumed.status == "running" and resumed.paused_at is None


@pytest.mark.parametrize("action", [pause_campaign, resume_campaign])
def test_draft_cannot_pause_or_resume(session, promo, now, action) -> None:
    campaign = _campaign(session, now)

    with pytest.raises(ConflictError):
        action(session, campaign_id=campaign.id)


def test_terminal_campaigns_cannot_restart(session, promo, now) -> None:
    campaign = _campaign(session, now)
    cancel_campaign(session, campaign_id=campaign.id, now=now)

    with pytest.raises(ConflictError):
        start_campaign(session, campaign_id=campaign.id, now=now)
    with pytest.raises(ConflictError):
        cancel_campaign(session, campaign_id=campaign.id, now=now)


def test_create_validates_template_and_target(session, promo, now) -> None:
    with pytest.raises(MissingVariablesError):
        _campaign(session, now, template_data={})
    with pytest.raises(InvalidTargetTypeError):
        _campaign(session, now, target_type="everyone")
    with pytest.raises(ValidationError):
        _campaign(session, now, target_user_ids=[])
    with pytest.raises(ValidationError):
        _campaign(session, now, target_type="filtered", target_filters=None)
    with pytest.raises(ValidationError):
        _campaign(session, now, batch_delay_seconds=-1)


def test_create_fills_batching_defaults(session, promo, now, override_settings) -> None:
    override_settings(campaign_batch_size=250, campaign_batch_delay_seconds=7)

    campaign = _campaign(session, now, batch_size=None, batch_delay_seconds=None)

    assert (campaign.batch_size, campaign.batch_delay_seconds) == (250, 7)


def test_future_schedule_starts_on_the_sweep(session, promo, directory, now) -> None:
    campaign = _campaign(session, now, scheduled_at=now + timedelta(hours=1))
    assert campaign.status == "scheduled"

    assert advance_running_campaigns(session, directory=directory, now=now) == []

    later = now + timedelta(hours=1)
    results = advance_running_campaigns(session, directory=directory, now=later)

    assert [result.processed for result in results] == [2]
    started = get_campaign(session, campaign_id=campaign.id)
    assert started.status == "running"
    assert started.started_at == later


def test_sweep_leases_each_batch_until_the_delay_passes(
    session, promo, directory, now
) -> None:
    campaign = _campaign(session, now, batch_delay_seconds=10)
    start_campaign(session, campaign_id=campaign.id, now=now)

    first = advance_running_campaigns(session, directory=directory, now=now)
    too_early = advance_running_campaigns(
        session, directory=directory, now=now + timedelta(seconds=5)
    )
    second = advance_running_campaigns(
        session, directory=directory, now=now + timedelta(seconds=10)
    )

    assert [result.processed for result in first] == [2]
    assert too_early == []
    assert [result.processed for result in second] == [1]
    assert get_campaign(session, campaign_id=campaign.id).next_batch_at == now + timedelta(
        seconds=20
    )


def test_delivered_event_counts_once_towards_the_campaign(
    session, promo, drivers, directory, now
) -> None:
    campaign = _campaign(session, now, target_user_ids=[1], batch_size=5)
    start_campaign(session, campaign_id=campaign.id, now=now)
    run_campaign_batch(session, campaign_id=campaign.id, directory=directory, now=now)
    process_unsent_notifications(session, drivers=drivers, directory=directory, now=now)
    notification = list_notifications(session, user_id=1, now=now).items[0]
    attempt = list_delivery_attempts(session, notification_id=notification.id)[0]

    record_delivery_event(session, attempt_id=attempt.id, event="delivered", now=now)
    record_delivery_event(session, attempt_id=attempt.id, event="delivered", now=now)

    assert get_campaign(session, campaign_id=campaign.id).delivered_count == 1


def test_update_only_while_editable(session, promo, now) -> None:
    campaign = _campaign(session, now)

    renamed = update_campaign(session, campaign_id=campaign.id, name="Spring promo", now=now)
    rescheduled = update_campaign(
        session, campaign_id=campaign.id, scheduled_at=now + timedelta(days=1), now=now
    )
    start_campaign(session, campaign_id=campaign.id, now=now)

    assert renamed.name == "Spring promo"
    assert rescheduled.status == "scheduled"
    with pytest.raises(ConflictError):
        update_campaign(session, campaign_id=campaign.id, name="Too late", now=now)


def test_list_and_delete(session, promo, now) -> None:
    draft = _campaign(session, now)
    running = _campaign(session, now, name="Running")
    start_campaign(session, campaign_id=running.id, now=now)

    items, total = list_campaigns(session, status="draft", page=1, page_size=10)
    assert total == 1 and items[0].id == draft.id

    with pytest.raises(ConflictError):
        delete_campaign(session, campaign_id=running.id)
    delete_campaign(session, campaign_id=draft.id)
    with pytest.raises(CampaignNotFoundError):
        get_campaign(session, campaign_id=draft.id)


def test_sweep_skips_a_campaign_whose_audience_is_unavailable(
    session, promo, directory, now
) -> None:
    segment = _campaign(
        session,
        now,
        name="Segment",
        target_type="segment",
        target_user_ids=[],
        target_segment="vip",
    )
    listed = _campaign(session, now, name="Listed")
    for campaign in (segment, listed):
        start_campaign(session, campaign_id=campaign.id, now=now)
    directory.audience = [1, 2]
    directory.unavailable = True

    results = advance_running_campaigns(session, directory=directory, now=now)

    assert [result.campaign_id for result in results] == [listed.id]
    stalled = get_campaign(session, campaign_id=segment.id)
    assert stalled.status == "running"
    assert stalled.processed_count == 0

    directory.unavailable = False
    retried = advance_running_campaigns(
        session, directory=directory, now=now + timedelta(seconds=120)
    )

    assert segment.id in [result.campaign_id for result in retried]
    assert get_campaign(session, campaign_id=segment.id).processed_count == 2
