"""Campaign fan-out: paced batches of template sends through the dispatcher."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notifyhub.application.use_cases.notifications import send_with_template
from notifyhub.config import get_settings
from notifyhub.domain.entities import (
    CAMPAIGN_COMPLETED,
    CAMPAIGN_REFERENCE_TYPE,
    CAMPAIGN_RUNNING,
    TARGET_SPECIFIC_USERS,
    Campaign,
)
from notifyhub.domain.errors import NotificationError
from notifyhub.domain.ports import DirectoryError, UserDirectory
from notifyhub.infrastructure.repositories import CampaignRepository
from notifyhub.utils import Deadline, now_in_app_timezone

from .get_campaign import get_campaign
from .transitions import process_scheduled_campaigns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CampaignBatchResult:
    campaign_id: int
    processed: int
    sent: int
    failed: int
    status: str

    @property
    def finished(self) -> bool:
        return self.status != CAMPAIGN_RUNNING


def select_batch(
    campaign: Campaign,
    *,
    directory: UserDirectory,
    offset: int,
    deadline: Deadline | None = None,
) -> Sequence[int]:
    """Return the user ids of the batch starting at ``offset``; empty once exhausted."""

    if campaign.target_type == TARGET_SPECIFIC_USERS:
        return campaign.target_user_ids[offset : offset + campaign.batch_size]
    return directory.list_user_ids(
        target_type=campaign.target_type,
        segment=campaign.target_segment,
        filters=campaign.target_filters,
        offset=offset,
        limit=campaign.batch_size,
        deadline=deadline,
    )


def run_campaign_batch(
    session: Session,
    *,
    campaign_id: int,
    directory: UserDirectory,
    now: datetime | None = None,
    deadline: Deadline | None = None,
) -> CampaignBatchResult:
    """Send the next batch of a running campaign and record its totals.

    The batch offset is the campaign's ``processed_count``. An empty batch
    completes the campaign. A campaign that is no longer running is left
    untouched, which is how cancellation and pausing take effect between
    batches.

    Raises:
        CampaignNotFoundError: If the campaign does not exist.
        DirectoryError: If the user directory cannot produce the batch.
    """

    now = now or now_in_app_timezone()
    repository = CampaignRepository(session)
    campaign = get_campaign(session, campaign_id=campaign_id)
    if campaign.status != CAMPAIGN_RUNNING:
        return CampaignBatchResult(campaign_id, 0, 0, 0, campaign.status)

    user_ids = select_batch(
        campaign, directory=directory, offset=campaign.processed_count, deadline=deadline
    )
    if not user_ids:
        if repository.transition(
            campaign_id,
            from_statuses=(CAMPAIGN_RUNNING,),
            to_status=CAMPAIGN_COMPLETED,
            completed_at=now,
        ):
            logger.info(
                "Campaign %s completed after %s users", campaign_id, campaign.processed_count
            )
        latest = get_campaign(session, campaign_id=campaign_id)
        return CampaignBatchResult(campaign_id, 0, 0, 0, latest.status)

    sent = failed = 0
    for user_id in user_ids:
        try:
            send_with_template(
                session,
                user_id=user_id,
                template_code=campaign.template_code,
                data=campaign.template_data,
                channels=campaign.channels or None,
                reference_type=CAMPAIGN_REFERENCE_TYPE,
                reference_id=campaign.id,
                now=now,
            )
        except NotificationError as exc:
            failed += 1
            logger.info("Campaign %s skipped user %s: %s", campaign_id, user_id, exc.code)
        except SQLAlchemyError:
            session.rollback()
            failed += 1
            logger.exception("Campaign %s failed to dispatch to user %s", campaign_id, user_id)
        else:
            sent += 1

    repository.increment_progress(
        campaign_id, processed=len(user_ids), sent=sent, failed=failed
    )
    logger.info(
        "Campaign %s batch at offset %s: %s sent, %s failed",
        campaign_id,
        campaign.processed_count,
        sent,
        failed,
    )
    latest = get_campaign(session, campaign_id=campaign_id)
    return CampaignBatchResult(campaign_id, len(user_ids), sent, failed, latest.status)


def run_campaign(
    session: Session,
    *,
    campaign_id: int,
    directory: UserDirectory,
    sleep: Callable[[float], None] = time.sleep,
    now_factory: Callable[[], datetime] = now_in_app_timezone,
) -> list[CampaignBatchResult]:
    """Run a started campaign to the end, pausing ``batch_delay_seconds`` between batches."""

    results: list[CampaignBatchResult] = []
    while True:
        result = run_campaign_batch(
            session, campaign_id=campaign_id, directory=directory, now=now_factory()
        )
        results.append(result)
        if result.finished:
            return results
        delay = get_campaign(session, campaign_id=campaign_id).batch_delay_seconds
        if delay:
            sleep(delay)


def advance_running_campaigns(
    session: Session,
    *,
    directory: UserDirectory,
    now: datetime | None = None,
    deadline: Deadline | None = None,
) -> list[CampaignBatchResult]:
    """Start due scheduled campaigns, then run one due batch per running campaign.

    A worker leases a campaign by pushing ``next_batch_at`` past the sweep
    timeout; once the batch is done the next batch is due after the
    campaign's batch delay. A campaign whose batch fails on the directory or
    the store is logged and skipped; its lease expires and a later sweep
    retries it.
    """

    settings = get_settings()
    now = now or now_in_app_timezone()
    process_scheduled_campaigns(session, now=now)

    repository = CampaignRepository(session)
    lease = timedelta(seconds=settings.sweep_timeout_seconds)
    results: list[CampaignBatchResult] = []
    for campaign in repository.list_running():
        if deadline is not None and deadline.expired:
            logger.warning("Campaign sweep deadline reached; remaining campaigns deferred")
            break
        if not repository.claim_batch(campaign.id, now=now, next_batch_at=now + lease):
            continue
        try:
            result = run_campaign_batch(
                session,
                campaign_id=campaign.id,
                directory=directory,
                now=now,
                deadline=deadline,
            )
            if not result.finished:
                repository.schedule_next_batch(
                    campaign.id,
                    now + timedelta(seconds=campaign.batch_delay_seconds),
                )
        except (DirectoryError, SQLAlchemyError):
            session.rollback()
            logger.exception("Skipping campaign %s after a batch error", campaign.id)
            continue
        results.append(result)
    return results


__all__ = [
    "CampaignBatchResult",
    "advance_running_campaigns",
    "run_campaign",
    "run_campaign_batch",
    "select_batch",
]
