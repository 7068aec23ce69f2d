"""Campaign state machine transitions.

draft/scheduled -> running -> completed, with cancel allowed from any
non-terminal state and running <-> paused for operators.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from notifyhub.domain.entities import (
    CAMPAIGN_CANCELLED,
    CAMPAIGN_DRAFT,
    CAMPAIGN_PAUSED,
    CAMPAIGN_RUNNING,
    CAMPAIGN_SCHEDULED,
    Campaign,
)
from notifyhub.domain.errors import ConflictError
from notifyhub.infrastructure.repositories import CampaignRepository
from notifyhub.utils import now_in_app_timezone

from .get_campaign import get_campaign

logger = logging.getLogger(__name__)


def _transition(
    session: Session,
    campaign_id: int,
    *,
    from_statuses: Sequence[str],
    to_status: str,
    **timestamps: datetime | None,
) -> Campaign:
    current = get_campaign(session, campaign_id=campaign_id)
    moved = CampaignRepository(session).transition(
        campaign_id, from_statuses=from_statuses, to_status=to_status, **timestamps
    )
    if not moved:
        latest = get_campaign(session, campaign_id=campaign_id)
        raise ConflictError(
            f"Campaign {campaign_id} cannot move from '{latest.status}' to '{to_status}'"
        )
    logger.info("Campaign %s moved from %s to %s", campaign_id, current.status, to_status)
    return get_campaign(session, campaign_id=campaign_id)


def start_campaign(
    session: Session, *, campaign_id: int, now: datetime | None = None
) -> Campaign:
    return _transition(
        session,
        campaign_id,
        from_statuses=(CAMPAIGN_DRAFT, CAMPAIGN_SCHEDULED),
        to_status=CAMPAIGN_RUNNING,
        started_at=now or now_in_app_timezone(),
    )


def cancel_campaign(
    session: Session, *, campaign_id: int, now: datetime | None = None
) -> Campaign:
    """Cancel the campaign; a batch already in flight finishes, later ones are skipped."""

    return _transition(
        session,
        campaign_id,
        from_statuses=(CAMPAIGN_DRAFT, CAMPAIGN_SCHEDULED, CAMPAIGN_RUNNING, CAMPAIGN_PAUSED),
        to_status=CAMPAIGN_CANCELLED,
        cancelled_at=now or now_in_app_timezone(),
    )


def pause_campaign(
    session: Session, *, campaign_id: int, now: datetime | None = None
) -> Campaign:
    return _transition(
        session,
        campaign_id,
        from_statuses=(CAMPAIGN_RUNNING,),
        to_status=CAMPAIGN_PAUSED,
        paused_at=now or now_in_app_timezone(),
    )


def resume_campaign(session: Session, *, campaign_id: int) -> Campaign:
    return _transition(
        session,
        campaign_id,
        from_statuses=(CAMPAIGN_PAUSED,),
        to_status=CAMPAIGN_RUNNING,
        paused_at=None,
    )


def process_scheduled_campaigns(
    session: Session, *, now: datetime | None = None
) -> list[Campaign]:
    """Start every scheduled campaign whose time has come."""

    now = now or now_in_app_timezone()
    repository = CampaignRepository(session)
    started: list[Campaign] = []
    for campaign in repository.list_scheduled_due(now):
        if repository.transition(
            campaign.id,
            from_statuses=(CAMPAIGN_SCHEDULED,),
            to_status=CAMPAIGN_RUNNING,
            started_at=now,
        ):
            logger.info("Scheduled campaign %s started", campaign.id)
            started.append(get_campaign(session, campaign_id=campaign.id))
    return started


__all__ = [
    "cancel_campaign",
    "pause_campaign",
    "process_scheduled_campaigns",
    "resume_campaign",
    "start_campaign",
]
