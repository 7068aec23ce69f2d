"""Use cases for reading campaigns."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifyhub.domain.entities import CAMPAIGN_STATUSES, Campaign
from notifyhub.domain.errors import CampaignNotFoundError, ValidationError
from notifyhub.infrastructure.repositories import CampaignRepository


def get_campaign(session: Session, *, campaign_id: int) -> Campaign:
    campaign = CampaignRepository(session).get(campaign_id)
    if campaign is None:
        raise CampaignNotFoundError(f"Campaign with id {campaign_id} not found")
    return campaign


def list_campaigns(
    session: Session,
    *,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[Sequence[Campaign], int]:
    """Return one page of campaigns, newest first, and the total count."""

    if status is not None and status not in CAMPAIGN_STATUSES:
        raise ValidationError(f"status must be one of {list(CAMPAIGN_STATUSES)}")
    if page < 1 or page_size < 1:
        raise ValidationError("page and page_size must be positive")
    return CampaignRepository(session).list(
        status=status, skip=(page - 1) * page_size, limit=page_size
    )


__all__ = ["get_campaign", "list_campaigns"]
