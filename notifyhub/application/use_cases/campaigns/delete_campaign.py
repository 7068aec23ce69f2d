"""Use case for deleting campaigns."""

from sqlalchemy.orm import Session

from notifyhub.domain.entities import CAMPAIGN_PAUSED, CAMPAIGN_RUNNING
from notifyhub.domain.errors import ConflictError
from notifyhub.infrastructure.repositories import CampaignRepository

from .get_campaign import get_campaign


def delete_campaign(session: Session, *, campaign_id: int) -> None:
    """Delete a campaign that is not in flight; cancel it first otherwise."""

    campaign = get_campaign(session, campaign_id=campaign_id)
    if campaign.status in (CAMPAIGN_RUNNING, CAMPAIGN_PAUSED):
        raise ConflictError("Cancel the campaign before deleting it")
    CampaignRepository(session).delete(campaign_id)


__all__ = ["delete_campaign"]
