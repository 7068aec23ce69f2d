"""Campaign administration and fan-out use cases."""

from .create_campaign import create_campaign
from .delete_campaign import delete_campaign
from .get_campaign import get_campaign, list_campaigns
from .orchestrator import (
    CampaignBatchResult,
    advance_running_campaigns,
    run_campaign,
    run_campaign_batch,
    select_batch,
)
from .transitions import (
    cancel_campaign,
    pause_campaign,
    process_scheduled_campaigns,
    resume_campaign,
    start_campaign,
)
from .update_campaign import update_campaign

__all__ = [
    "CampaignBatchResult",
    "advance_running_campaigns",
    "cancel_campaign",
    "create_campaign",
    "delete_campaign",
    "get_campaign",
    "list_campaigns",
    "pause_campaign",
    "process_scheduled_campaigns",
    "resume_campaign",
    "run_campaign",
    "run_campaign_batch",
    "select_batch",
    "start_campaign",
    "update_campaign",
]
