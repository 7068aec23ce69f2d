"""Domain entity representing a notification fan-out campaign."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

CAMPAIGN_DRAFT = "draft"
CAMPAIGN_SCHEDULED = "scheduled"
CAMPAIGN_RUNNING = "running"
CAMPAIGN_PAUSED = "paused"
CAMPAIGN_COMPLETED = "completed"
CAMPAIGN_CANCELLED = "cancelled"
CAMPAIGN_STATUSES = (
    CAMPAIGN_DRAFT,
    CAMPAIGN_SCHEDULED,
    CAMPAIGN_RUNNING,
    CAMPAIGN_PAUSED,
    CAMPAIGN_COMPLETED,
    CAMPAIGN_CANCELLED,
)
TERMINAL_CAMPAIGN_STATUSES = frozenset({CAMPAIGN_COMPLETED, CAMPAIGN_CANCELLED})

TARGET_ALL_USERS = "all_users"
TARGET_SEGMENT = "segment"
TARGET_SPECIFIC_USERS = "specific_users"
TARGET_FILTERED = "filtered"
TARGET_TYPES = (TARGET_ALL_USERS, TARGET_SEGMENT, TARGET_SPECIFIC_USERS, TARGET_FILTERED)

# reference_type stamped on notifications sent on behalf of a campaign
CAMPAIGN_REFERENCE_TYPE = "campaign"


@dataclass
class Campaign:
    """Orchestrated delivery of one template to many users."""

    id: int | None
    name: str
    template_code: str
    target_type: str
    description: str | None = None
    target_segment: str | None = None
    target_user_ids: list[int] = field(default_factory=list)
    target_filters: dict[str, Any] = field(default_factory=dict)
    template_data: dict[str, Any] = field(default_factory=dict)
    channels: list[str] = field(default_factory=list)
    status: str = CAMPAIGN_DRAFT
    scheduled_at: datetime | None = None
    batch_size: int = 1000
    batch_delay_seconds: int = 5
    processed_count: int = 0
    sent_count: int = 0
    delivered_count: int = 0
    failed_count: int = 0
    next_batch_at: datetime | None = None
    started_at: datetime | None = None
    paused_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = [
    "CAMPAIGN_CANCELLED",
    "CAMPAIGN_COMPLETED",
    "CAMPAIGN_DRAFT",
    "CAMPAIGN_PAUSED",
    "CAMPAIGN_REFERENCE_TYPE",
    "CAMPAIGN_RUNNING",
    "CAMPAIGN_SCHEDULED",
    "CAMPAIGN_STATUSES",
    "Campaign",
    "TARGET_ALL_USERS",
    "TARGET_FILTERED",
    "TARGET_SEGMENT",
    "TARGET_SPECIFIC_USERS",
    "TARGET_TYPES",
    "TERMINAL_CAMPAIGN_STATUSES",
]
