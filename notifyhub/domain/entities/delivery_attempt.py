"""Domain entity describing one delivery try for a notification channel."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

STATUS_QUEUED = "queued"
STATUS_PROCESSING = "processing"
STATUS_SENT = "sent"
STATUS_DELIVERED = "delivered"
STATUS_FAILED = "failed"
STATUS_BOUNCED = "bounced"
STATUS_OPENED = "opened"
STATUS_CLICKED = "clicked"
DELIVERY_STATUSES = (
    STATUS_QUEUED,
    STATUS_PROCESSING,
    STATUS_SENT,
    STATUS_DELIVERED,
    STATUS_FAILED,
    STATUS_BOUNCED,
    STATUS_OPENED,
    STATUS_CLICKED,
)
FINAL_STATUSES = frozenset({STATUS_DELIVERED, STATUS_BOUNCED})
SUCCESS_STATUSES = frozenset(
    {STATUS_SENT, STATUS_DELIVERED, STATUS_OPENED, STATUS_CLICKED}
)


@dataclass
class DeliveryAttempt:
    """Row of the append-only delivery log."""

    id: int | None
    notification_id: int
    channel: str
    attempt_number: int
    status: str = STATUS_QUEUED
    recipient: str = ""
    provider: str | None = None
    provider_message_id: str | None = None
    provider_response: dict[str, Any] = field(default_factory=dict)
    error_code: str | None = None
    error_message: str | None = None
    max_retries: int = 3
    retry_after: datetime | None = None
    queued_at: datetime | None = None
    processing_at: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    opened_at: datetime | None = None
    clicked_at: datetime | None = None
    failed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in SUCCESS_STATUSES


__all__ = [
    "DELIVERY_STATUSES",
    "DeliveryAttempt",
    "FINAL_STATUSES",
    "STATUS_BOUNCED",
    "STATUS_CLICKED",
    "STATUS_DELIVERED",
    "STATUS_FAILED",
    "STATUS_OPENED",
    "STATUS_PROCESSING",
    "STATUS_QUEUED",
    "STATUS_SENT",
    "SUCCESS_STATUSES",
]
