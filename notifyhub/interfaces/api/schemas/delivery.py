"""Schemas for delivery feedback and statistics."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DeliveryEventRequest(BaseModel):
    """Provider callback for one delivery attempt."""

    attempt_id: int
    event: str
    error_message: str | None = Field(default=None, max_length=1000)


class DeliveryAttemptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    notification_id: int
    channel: str
    attempt_number: int
    status: str
    recipient: str
    provider: str | None = None
    provider_message_id: str | None = None
    provider_response: dict[str, Any] = Field(default_factory=dict)
    error_code: str | None = None
    error_message: str | None = None
    retry_after: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    opened_at: datetime | None = None
    clicked_at: datetime | None = None
    failed_at: datetime | None = None
    created_at: datetime | None = None


class DeliveryRateRead(BaseModel):
    start: datetime
    end: datetime
    channel: str | None = None
    delivery_rate: float


__all__ = ["DeliveryAttemptRead", "DeliveryEventRequest", "DeliveryRateRead"]
