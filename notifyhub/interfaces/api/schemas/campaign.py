"""Schemas for campaign endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CampaignCreate(BaseModel):
    """Payload required to create a campaign."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    template_code: str = Field(..., min_length=1, max_length=100)
    target_type: str
    target_segment: str | None = Field(default=None, max_length=100)
    target_user_ids: list[int] = Field(default_factory=list)
    target_filters: dict[str, Any] = Field(default_factory=dict)
    template_data: dict[str, Any] = Field(default_factory=dict)
    channels: list[str] = Field(default_factory=list)
    scheduled_at: datetime | None = None
    batch_size: int | None = Field(default=None, gt=0)
    batch_delay_seconds: int | None = Field(default=None, ge=0)


class CampaignUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    template_code: str | None = Field(default=None, max_length=100)
    target_type: str | None = None
    target_segment: str | None = Field(default=None, max_length=100)
    target_user_ids: list[int] | None = None
    target_filters: dict[str, Any] | None = None
    template_data: dict[str, Any] | None = None
    channels: list[str] | None = None
    scheduled_at: datetime | None = None
    batch_size: int | None = Field(default=None, gt=0)
    batch_delay_seconds: int | None = Field(default=None, ge=0)


class CampaignRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    template_code: str
    target_type: str
    target_segment: str | None = None
    target_user_ids: list[int]
    target_filters: dict[str, Any]
    template_data: dict[str, Any]
    channels: list[str]
    status: str
    scheduled_at: datetime | None = None
    batch_size: int
    batch_delay_seconds: int
    processed_count: int
    sent_count: int
    delivered_count: int
    failed_count: int
    started_at: datetime | None = None
    paused_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CampaignPageRead(BaseModel):
    items: list[CampaignRead]
    total: int
    page: int
    page_size: int


__all__ = ["CampaignCreate", "CampaignPageRead", "CampaignRead", "CampaignUpdate"]
