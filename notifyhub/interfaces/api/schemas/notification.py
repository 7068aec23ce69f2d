"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    """Representation of a notification returned to its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    notification_type: str
    title: str
    message: str
    channels: list[str]
    payload: dict[str, Any] = Field(default_factory=dict)
    delivery_status: dict[str, str] = Field(default_factory=dict)
    reference_type: str | None = None
    reference_id: str | None = None
    priority: int
    template_code: str | None = None
    is_read: bool
    read_at: datetime | None = None
    is_sent: bool
    sent_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None


class NotificationPageRead(BaseModel):
    items: list[NotificationRead]
    total: int
    page: int
    page_size: int
    total_pages: int
    unread_count: int


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[int] = Field(..., min_length=1)


class MarkReadResponse(BaseModel):
    updated: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class SendTemplateRequest(BaseModel):
    """Ask the dispatcher to render a template for one user."""

    user_id: int
    template_code: str = Field(..., min_length=1, max_length=100)
    data: dict[str, Any] = Field(default_factory=dict)
    channels: list[str] | None = None
    reference_type: str | None = Field(default=None, max_length=50)
    reference_id: str | None = Field(default=None, max_length=100)
    priority: int | None = None
    idempotency_key: str | None = Field(default=None, max_length=100)


class CreateRawRequest(BaseModel):
    """Ask the dispatcher to store a notification with literal content."""

    user_id: int
    notification_type: str
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    channels: list[str] = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)
    reference_type: str | None = Field(default=None, max_length=50)
    reference_id: str | None = Field(default=None, max_length=100)
    priority: int | None = None
    expires_at: datetime | None = None
    idempotency_key: str | None = Field(default=None, max_length=100)


__all__ = [
    "CreateRawRequest",
    "MarkReadResponse",
    "NotificationMarkReadRequest",
    "NotificationPageRead",
    "NotificationRead",
    "SendTemplateRequest",
    "UnreadCountResponse",
]
