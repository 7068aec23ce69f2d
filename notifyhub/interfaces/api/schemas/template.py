"""Schemas for notification template endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TemplateContent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email_subject: str | None = None
    email_body_html: str | None = None
    email_body_text: str | None = None
    sms_body: str | None = None
    push_title: str | None = None
    push_body: str | None = None
    in_app_title: str | None = None
    in_app_body: str | None = None
    in_app_action_url: str | None = None


class TemplateCreate(TemplateContent):
    """Payload required to create a template."""

    code: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    notification_type: str
    category: str = "transactional"
    description: str | None = None
    required_variables: list[str] = Field(default_factory=list)
    language: str = Field(default="en", max_length=10)
    default_channels: list[str] = Field(..., min_length=1)
    default_priority: int = 2
    expires_after_hours: int | None = Field(default=None, gt=0)
    is_active: bool = True


class TemplateUpdate(TemplateContent):
    name: str | None = Field(default=None, max_length=255)
    notification_type: str | None = None
    category: str | None = None
    description: str | None = None
    required_variables: list[str] | None = None
    language: str | None = Field(default=None, max_length=10)
    default_channels: list[str] | None = None
    default_priority: int | None = None
    expires_after_hours: int | None = Field(default=None, gt=0)
    is_active: bool | None = None


class TemplateRead(TemplateContent):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    notification_type: str
    category: str
    description: str | None = None
    required_variables: list[str]
    language: str
    default_channels: list[str]
    default_priority: int
    expires_after_hours: int | None = None
    version: int
    is_active: bool
    created_by: int | None = None
    updated_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RenderPreviewRequest(BaseModel):
    channel: str
    data: dict[str, object] = Field(default_factory=dict)


class RenderPreviewResponse(BaseModel):
    channel: str
    title: str
    body: str


__all__ = [
    "RenderPreviewRequest",
    "RenderPreviewResponse",
    "TemplateContent",
    "TemplateCreate",
    "TemplateRead",
    "TemplateUpdate",
]
