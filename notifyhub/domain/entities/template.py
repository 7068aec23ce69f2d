"""Domain entity representing a versioned notification template."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

from .notification import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    PRIORITY_MEDIUM,
)

CATEGORY_TRANSACTIONAL = "transactional"
CATEGORY_MARKETING = "marketing"
CATEGORY_SYSTEM = "system"
TEMPLATE_CATEGORIES = (CATEGORY_TRANSACTIONAL, CATEGORY_MARKETING, CATEGORY_SYSTEM)

TEMPLATE_CODE_PATTERN = re.compile(r"^[a-z0-9_]+$")

CONTENT_FIELDS = (
    "email_subject",
    "email_body_html",
    "email_body_text",
    "sms_body",
    "push_title",
    "push_body",
    "in_app_title",
    "in_app_body",
    "in_app_action_url",
)

# channel -> (title slot, body slot); sms has no title
CHANNEL_SLOTS: dict[str, tuple[str | None, str]] = {
    CHANNEL_EMAIL: ("email_subject", "email_body_html"),
    CHANNEL_SMS: (None, "sms_body"),
    CHANNEL_PUSH: ("push_title", "push_body"),
    CHANNEL_IN_APP: ("in_app_title", "in_app_body"),
}


@dataclass
class NotificationTemplate:
    """Content definition rendered with per-send data."""

    id: int | None
    code: str
    name: str
    notification_type: str
    category: str = CATEGORY_TRANSACTIONAL
    description: str | None = None
    email_subject: str | None = None
    email_body_html: str | None = None
    email_body_text: str | None = None
    sms_body: str | None = None
    push_title: str | None = None
    push_body: str | None = None
    in_app_title: str | None = None
    in_app_body: str | None = None
    in_app_action_url: str | None = None
    required_variables: list[str] = field(default_factory=list)
    language: str = "en"
    default_channels: list[str] = field(default_factory=list)
    default_priority: int = PRIORITY_MEDIUM
    expires_after_hours: int | None = None
    version: int = 1
    is_active: bool = True
    created_by: int | None = None
    updated_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def missing_slots(self, channel: str) -> list[str]:
        """Return the content slots ``channel`` needs that are empty."""

        title_slot, body_slot = CHANNEL_SLOTS[channel]
        slots = [slot for slot in (title_slot, body_slot) if slot is not None]
        return [slot for slot in slots if not getattr(self, slot)]


__all__ = [
    "CATEGORY_MARKETING",
    "CATEGORY_SYSTEM",
    "CATEGORY_TRANSACTIONAL",
    "CHANNEL_SLOTS",
    "CONTENT_FIELDS",
    "NotificationTemplate",
    "TEMPLATE_CATEGORIES",
    "TEMPLATE_CODE_PATTERN",
]
