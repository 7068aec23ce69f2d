"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

CHANNEL_IN_APP = "in_app"
CHANNEL_EMAIL = "email"
CHANNEL_PUSH = "push"
CHANNEL_SMS = "sms"
CHANNELS = (CHANNEL_IN_APP, CHANNEL_EMAIL, CHANNEL_PUSH, CHANNEL_SMS)

TYPE_ORDER_STATUS = "order_status"
TYPE_PAYMENT = "payment"
TYPE_SYSTEM_ALERT = "system_alert"
TYPE_NEW_PROMOTION = "new_promotion"
TYPE_PROMOTION_REMOVED = "promotion_removed"
TYPE_REVIEW_RESPONSE = "review_response"
NOTIFICATION_TYPES = (
    TYPE_ORDER_STATUS,
    TYPE_PAYMENT,
    TYPE_SYSTEM_ALERT,
    TYPE_NEW_PROMOTION,
    TYPE_PROMOTION_REMOVED,
    TYPE_REVIEW_RESPONSE,
)

PRIORITY_LOW = 1
PRIORITY_MEDIUM = 2
PRIORITY_HIGH = 3
PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH)


@dataclass
class Notification:
    """Unit of work addressed to one user over one or more channels."""

    id: int | None
    user_id: int
    notification_type: str
    title: str
    message: str
    channels: list[str]
    payload: dict[str, Any] = field(default_factory=dict)
    rendered: dict[str, dict[str, str]] = field(default_factory=dict)
    delivery_status: dict[str, str] = field(default_factory=dict)
    reference_type: str | None = None
    reference_id: str | None = None
    idempotency_key: str | None = None
    priority: int = PRIORITY_MEDIUM
    expires_at: datetime | None = None
    template_code: str | None = None
    template_version: int | None = None
    template_data: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    read_at: datetime | None = None
    is_sent: bool = False
    sent_at: datetime | None = None
    dispatched_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def content_for(self, channel: str) -> tuple[str, str]:
        """Return the ``(title, body)`` rendered for ``channel`` at send time."""

        content = self.rendered.get(channel) or {}
        return (
            content.get("title", self.title),
            content.get("body", self.message),
        )


__all__ = [
    "CHANNELS",
    "CHANNEL_EMAIL",
    "CHANNEL_IN_APP",
    "CHANNEL_PUSH",
    "CHANNEL_SMS",
    "NOTIFICATION_TYPES",
    "Notification",
    "PRIORITIES",
    "PRIORITY_HIGH",
    "PRIORITY_LOW",
    "PRIORITY_MEDIUM",
    "TYPE_NEW_PROMOTION",
    "TYPE_ORDER_STATUS",
    "TYPE_PAYMENT",
    "TYPE_PROMOTION_REMOVED",
    "TYPE_REVIEW_RESPONSE",
    "TYPE_SYSTEM_ALERT",
]
