"""Delivery worker, retry scheduler and provider feedback."""

from .deliver import (
    DeliverySummary,
    deliver_channel,
    process_unsent_notifications,
    resolve_recipient,
)
from .events import DELIVERY_EVENTS, record_delivery_event
from .retry import fail_stale_deliveries, retry_failed_deliveries
from .stats import get_delivery_rate, list_delivery_attempts

__all__ = [
    "DELIVERY_EVENTS",
    "DeliverySummary",
    "deliver_channel",
    "fail_stale_deliveries",
    "get_delivery_rate",
    "list_delivery_attempts",
    "process_unsent_notifications",
    "record_delivery_event",
    "resolve_recipient",
    "retry_failed_deliveries",
]
