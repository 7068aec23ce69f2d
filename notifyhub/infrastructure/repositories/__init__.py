"""Repository implementations for infrastructure layer."""

from .campaign_repository import CampaignRepository
from .delivery_log_repository import DeliveryLogRepository, compute_retry_after
from .notification_repository import (
    SORTABLE_FIELDS,
    NotificationQuery,
    NotificationRepository,
)
from .preference_repository import PreferenceRepository
from .rate_limit_repository import RateLimitRepository
from .template_repository import TemplateRepository

__all__ = [
    "CampaignRepository",
    "DeliveryLogRepository",
    "NotificationQuery",
    "NotificationRepository",
    "PreferenceRepository",
    "RateLimitRepository",
    "SORTABLE_FIELDS",
    "TemplateRepository",
    "compute_retry_after",
]
