"""ORM models used by the application infrastructure."""

from .campaign import CampaignModel
from .delivery_log import DeliveryLogModel
from .notification import NotificationModel
from .preferences import NotificationPreferencesModel
from .rate_limit import RateLimitModel
from .template import NotificationTemplateModel

__all__ = [
    "CampaignModel",
    "DeliveryLogModel",
    "NotificationModel",
    "NotificationPreferencesModel",
    "NotificationTemplateModel",
    "RateLimitModel",
]
