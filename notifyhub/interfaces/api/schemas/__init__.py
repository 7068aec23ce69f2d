from .campaign import CampaignCreate, CampaignPageRead, CampaignRead, CampaignUpdate
from .delivery import DeliveryAttemptRead, DeliveryEventRequest, DeliveryRateRead
from .notification import (
    CreateRawRequest,
    MarkReadResponse,
    NotificationMarkReadRequest,
    NotificationPageRead,
    NotificationRead,
    SendTemplateRequest,
    UnreadCountResponse,
)
from .preferences import PreferencesRead, PreferencesUpdate
from .template import (
    RenderPreviewRequest,
    RenderPreviewResponse,
    TemplateContent,
    TemplateCreate,
    TemplateRead,
    TemplateUpdate,
)

__all__ = [
    "CampaignCreate",
    "CampaignPageRead",
    "CampaignRead",
    "CampaignUpdate",
    "CreateRawRequest",
    "DeliveryAttemptRead",
    "DeliveryEventRequest",
    "DeliveryRateRead",
    "MarkReadResponse",
    "NotificationMarkReadRequest",
    "NotificationPageRead",
    "NotificationRead",
    "PreferencesRead",
    "PreferencesUpdate",
    "RenderPreviewRequest",
    "RenderPreviewResponse",
    "SendTemplateRequest",
    "TemplateContent",
    "TemplateCreate",
    "TemplateRead",
    "TemplateUpdate",
    "UnreadCountResponse",
]
