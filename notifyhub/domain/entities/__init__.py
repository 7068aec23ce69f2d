"""Domain entities exposed by the application."""

from .campaign import (
    CAMPAIGN_CANCELLED,
    CAMPAIGN_COMPLETED,
    CAMPAIGN_DRAFT,
    CAMPAIGN_PAUSED,
    CAMPAIGN_REFERENCE_TYPE,
    CAMPAIGN_RUNNING,
    CAMPAIGN_SCHEDULED,
    CAMPAIGN_STATUSES,
    TARGET_ALL_USERS,
    TARGET_FILTERED,
    TARGET_SEGMENT,
    TARGET_SPECIFIC_USERS,
    TARGET_TYPES,
    TERMINAL_CAMPAIGN_STATUSES,
    Campaign,
)
from .delivery_attempt import (
    DELIVERY_STATUSES,
    FINAL_STATUSES,
    STATUS_BOUNCED,
    STATUS_CLICKED,
    STATUS_DELIVERED,
    STATUS_FAILED,
    STATUS_OPENED,
    STATUS_PROCESSING,
    STATUS_QUEUED,
    STATUS_SENT,
    SUCCESS_STATUSES,
    DeliveryAttempt,
)
from .notification import (
    CHANNELS,
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    NOTIFICATION_TYPES,
    PRIORITIES,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    TYPE_NEW_PROMOTION,
    TYPE_ORDER_STATUS,
    TYPE_PAYMENT,
    TYPE_PROMOTION_REMOVED,
    TYPE_REVIEW_RESPONSE,
    TYPE_SYSTEM_ALERT,
    Notification,
)
from .preferences import (
    PREFERENCE_CHANNELS,
    NotificationPreferences,
    default_preference_map,
)
from .rate_limit import (
    RATE_SCOPES,
    SCOPE_GLOBAL,
    SCOPE_NOTIFICATION_TYPE,
    SCOPE_USER,
    RateLimitWindow,
)
from .recipient import RecipientContact
from .template import (
    CATEGORY_MARKETING,
    CATEGORY_SYSTEM,
    CATEGORY_TRANSACTIONAL,
    CHANNEL_SLOTS,
    CONTENT_FIELDS,
    TEMPLATE_CATEGORIES,
    TEMPLATE_CODE_PATTERN,
    NotificationTemplate,
)

__all__ = [
    "CAMPAIGN_CANCELLED",
    "CAMPAIGN_COMPLETED",
    "CAMPAIGN_DRAFT",
    "CAMPAIGN_PAUSED",
    "CAMPAIGN_REFERENCE_TYPE",
    "CAMPAIGN_RUNNING",
    "CAMPAIGN_SCHEDULED",
    "CAMPAIGN_STATUSES",
    "CATEGORY_MARKETING",
    "CATEGORY_SYSTEM",
    "CATEGORY_TRANSACTIONAL",
    "CHANNELS",
    "CHANNEL_EMAIL",
    "CHANNEL_IN_APP",
    "CHANNEL_PUSH",
    "CHANNEL_SLOTS",
    "CHANNEL_SMS",
    "CONTENT_FIELDS",
    "Campaign",
    "DELIVERY_STATUSES",
    "DeliveryAttempt",
    "FINAL_STATUSES",
    "NOTIFICATION_TYPES",
    "Notification",
    "NotificationPreferences",
    "NotificationTemplate",
    "PREFERENCE_CHANNELS",
    "PRIORITIES",
    "PRIORITY_HIGH",
    "PRIORITY_LOW",
    "PRIORITY_MEDIUM",
    "RATE_SCOPES",
    "RateLimitWindow",
    "RecipientContact",
    "SCOPE_GLOBAL",
    "SCOPE_NOTIFICATION_TYPE",
    "SCOPE_USER",
    "STATUS_BOUNCED",
    "STATUS_CLICKED",
    "STATUS_DELIVERED",
    "STATUS_FAILED",
    "STATUS_OPENED",
    "STATUS_PROCESSING",
    "STATUS_QUEUED",
    "STATUS_SENT",
    "SUCCESS_STATUSES",
    "TARGET_ALL_USERS",
    "TARGET_FILTERED",
    "TARGET_SEGMENT",
    "TARGET_SPECIFIC_USERS",
    "TARGET_TYPES",
    "TEMPLATE_CATEGORIES",
    "TEMPLATE_CODE_PATTERN",
    "TERMINAL_CAMPAIGN_STATUSES",
    "TYPE_NEW_PROMOTION",
    "TYPE_ORDER_STATUS",
    "TYPE_PAYMENT",
    "TYPE_PROMOTION_REMOVED",
    "TYPE_REVIEW_RESPONSE",
    "TYPE_SYSTEM_ALERT",
    "default_preference_map",
]
