"""Error kinds surfaced by the notification service.

Every error derives from :class:`NotificationError`, itself a ``ValueError`` so
callers that only care about invalid input can keep catching ``ValueError``. The
``code`` attribute is the stable surface code returned to API clients.
"""

from __future__ import annotations

from collections.abc import Sequence


class NotificationError(ValueError):
    """Base class for failures with a stable surface code."""

    code = "INTERNAL"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(NotificationError):
    code = "INVALID_REQUEST"


class NotFoundError(NotificationError):
    code = "NOT_FOUND"


class ExpiredError(NotificationError):
    code = "EXPIRED"


class InvalidTypeError(ValidationError):
    code = "INVALID_TYPE"


class InvalidChannelError(ValidationError):
    code = "INVALID_CHANNEL"


class RateLimitedError(NotificationError):
    code = "RATE_LIMITED"


class TemplateNotFoundError(NotFoundError):
    code = "TEMPLATE_NOT_FOUND"


class TemplateInactiveError(NotificationError):
    code = "TEMPLATE_INACTIVE"


class MissingVariablesError(ValidationError):
    code = "MISSING_VARIABLES"

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__("Missing required variables: " + ", ".join(self.missing))


class TemplateRenderError(NotificationError):
    code = "TEMPLATE_RENDER_FAILED"


class CampaignNotFoundError(NotFoundError):
    code = "CAMPAIGN_NOT_FOUND"


class InvalidTargetTypeError(ValidationError):
    code = "INVALID_TARGET_TYPE"


class DeliveryFailedError(NotificationError):
    code = "DELIVERY_FAILED"


class ProviderUnavailableError(NotificationError):
    code = "PROVIDER_UNAVAILABLE"


class NoChannelsError(NotificationError):
    code = "NO_CHANNELS"


class ConflictError(NotificationError):
    code = "CONFLICT"


class DuplicateError(ConflictError):
    code = "DUPLICATE"


class StoreError(NotificationError):
    code = "STORE_ERROR"


__all__ = [
    "ConflictError",
    "CampaignNotFoundError",
    "DeliveryFailedError",
    "DuplicateError",
    "ExpiredError",
    "InvalidChannelError",
    "InvalidTargetTypeError",
    "InvalidTypeError",
    "MissingVariablesError",
    "NoChannelsError",
    "NotFoundError",
    "NotificationError",
    "ProviderUnavailableError",
    "RateLimitedError",
    "StoreError",
    "TemplateInactiveError",
    "TemplateNotFoundError",
    "TemplateRenderError",
    "ValidationError",
]
