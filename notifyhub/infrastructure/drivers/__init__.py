"""Channel driver implementations and the registry used by workers."""

from __future__ import annotations

from notifyhub.config import Settings, get_settings
from notifyhub.domain.entities import CHANNEL_EMAIL, CHANNEL_IN_APP, CHANNEL_PUSH, CHANNEL_SMS
from notifyhub.domain.ports import ChannelDriver

from .email import SendGridEmailDriver
from .in_app import InAppDriver
from .push import FcmPushDriver
from .sms import TwilioSmsDriver


def build_drivers(settings: Settings | None = None) -> dict[str, ChannelDriver]:
    """Return one configured driver per channel."""

    settings = settings or get_settings()
    timeout = settings.driver_timeout_seconds
    return {
        CHANNEL_IN_APP: InAppDriver(),
        CHANNEL_EMAIL: SendGridEmailDriver(
            settings.sendgrid_api_key,
            settings.sendgrid_sender,
            timeout_seconds=timeout,
        ),
        CHANNEL_SMS: TwilioSmsDriver(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            settings.twilio_from_number,
            base_url=settings.twilio_api_base_url,
            timeout_seconds=timeout,
        ),
        CHANNEL_PUSH: FcmPushDriver(
            settings.fcm_server_key,
            endpoint=settings.fcm_endpoint,
            timeout_seconds=timeout,
        ),
    }


__all__ = [
    "FcmPushDriver",
    "InAppDriver",
    "SendGridEmailDriver",
    "TwilioSmsDriver",
    "build_drivers",
]
