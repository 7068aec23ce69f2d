"""Email channel driver backed by the SendGrid REST API."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from notifyhub.domain.entities import CHANNEL_EMAIL
from notifyhub.domain.ports import ChannelDriver, DriverError, DriverResult
from notifyhub.utils.deadline import Deadline, call_timeout

logger = logging.getLogger(__name__)

PROVIDER = "sendgrid"


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                field = item.get("field")
                if message and field:
                    messages.append(f"{field}: {message}")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _is_transient_status(status_code: int | None) -> bool:
    return status_code is None or status_code == 429 or status_code >= 500


class SendGridEmailDriver(ChannelDriver):
    """Send rendered notifications as HTML email through SendGrid."""

    channel = CHANNEL_EMAIL
    provider = PROVIDER

    def __init__(
        self,
        api_key: str | None,
        sender: str | None,
        *,
        timeout_seconds: float = 10.0,
        client_factory: Callable[[str], Any] = SendGridAPIClient,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    def send(
        self,
        recipient: str,
        title: str,
        body: str,
        payload: Mapping[str, Any] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> DriverResult:
        if not (self._api_key and self._sender):
            logger.info("SendGrid configuration incomplete; email delivery unavailable")
            raise DriverError(
                "SendGrid is not configured",
                error_code="PROVIDER_UNAVAILABLE",
                transient=True,
            )

        message = Mail(
            from_email=self._sender,
            to_emails=recipient,
            subject=title,
            html_content=body,
        )
        text_body = (payload or {}).get("text_body")
        if text_body:
            message.plain_text_content = text_body

        client = self._client_factory(self._api_key)
        client.client.timeout = call_timeout(deadline, self._timeout_seconds)
        try:
            response = client.send(message)
        except Exception as exc:
            raise self._error_from_exception(exc) from exc

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            details = _extract_sendgrid_error_details(getattr(response, "body", None))
            logger.error("SendGrid API responded with status %s: %s", status_code, details)
            raise DriverError(
                details or f"SendGrid responded with status {status_code}",
                error_code=f"HTTP_{status_code}",
                transient=_is_transient_status(status_code),
                provider_response={"status_code": status_code, "body": details},
            )

        headers = getattr(response, "headers", None) or {}
        message_id = headers.get("X-Message-Id") or ""
        return DriverResult(
            message_id=message_id,
            provider=PROVIDER,
            response={"status_code": status_code},
        )

    @staticmethod
    def _error_from_exception(exc: Exception) -> DriverError:
        status_code = getattr(exc, "status_code", None)
        details = _extract_sendgrid_error_details(getattr(exc, "body", None))

        if status_code and details:
            logger.error("SendGrid API request failed with status %s: %s", status_code, details)
        elif status_code:
            logger.error("SendGrid API request failed with status %s", status_code)
        elif details:
            logger.error("SendGrid API request failed: %s", details)
        else:
            logger.exception("Error sending email via SendGrid: %s", exc)

        return DriverError(
            details or str(exc) or exc.__class__.__name__,
            error_code=f"HTTP_{status_code}" if status_code else "NETWORK_ERROR",
            transient=_is_transient_status(status_code),
            provider_response={"status_code": status_code, "body": details},
        )


__all__ = ["SendGridEmailDriver"]
