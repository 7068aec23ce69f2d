"""SMS channel driver backed by the Twilio Messages API."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from notifyhub.domain.entities import CHANNEL_SMS
from notifyhub.domain.ports import ChannelDriver, DriverError, DriverResult
from notifyhub.utils.deadline import Deadline, call_timeout

from . import gateway

PROVIDER = "twilio"


class TwilioSmsDriver(ChannelDriver):
    channel = CHANNEL_SMS
    provider = PROVIDER

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        *,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client = client or httpx.Client()

    def send(
        self,
        recipient: str,
        title: str,
        body: str,
        payload: Mapping[str, Any] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> DriverResult:
        if not (self._account_sid and self._auth_token and self._from_number):
            raise DriverError(
                "Twilio is not configured",
                error_code="PROVIDER_UNAVAILABLE",
                transient=True,
            )

        data = gateway.post(
            self._client,
            f"{self._base_url}/Accounts/{self._account_sid}/Messages.json",
            provider=PROVIDER,
            timeout=call_timeout(deadline, self._timeout_seconds),
            auth=(self._account_sid, self._auth_token),
            data={"From": self._from_number, "To": recipient, "Body": body},
        )
        return DriverResult(
            message_id=str(data.get("sid") or ""),
            provider=PROVIDER,
            response={"status": data.get("status")},
        )


__all__ = ["TwilioSmsDriver"]
