"""Push channel driver backed by the FCM HTTP endpoint."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from notifyhub.domain.entities import CHANNEL_PUSH
from notifyhub.domain.ports import ChannelDriver, DriverError, DriverResult
from notifyhub.utils.deadline import Deadline, call_timeout

from . import gateway

PROVIDER = "fcm"

# per-message errors FCM reports inside a 200 response
_PERMANENT_ERRORS = frozenset(
    {"InvalidRegistration", "NotRegistered", "MismatchSenderId", "MessageTooBig"}
)


class FcmPushDriver(ChannelDriver):
    channel = CHANNEL_PUSH
    provider = PROVIDER

    def __init__(
        self,
        server_key: str | None,
        *,
        endpoint: str = "https://fcm.googleapis.com/fcm/send",
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._server_key = server_key
        self._endpoint = endpoint
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
        if not self._server_key:
            raise DriverError(
                "FCM is not configured",
                error_code="PROVIDER_UNAVAILABLE",
                transient=True,
            )

        data = gateway.post(
            self._client,
            self._endpoint,
            provider=PROVIDER,
            timeout=call_timeout(deadline, self._timeout_seconds),
            headers={"Authorization": f"key={self._server_key}"},
            json={
                "to": recipient,
                "notification": {"title": title, "body": body},
                "data": {key: str(value) for key, value in (payload or {}).items()},
            },
        )

        results = data.get("results") or [{}]
        result = results[0] if isinstance(results[0], dict) else {}
        error = result.get("error")
        if error:
            raise DriverError(
                f"FCM rejected the message: {error}",
                error_code=str(error),
                transient=error not in _PERMANENT_ERRORS,
                provider_response=data,
            )
        return DriverResult(
            message_id=str(result.get("message_id") or data.get("multicast_id") or ""),
            provider=PROVIDER,
            response={"success": data.get("success"), "failure": data.get("failure")},
        )


__all__ = ["FcmPushDriver"]
