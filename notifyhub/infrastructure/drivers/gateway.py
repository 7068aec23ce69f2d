"""Shared helpers for drivers talking to JSON HTTP gateways."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from notifyhub.domain.ports import DriverError

logger = logging.getLogger(__name__)


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def response_json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"raw": response.text[:500]}
    return data if isinstance(data, dict) else {"data": data}


def post(
    client: httpx.Client,
    url: str,
    *,
    provider: str,
    timeout: float,
    **kwargs: Any,
) -> dict[str, Any]:
    """POST to a gateway and return its JSON body, raising :class:`DriverError`."""

    try:
        response = client.post(url, timeout=timeout, **kwargs)
    except httpx.TimeoutException as exc:
        logger.warning("%s request timed out after %.1fs", provider, timeout)
        raise DriverError(
            f"{provider} request timed out", error_code="TIMEOUT", transient=True
        ) from exc
    except httpx.HTTPError as exc:
        logger.warning("%s request failed: %s", provider, exc)
        raise DriverError(
            f"{provider} request failed: {exc}", error_code="NETWORK_ERROR", transient=True
        ) from exc

    body = response_json(response)
    if response.is_success:
        return body

    logger.error("%s responded with status %s: %s", provider, response.status_code, body)
    raise DriverError(
        str(body.get("message") or f"{provider} responded with status {response.status_code}"),
        error_code=str(body.get("code") or f"HTTP_{response.status_code}"),
        transient=is_retryable_status(response.status_code),
        provider_response={"status_code": response.status_code, **body},
    )


__all__ = ["is_retryable_status", "post", "response_json"]
