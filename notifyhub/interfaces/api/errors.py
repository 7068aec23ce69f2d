"""Translate domain errors raised by use cases into HTTP responses."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from notifyhub.domain.errors import MissingVariablesError, NotificationError

_STATUS_BY_CODE = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TEMPLATE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CAMPAIGN_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "DUPLICATE": status.HTTP_409_CONFLICT,
    "EXPIRED": status.HTTP_410_GONE,
    "RATE_LIMITED": status.HTTP_429_TOO_MANY_REQUESTS,
    "PROVIDER_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "STORE_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error(exc: NotificationError) -> HTTPException:
    detail: dict[str, Any] = {"code": exc.code, "message": exc.message}
    if isinstance(exc, MissingVariablesError):
        detail["missing"] = exc.missing
    return HTTPException(
        status_code=_STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
        detail=detail,
    )


__all__ = ["http_error"]
