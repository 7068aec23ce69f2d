"""HTTP client for the service that owns user contact data."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from notifyhub.config import Settings, get_settings
from notifyhub.domain.entities import RecipientContact
from notifyhub.domain.ports import DirectoryError, UserDirectory
from notifyhub.utils.deadline import Deadline, call_timeout

logger = logging.getLogger(__name__)


class HttpUserDirectory(UserDirectory):
    """Resolve contacts and campaign audiences over the users service API."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client = client or httpx.Client()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "HttpUserDirectory":
        settings = settings or get_settings()
        if not settings.user_directory_url:
            raise DirectoryError("USER_DIRECTORY_URL is not configured")
        return cls(
            settings.user_directory_url,
            token=settings.user_directory_token,
            timeout_seconds=settings.driver_timeout_seconds,
        )

    def lookup(
        self, user_id: int, *, deadline: Deadline | None = None
    ) -> RecipientContact | None:
        response = self._get(f"/users/{user_id}/contact", deadline=deadline)
        if response.status_code == 404:
            return None
        data = self._json(response)
        return RecipientContact(
            user_id=user_id,
            email=data.get("email") or None,
            phone=data.get("phone") or None,
            device_token=data.get("device_token") or None,
        )

    def list_user_ids(
        self,
        *,
        target_type: str,
        segment: str | None = None,
        filters: Mapping[str, Any] | None = None,
        offset: int = 0,
        limit: int = 1000,
        deadline: Deadline | None = None,
    ) -> Sequence[int]:
        params: dict[str, Any] = {"target": target_type, "offset": offset, "limit": limit}
        if segment:
            params["segment"] = segment
        for key, value in (filters or {}).items():
            params[f"filter[{key}]"] = value
        response = self._get("/users/ids", params=params, deadline=deadline)
        data = self._json(response)
        return [int(user_id) for user_id in data.get("user_ids", [])]

    def _get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        deadline: Deadline | None,
    ) -> httpx.Response:
        try:
            return self._client.get(
                f"{self._base_url}{path}",
                params=params,
                headers=self._headers,
                timeout=call_timeout(deadline, self._timeout_seconds),
            )
        except httpx.HTTPError as exc:
            logger.warning("User directory request to %s failed: %s", path, exc)
            raise DirectoryError(f"User directory request failed: {exc}") from exc

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        if not response.is_success:
            raise DirectoryError(
                f"User directory responded with status {response.status_code}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise DirectoryError("User directory returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise DirectoryError("User directory returned an unexpected payload")
        return data


__all__ = ["HttpUserDirectory"]
