"""Tests for the HTTP user directory client."""

from __future__ import annotations

import httpx
import pytest

from notifyhub.config import Settings
from notifyhub.domain.ports import DirectoryError
from notifyhub.infrastructure.user_directory import HttpUserDirectory


def _directory(handler, **kwargs) -> HttpUserDirectory:
    return HttpUserDirectory(
        "https://users.test/api/",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


def test_lookup_maps_contact_fields() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200, json={"email": "ana@example.com", "phone": "", "device_token": "tok"}
        )

    contact = _directory(handler, token="secret").lookup(7)

    assert contact.user_id == 7
    assert contact.email == "ana@example.com"
    assert contact.phone is None
    assert contact.device_token == "tok"
    assert requests[0].url.path == "/api/users/7/contact"
    assert requests[0].headers["Authorization"] == "Bearer secret"


def test_unknown_user_is_none() -> None:
    directory = _directory(lambda request: httpx.Response(404))

    assert directory.lookup(99) is None


def test_audience_pages_with_target_parameters() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"user_ids": ["3", 4]})

    user_ids = _directory(handler).list_user_ids(
        target_type="filtered",
        filters={"country": "PE"},
        offset=20,
        limit=10,
    )

    assert user_ids == [3, 4]
    params = requests[0].url.params
    assert params["target"] == "filtered"
    assert params["offset"] == "20"
    assert params["limit"] == "10"
    assert params["filter[country]"] == "PE"
    assert "segment" not in params
    assert "Authorization" not in requests[0].headers


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500),
        lambda request: httpx.Response(200, text="not json"),
        lambda request: httpx.Response(200, json=[1, 2]),
    ],
)
def test_bad_responses_raise_directory_error(handler) -> None:
    with pytest.raises(DirectoryError):
        _directory(handler).lookup(1)


def test_network_failure_raises_directory_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(DirectoryError):
        _directory(handler).list_user_ids(target_type="all_users")


def test_from_settings_requires_url() -> None:
    with pytest.raises(DirectoryError):
        HttpUserDirectory.from_settings(Settings(user_directory_url=None))
