"""Tests for the SendGrid, Twilio, FCM and in-app channel drivers."""

from __future__ import annotations

import json
import types

import httpx
import pytest

from notifyhub.config import Settings
from notifyhub.domain.ports import DriverError
from notifyhub.infrastructure.drivers import (
    FcmPushDriver,
    InAppDriver,
    SendGridEmailDriver,
    TwilioSmsDriver,
    build_drivers,
)
from notifyhub.utils.deadline import Deadline


class _FakeSendGridClient:
    """Client double exposing the attributes the driver touches."""

    def __init__(self, api_key: str, response=None, error: Exception | None = None) -> None:
        self.api_key = api_key
        self.client = types.SimpleNamespace(timeout=None)
        self.sent: list = []
        self._response = response
        self._error = error

    def send(self, message):
        self.sent.append(message)
        if self._error is not None:
            raise self._error
        return self._response


class _SendGridHTTPError(Exception):
    def __init__(self, status_code: int, body: bytes) -> None:
        super().__init__(f"HTTP Error {status_code}")
        self.status_code = status_code
        self.body = body


def _sendgrid(response=None, error=None, **kwargs):
    clients: list[_FakeSendGridClient] = []

    def factory(api_key: str) -> _FakeSendGridClient:
        client = _FakeSendGridClient(api_key, response=response, error=error)
        clients.append(client)
        return client

    driver = SendGridEmailDriver(
        kwargs.pop("api_key", "SG.key"),
        kwargs.pop("sender", "noreply@example.com"),
        client_factory=factory,
        **kwargs,
    )
    return driver, clients


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_sendgrid_without_configuration_is_unavailable() -> None:
    driver, clients = _sendgrid(api_key=None)

    with pytest.raises(DriverError) as excinfo:
        driver.send("user@example.com", "Subject", "<p>Body</p>")

    assert excinfo.value.error_code == "PROVIDER_UNAVAILABLE"
    assert excinfo.value.transient is True
    assert clients == []


def test_sendgrid_success_returns_message_id() -> None:
    response = types.SimpleNamespace(
        status_code=202, body=b"", headers={"X-Message-Id": "sg-123"}
    )
    driver, clients = _sendgrid(response=response, timeout_seconds=4.0)

    result = driver.send(
        "user@example.com", "Subject", "<p>Body</p>", {"text_body": "Body"}
    )

    assert result.message_id == "sg-123"
    assert result.provider == "sendgrid"
    assert clients[0].api_key == "SG.key"
    assert clients[0].client.timeout == 4.0
    payload = clients[0].sent[0].get()
    assert payload["subject"] == "Subject"
    assert payload["personalizations"][0]["to"] == [{"email": "user@example.com"}]
    assert {item["type"] for item in payload["content"]} == {"text/plain", "text/html"}
    contents = {item["type"]: item["value"] for item in payload["content"]}
    assert contents["text/plain"] == "Body"
    assert contents["text/html"] == "<p>Body</p>"


def test_sendgrid_timeout_is_bounded_by_the_deadline() -> None:
    response = types.SimpleNamespace(status_code=202, body=b"", headers={})
    driver, clients = _sendgrid(response=response, timeout_seconds=30.0)

    driver.send("user@example.com", "Subject", "<p>Body</p>", deadline=Deadline.after(2.0))

    assert 0 < clients[0].client.timeout <= 2.0


@pytest.mark.parametrize(
    ("status_code", "transient"),
    [(400, False), (429, True), (503, True)],
)
def test_sendgrid_http_errors_are_classified(status_code, transient) -> None:
    body = json.dumps(
        {"errors": [{"message": "Invalid email", "field": "personalizations.0.to"}]}
    ).encode()
    driver, _ = _sendgrid(error=_SendGridHTTPError(status_code, body))

    with pytest.raises(DriverError) as excinfo:
        driver.send("user@example.com", "Subject", "<p>Body</p>")

    assert excinfo.value.error_code == f"HTTP_{status_code}"
    assert excinfo.value.transient is transient
    assert str(excinfo.value) == "personalizations.0.to: Invalid email"


def test_sendgrid_network_failure_is_transient() -> None:
    driver, _ = _sendgrid(error=ConnectionError("connection reset"))

    with pytest.raises(DriverError) as excinfo:
        driver.send("user@example.com", "Subject", "<p>Body</p>")

    assert excinfo.value.error_code == "NETWORK_ERROR"
    assert excinfo.value.transient is True


def test_sendgrid_unexpected_status_is_an_error() -> None:
    response = types.SimpleNamespace(status_code=500, body=b"oops", headers={})
    driver, _ = _sendgrid(response=response)

    with pytest.raises(DriverError) as excinfo:
        driver.send("user@example.com", "Subject", "<p>Body</p>")

    assert excinfo.value.error_code == "HTTP_500"
    assert excinfo.value.transient is True


def test_twilio_posts_form_and_returns_sid() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201, json={"sid": "SM123", "status": "queued"})

    driver = TwilioSmsDriver(
        "AC1", "secret", "+15550000000", base_url="https://sms.test/", client=_client(handler)
    )

    result = driver.send("+15551112222", "ignored", "Your order shipped")

    assert result.message_id == "SM123"
    assert result.provider == "twilio"
    request = requests[0]
    assert request.url == "https://sms.test/Accounts/AC1/Messages.json"
    assert request.headers["Authorization"].startswith("Basic ")
    form = dict(pair.split("=", 1) for pair in request.content.decode().split("&"))
    assert form["Body"] == "Your+order+shipped"


def test_twilio_client_error_is_permanent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' number"})

    driver = TwilioSmsDriver("AC1", "secret", "+15550000000", client=_client(handler))

    with pytest.raises(DriverError) as excinfo:
        driver.send("bogus", "", "Hi")

    assert excinfo.value.error_code == "21211"
    assert excinfo.value.transient is False
    assert excinfo.value.provider_response["status_code"] == 400


def test_twilio_timeout_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    driver = TwilioSmsDriver("AC1", "secret", "+15550000000", client=_client(handler))

    with pytest.raises(DriverError) as excinfo:
        driver.send("+15551112222", "", "Hi")

    assert excinfo.value.error_code == "TIMEOUT"
    assert excinfo.value.transient is True


def test_twilio_without_credentials_is_unavailable() -> None:
    driver = TwilioSmsDriver(None, None, None, client=_client(lambda request: httpx.Response(500)))

    with pytest.raises(DriverError) as excinfo:
        driver.send("+15551112222", "", "Hi")

    assert excinfo.value.error_code == "PROVIDER_UNAVAILABLE"


def test_fcm_sends_notification_with_string_data() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200, json={"success": 1, "failure": 0, "results": [{"message_id": "0:1"}]}
        )

    driver = FcmPushDriver("server-key", endpoint="https://push.test/send", client=_client(handler))

    result = driver.send("device-1", "Order shipped", "On its way", {"order_id": 7})

    assert result.message_id == "0:1"
    body = json.loads(requests[0].content)
    assert body == {
        "to": "device-1",
        "notification": {"title": "Order shipped", "body": "On its way"},
        "data": {"order_id": "7"},
    }
    assert requests[0].headers["Authorization"] == "key=server-key"


@pytest.mark.parametrize(
    ("error", "transient"),
    [("NotRegistered", False), ("InvalidRegistration", False), ("Unavailable", True)],
)
def test_fcm_per_message_errors(error, transient) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": 0, "failure": 1, "results": [{"error": error}]})

    driver = FcmPushDriver("server-key", client=_client(handler))

    with pytest.raises(DriverError) as excinfo:
        driver.send("device-1", "Title", "Body")

    assert excinfo.value.error_code == error
    assert excinfo.value.transient is transient


def test_fcm_server_error_is_transient() -> None:
    driver = FcmPushDriver(
        "server-key", client=_client(lambda request: httpx.Response(503, text="busy"))
    )

    with pytest.raises(DriverError) as excinfo:
        driver.send("device-1", "Title", "Body")

    assert excinfo.value.error_code == "HTTP_503"
    assert excinfo.value.transient is True


def test_in_app_driver_acknowledges() -> None:
    result = InAppDriver().send("42", "Title", "Body")

    assert result.provider == "in_app"
    assert result.message_id == "in_app-42"


def test_build_drivers_covers_every_channel() -> None:
    drivers = build_drivers(Settings(sendgrid_api_key="SG.key", sendgrid_sender="a@example.com"))

    assert set(drivers) == {"in_app", "email", "sms", "push"}
    assert all(driver.channel == channel for channel, driver in drivers.items())
