"""In-app channel driver.

The persisted notification is the delivery; the driver only acknowledges it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from notifyhub.domain.entities import CHANNEL_IN_APP
from notifyhub.domain.ports import ChannelDriver, DriverResult
from notifyhub.utils.deadline import Deadline

PROVIDER = "in_app"


class InAppDriver(ChannelDriver):
    channel = CHANNEL_IN_APP
    provider = PROVIDER

    def send(
        self,
        recipient: str,
        title: str,
        body: str,
        payload: Mapping[str, Any] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> DriverResult:
        return DriverResult(message_id=f"in_app-{recipient}", provider=PROVIDER)


__all__ = ["InAppDriver"]
