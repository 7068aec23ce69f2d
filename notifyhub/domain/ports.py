"""Outbound ports consumed by the application layer.

Concrete implementations live in ``notifyhub.infrastructure``; tests provide
in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from notifyhub.domain.entities import RecipientContact
from notifyhub.utils.deadline import Deadline


@dataclass(frozen=True)
class DriverResult:
    """Outcome of a successful provider call."""

    message_id: str
    provider: str
    response: dict[str, Any] = field(default_factory=dict)


class DriverError(Exception):
    """Provider call failure.

    ``transient`` separates failures worth retrying (network, 5xx, throttling)
    from permanent ones (bad recipient, rejected credentials, banned content).
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str,
        transient: bool,
        provider_response: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.transient = transient
        self.provider_response = dict(provider_response or {})


class ChannelDriver(ABC):
    """Uniform contract implemented by every channel adapter."""

    channel: str
    provider: str

    @abstractmethod
    def send(
        self,
        recipient: str,
        title: str,
        body: str,
        payload: Mapping[str, Any] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> DriverResult:
        """Deliver one message or raise :class:`DriverError`."""


class UserDirectory(ABC):
    """Read-only access to user contact data owned by another service."""

    @abstractmethod
    def lookup(
        self, user_id: int, *, deadline: Deadline | None = None
    ) -> RecipientContact | None:
        """Return contact data for ``user_id`` or ``None`` when unknown."""

    @abstractmethod
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
        """Return a deterministic page of user ids matching the target."""


class DirectoryError(Exception):
    """The user directory could not answer."""


__all__ = [
    "ChannelDriver",
    "DirectoryError",
    "DriverError",
    "DriverResult",
    "UserDirectory",
]
