"""Contact data returned by the user directory."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RecipientContact:
    user_id: int
    email: str | None = None
    phone: str | None = None
    device_token: str | None = None


__all__ = ["RecipientContact"]
