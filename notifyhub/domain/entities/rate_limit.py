"""Domain entity representing a fixed rate-limit window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

SCOPE_GLOBAL = "global"
SCOPE_USER = "user"
SCOPE_NOTIFICATION_TYPE = "notification_type"
RATE_SCOPES = (SCOPE_GLOBAL, SCOPE_USER, SCOPE_NOTIFICATION_TYPE)


@dataclass
class RateLimitWindow:
    """Counter bounding sends per (scope, scope id, window length)."""

    id: int | None
    scope: str
    scope_id: str
    window_minutes: int
    max_count: int
    current_count: int
    window_start: datetime
    updated_at: datetime | None = None

    def covers(self, moment: datetime) -> bool:
        """Return whether ``moment`` falls inside this window."""

        end = self.window_start + timedelta(minutes=self.window_minutes)
        return self.window_start <= moment < end


__all__ = [
    "RATE_SCOPES",
    "RateLimitWindow",
    "SCOPE_GLOBAL",
    "SCOPE_NOTIFICATION_TYPE",
    "SCOPE_USER",
]
