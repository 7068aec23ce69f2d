"""Per-call deadlines propagated from callers to outbound I/O."""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class Deadline:
    """Absolute point on the monotonic clock after which work must stop."""

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(expires_at=time.monotonic() + max(seconds, 0.0))

    def remaining(self) -> float:
        return max(self.expires_at - time.monotonic(), 0.0)

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def timeout(self, cap: float | None = None) -> float:
        """Return the seconds an outbound call may take, bounded by ``cap``."""

        remaining = self.remaining()
        if cap is None:
            return remaining
        return min(remaining, cap)


def call_timeout(deadline: Deadline | None, cap: float) -> float:
    """Resolve the timeout for a single call given an optional deadline."""

    if deadline is None:
        return cap
    return deadline.timeout(cap)


__all__ = ["Deadline", "call_timeout"]
