"""Rate limiting use cases."""

from .check_rate_limit import check_rate_limit, check_user_rate_limit, release_user_rate_limit

__all__ = ["check_rate_limit", "check_user_rate_limit", "release_user_rate_limit"]
