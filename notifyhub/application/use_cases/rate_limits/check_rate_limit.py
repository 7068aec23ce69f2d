"""Fixed-window rate limiting with fail-open semantics."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notifyhub.config import get_settings
from notifyhub.domain.entities import RATE_SCOPES, SCOPE_USER
from notifyhub.domain.errors import ValidationError
from notifyhub.infrastructure.repositories import RateLimitRepository
from notifyhub.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


def check_rate_limit(
    session: Session,
    *,
    scope: str,
    scope_id: str | int,
    max_count: int,
    window_minutes: int,
    now: datetime | None = None,
) -> bool:
    """Consume one slot; return ``False`` when the window is exhausted.

    Infrastructure errors are logged and reported as allowed so that a limiter
    outage never blocks transactional traffic.
    """

    if scope not in RATE_SCOPES:
        raise ValidationError(f"Unknown rate limit scope '{scope}'")
    try:
        return RateLimitRepository(session).check_and_increment(
            scope,
            str(scope_id),
            max_count=max_count,
            window_minutes=window_minutes,
            now=now or now_in_app_timezone(),
        )
    except SQLAlchemyError:
        session.rollback()
        logger.warning(
            "Rate limiter unavailable for %s:%s; allowing request", scope, scope_id, exc_info=True
        )
        return True


def check_user_rate_limit(
    session: Session, *, user_id: int, now: datetime | None = None
) -> bool:
    settings = get_settings()
    return check_rate_limit(
        session,
        scope=SCOPE_USER,
        scope_id=user_id,
        max_count=settings.user_rate_limit_max,
        window_minutes=settings.user_rate_limit_window_minutes,
        now=now,
    )


def release_user_rate_limit(
    session: Session, *, user_id: int, consumed_at: datetime
) -> None:
    """Return the slot consumed at ``consumed_at`` by a send that did not go through."""

    settings = get_settings()
    try:
        RateLimitRepository(session).release(
            SCOPE_USER,
            str(user_id),
            window_minutes=settings.user_rate_limit_window_minutes,
            consumed_at=consumed_at,
        )
    except SQLAlchemyError:
        session.rollback()
        logger.warning("Could not release rate limit slot for user %s", user_id, exc_info=True)


__all__ = ["check_rate_limit", "check_user_rate_limit", "release_user_rate_limit"]
