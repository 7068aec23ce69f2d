"""SQLAlchemy model for fixed rate-limit windows."""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from notifyhub.infrastructure.database import Base
from notifyhub.utils import now_in_app_naive_datetime


class RateLimitModel(Base):
    """Counter row keyed by scope, scope id and window length."""

    __tablename__ = "notification_rate_limits"
    __table_args__ = (
        UniqueConstraint(
            "scope", "scope_id", "window_minutes", name="uq_notification_rate_limits_key"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    scope = Column(String(30), nullable=False)
    scope_id = Column(String(100), nullable=False)
    window_minutes = Column(Integer, nullable=False)
    max_count = Column(Integer, nullable=False)
    current_count = Column(Integer, nullable=False, default=0)
    window_start = Column(DateTime(), nullable=False)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["RateLimitModel"]
