"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, Time

from notifyhub.infrastructure.database import Base
from notifyhub.utils import now_in_app_naive_datetime


class NotificationPreferencesModel(Base):
    """Channel toggles, quiet hours and do-not-disturb for one user."""

    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, unique=True)
    preferences = Column(JSON, nullable=False, default=dict)
    do_not_disturb = Column(Boolean, nullable=False, default=False)
    quiet_hours_start = Column(Time(), nullable=True)
    quiet_hours_end = Column(Time(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["NotificationPreferencesModel"]
