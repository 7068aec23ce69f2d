"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, JSON, String, Text

from notifyhub.infrastructure.database import Base
from notifyhub.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False)
    notification_type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    channels = Column(JSON, nullable=False, default=list)
    payload = Column(JSON, nullable=False, default=dict)
    rendered = Column(JSON, nullable=False, default=dict)
    delivery_status = Column(JSON, nullable=False, default=dict)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(String(100), nullable=True)
    idempotency_key = Column(String(255), nullable=True, unique=True)
    priority = Column(Integer, nullable=False, default=2)
    expires_at = Column(DateTime(), nullable=True, index=True)
    template_code = Column(String(100), nullable=True)
    template_version = Column(Integer, nullable=True)
    template_data = Column(JSON, nullable=False, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(), nullable=True)
    is_sent = Column(Boolean, nullable=False, default=False)
    sent_at = Column(DateTime(), nullable=True)
    dispatched_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


Index(
    "ix_notifications_user_read_created",
    NotificationModel.user_id,
    NotificationModel.is_read,
    NotificationModel.created_at.desc(),
)
Index(
    "ix_notifications_unsent",
    NotificationModel.is_sent,
    NotificationModel.priority.desc(),
    NotificationModel.created_at.asc(),
)


__all__ = ["NotificationModel"]
