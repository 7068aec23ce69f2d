"""SQLAlchemy model for notification templates."""

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

from notifyhub.infrastructure.database import Base
from notifyhub.utils import now_in_app_naive_datetime


class NotificationTemplateModel(Base):
    """Database representation of a versioned notification template."""

    __tablename__ = "notification_templates"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    notification_type = Column(String(50), nullable=False)
    category = Column(String(20), nullable=False, default="transactional")
    email_subject = Column(String(255), nullable=True)
    email_body_html = Column(Text, nullable=True)
    email_body_text = Column(Text, nullable=True)
    sms_body = Column(String(1600), nullable=True)
    push_title = Column(String(255), nullable=True)
    push_body = Column(Text, nullable=True)
    in_app_title = Column(String(255), nullable=True)
    in_app_body = Column(Text, nullable=True)
    in_app_action_url = Column(String(500), nullable=True)
    required_variables = Column(JSON, nullable=False, default=list)
    language = Column(String(10), nullable=False, default="en")
    default_channels = Column(JSON, nullable=False, default=list)
    default_priority = Column(Integer, nullable=False, default=2)
    expires_after_hours = Column(Integer, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["NotificationTemplateModel"]
