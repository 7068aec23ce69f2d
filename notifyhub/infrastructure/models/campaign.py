"""SQLAlchemy model for notification campaigns."""

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String, Text

from notifyhub.infrastructure.database import Base
from notifyhub.utils import now_in_app_naive_datetime


class CampaignModel(Base):
    """Database representation of a fan-out campaign."""

    __tablename__ = "notification_campaigns"
    __table_args__ = (Index("ix_notification_campaigns_due", "status", "scheduled_at"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    template_code = Column(String(100), nullable=False)
    target_type = Column(String(30), nullable=False)
    target_segment = Column(String(100), nullable=True)
    target_user_ids = Column(JSON, nullable=False, default=list)
    target_filters = Column(JSON, nullable=False, default=dict)
    template_data = Column(JSON, nullable=False, default=dict)
    channels = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="draft")
    scheduled_at = Column(DateTime(), nullable=True)
    batch_size = Column(Integer, nullable=False, default=1000)
    batch_delay_seconds = Column(Integer, nullable=False, default=5)
    processed_count = Column(Integer, nullable=False, default=0)
    sent_count = Column(Integer, nullable=False, default=0)
    delivered_count = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    next_batch_at = Column(DateTime(), nullable=True)
    started_at = Column(DateTime(), nullable=True)
    paused_at = Column(DateTime(), nullable=True)
    completed_at = Column(DateTime(), nullable=True)
    cancelled_at = Column(DateTime(), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["CampaignModel"]
