"""SQLAlchemy model for the per-channel delivery log."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)

from notifyhub.infrastructure.database import Base
from notifyhub.utils import now_in_app_naive_datetime


class DeliveryLogModel(Base):
    """One delivery attempt for a notification on a channel."""

    __tablename__ = "delivery_logs"
    __table_args__ = (
        UniqueConstraint(
            "notification_id",
            "channel",
            "attempt_number",
            name="uq_delivery_logs_attempt",
        ),
        Index("ix_delivery_logs_retry", "status", "retry_after"),
    )

    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(
        Integer,
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    channel = Column(String(20), nullable=False)
    attempt_number = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False)
    recipient = Column(String(255), nullable=False, default="")
    provider = Column(String(50), nullable=True)
    provider_message_id = Column(String(255), nullable=True)
    provider_response = Column(JSON, nullable=False, default=dict)
    error_code = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=True)
    max_retries = Column(Integer, nullable=False, default=3)
    retry_after = Column(DateTime(), nullable=True)
    queued_at = Column(DateTime(), nullable=True)
    processing_at = Column(DateTime(), nullable=True)
    sent_at = Column(DateTime(), nullable=True)
    delivered_at = Column(DateTime(), nullable=True)
    opened_at = Column(DateTime(), nullable=True)
    clicked_at = Column(DateTime(), nullable=True)
    failed_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["DeliveryLogModel"]
