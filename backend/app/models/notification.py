"""Notification model for customer-facing payment notifications."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import IdentityType


class NotificationType(str, Enum):
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    SUBSCRIPTION_CREATED = "SUBSCRIPTION_CREATED"
    SUBSCRIPTION_RENEWED = "SUBSCRIPTION_RENEWED"
    SUBSCRIPTION_CANCELLED = "SUBSCRIPTION_CANCELLED"
    SUBSCRIPTION_EXPIRED = "SUBSCRIPTION_EXPIRED"
    SUBSCRIPTION_EXPIRING_SOON = "SUBSCRIPTION_EXPIRING_SOON"
    WELCOME = "WELCOME"
    PASSWORD_RESET = "PASSWORD_RESET"
    ACCOUNT_VERIFIED = "ACCOUNT_VERIFIED"


class NotificationChannel(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    RETRYING = "RETRYING"


class Notification(Base):
    """Notification model - one message to a customer over one channel."""

    __tablename__ = "notifications"

    id = Column(IdentityType, primary_key=True, autoincrement=True)
    customer_id = Column(IdentityType, nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    channel = Column(String(20), nullable=False, default=NotificationChannel.EMAIL.value)
    recipient = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(
        String(20), nullable=False, default=NotificationStatus.PENDING.value, index=True
    )
    error_message = Column(Text, nullable=True)
    related_entity_id = Column(IdentityType, nullable=True, index=True)

    # Delivery retry tracking
    retry_count = Column(Integer, nullable=False, default=0)
    max_retries = Column(Integer, nullable=False, default=5)
    next_retry_at = Column(DateTime(timezone=True), nullable=True, index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
