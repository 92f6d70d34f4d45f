"""Payment model for tracking renewal charges."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from app.core.config import settings
from app.core.database import Base
from app.models.shared import IdentityType


class PaymentStatus(str, Enum):
    """Payment status enum."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


TERMINAL_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.SUCCESS.value, PaymentStatus.FAILED.value, PaymentStatus.REFUNDED.value}
)


class Payment(Base):
    """Payment model - one charge attempt for a subscription renewal."""

    __tablename__ = "payments"

    id = Column(IdentityType, primary_key=True, autoincrement=True)
    subscription_id = Column(
        IdentityType,
        ForeignKey("subscriptions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    customer_id = Column(IdentityType, nullable=False, index=True)

    # Payment details
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default=lambda: settings.DEFAULT_CURRENCY)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    payment_method = Column(String(50), nullable=False)
    provider_transaction_id = Column(String(255), nullable=True, index=True)
    description = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    # Dedup key of the originating payment request message
    request_id = Column(String(255), nullable=True, unique=True)

    # Bumped on every write; a resolver holding a stale row loses
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __mapper_args__ = {"version_id_col": version}
