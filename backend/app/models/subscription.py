from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from app.core.database import Base
from app.models.shared import IdentityType


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPEND = "SUSPEND"
    DEACTIVE = "DEACTIVE"


# Allowed manual transitions. Same-state updates are no-ops and always allowed.
ALLOWED_TRANSITIONS: dict[SubscriptionStatus, frozenset[SubscriptionStatus]] = {
    SubscriptionStatus.ACTIVE: frozenset({SubscriptionStatus.SUSPEND, SubscriptionStatus.DEACTIVE}),
    SubscriptionStatus.SUSPEND: frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.DEACTIVE}),
    SubscriptionStatus.DEACTIVE: frozenset(),
}

# States from which a renewal may bring the subscription back to ACTIVE.
RENEWABLE_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.SUSPEND})


def is_transition_allowed(current: SubscriptionStatus, target: SubscriptionStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("customer_id", "offer_id", name="uq_subscriptions_customer_offer"),
    )

    id = Column(IdentityType, primary_key=True, autoincrement=True)
    customer_id = Column(IdentityType, nullable=False, index=True)
    offer_id = Column(
        IdentityType,
        ForeignKey("offers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    next_renewal_date = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(
        String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value, index=True
    )
    version = Column(Integer, nullable=False, default=1)
    renewal_requested_at = Column(DateTime(timezone=True), nullable=True, index=True)
    last_payment_id = Column(IdentityType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}
