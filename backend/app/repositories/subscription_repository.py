"""Repository for Subscription rows.

Mutations only flush: the lifecycle engine owns the transaction so that the
state change, the processed-event record and the outgoing message commit or
roll back together.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from app.models.subscription import Subscription, SubscriptionStatus


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, subscription_id: int) -> Subscription | None:
        return self.db.query(Subscription).filter(Subscription.id == subscription_id).first()

    def get_by_customer_id(
        self, customer_id: int, status: SubscriptionStatus | None = None
    ) -> list[Subscription]:
        query = self.db.query(Subscription).filter(Subscription.customer_id == customer_id)
        if status is not None:
            query = query.filter(Subscription.status == status.value)
        return query.order_by(Subscription.id).all()

    def get_by_customer_and_offer(self, customer_id: int, offer_id: int) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.customer_id == customer_id,
                Subscription.offer_id == offer_id,
            )
            .first()
        )

    def create(
        self, customer_id: int, offer_id: int, next_renewal_date: datetime
    ) -> Subscription:
        subscription = Subscription(
            customer_id=customer_id,
            offer_id=offer_id,
            next_renewal_date=next_renewal_date,
            status=SubscriptionStatus.ACTIVE.value,
        )
        self.db.add(subscription)
        self.db.flush()
        return subscription

    def get_overdue(self, now: datetime) -> list[Subscription]:
        """ACTIVE subscriptions whose renewal date is strictly before ``now``."""
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.status == SubscriptionStatus.ACTIVE.value,
                Subscription.next_renewal_date < now,
            )
            .order_by(Subscription.next_renewal_date, Subscription.id)
            .all()
        )

    def get_stale_renewals(self, cutoff: datetime) -> list[Subscription]:
        """Subscriptions with a payment request outstanding since before ``cutoff``."""
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.renewal_requested_at.isnot(None),
                Subscription.renewal_requested_at < cutoff,
            )
            .order_by(Subscription.renewal_requested_at, Subscription.id)
            .all()
        )
