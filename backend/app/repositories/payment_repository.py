from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.payment import Payment, PaymentStatus


class PaymentRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, payment_id: int) -> Payment | None:
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def get_by_request_id(self, request_id: str) -> Payment | None:
        return self.db.query(Payment).filter(Payment.request_id == request_id).first()

    def get_all(
        self,
        subscription_id: int | None = None,
        customer_id: int | None = None,
        status: PaymentStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Payment]:
        query = self.db.query(Payment)
        if subscription_id is not None:
            query = query.filter(Payment.subscription_id == subscription_id)
        if customer_id is not None:
            query = query.filter(Payment.customer_id == customer_id)
        if status is not None:
            query = query.filter(Payment.status == status.value)
        return query.order_by(Payment.id.desc()).offset(skip).limit(limit).all()

    def create(
        self,
        *,
        subscription_id: int,
        customer_id: int,
        amount: Decimal,
        currency: str,
        payment_method: str,
        provider_transaction_id: str,
        description: str | None = None,
        request_id: str | None = None,
    ) -> Payment:
        payment = Payment(
            subscription_id=subscription_id,
            customer_id=customer_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.PENDING.value,
            payment_method=payment_method,
            provider_transaction_id=provider_transaction_id,
            description=description,
            request_id=request_id,
        )
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_stale_pending(self, cutoff: datetime) -> list[Payment]:
        return (
            self.db.query(Payment)
            .filter(
                Payment.status == PaymentStatus.PENDING.value,
                Payment.created_at < cutoff,
            )
            .order_by(Payment.created_at, Payment.id)
            .all()
        )
