"""Payment lifecycle engine.

Payments are created PENDING and resolved exactly once by the gateway
callbacks (``confirm`` / ``fail``) or by the pending-payment timeout. Every
resolution publishes the outcome to the payment events topic before the
transaction commits.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.exceptions import InvalidStateError, MessagingError, NotFoundError
from app.messaging.producer import EventPublisher
from app.models.payment import TERMINAL_PAYMENT_STATUSES, Payment, PaymentStatus
from app.models.shared import utc_now
from app.repositories.payment_repository import PaymentRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.schemas.events import PaymentEventMessage, PaymentRequestMessage
from app.schemas.payment import PaymentCreate

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_REASON = "Payment failed"
TIMEOUT_FAILURE_REASON = "Payment timed out"


@dataclass
class PaymentExpiryResult:
    failed: int = 0
    errors: int = 0


class PaymentService:
    """Owns payment rows and their PENDING -> SUCCESS | FAILED transitions."""

    def __init__(self, db: Session, producer: EventPublisher | None = None):
        self.db = db
        self.producer = producer
        self.payment_repo = PaymentRepository(db)
        self.subscription_repo = SubscriptionRepository(db)

    def get(self, payment_id: int) -> Payment:
        payment = self.payment_repo.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    def list_payments(
        self,
        subscription_id: int | None = None,
        customer_id: int | None = None,
        status: PaymentStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Payment]:
        return self.payment_repo.get_all(
            subscription_id=subscription_id,
            customer_id=customer_id,
            status=status,
            skip=skip,
            limit=limit,
        )

    def create(self, data: PaymentCreate) -> Payment:
        """Record a PENDING payment. Publishes nothing.

        A request id that was already seen returns the existing payment, so a
        redelivered payment request does not charge twice.
        """
        if data.request_id:
            existing = self.payment_repo.get_by_request_id(data.request_id)
            if existing is not None:
                logger.warning(
                    "Payment request %s already recorded as payment %s",
                    data.request_id,
                    existing.id,
                )
                return existing

        if not self.subscription_repo.get_by_id(data.subscription_id):
            raise NotFoundError("Subscription", data.subscription_id)

        payment = self.payment_repo.create(
            subscription_id=data.subscription_id,
            customer_id=data.customer_id,
            amount=data.amount,
            currency=data.currency or settings.DEFAULT_CURRENCY,
            payment_method=data.payment_method,
            provider_transaction_id=str(uuid.uuid4()),
            description=data.description,
            request_id=data.request_id,
        )
        self.db.commit()
        self.db.refresh(payment)
        logger.info(
            "Created pending payment %s for subscription %s (%s %s)",
            payment.id,
            payment.subscription_id,
            payment.amount,
            payment.currency,
        )
        return payment

    def handle_payment_request(
        self, message: PaymentRequestMessage, fallback_request_id: str | None = None
    ) -> Payment:
        """Entry point for consumed payment requests.

        ``fallback_request_id`` identifies the delivery (topic, partition,
        offset) for producers that do not stamp a request id.
        """
        return self.create(
            PaymentCreate(
                subscription_id=message.subscription_id,
                customer_id=message.customer_id,
                amount=message.amount,
                payment_method=message.payment_method,
                currency=message.currency,
                description=f"Renewal payment for subscription {message.subscription_id}",
                request_id=message.request_id or fallback_request_id,
            )
        )

    def confirm(self, payment_id: int, now: datetime | None = None) -> Payment:
        """PENDING -> SUCCESS, then publish the SUCCESS outcome."""
        payment = self._get_pending(payment_id)
        payment.status = PaymentStatus.SUCCESS.value  # type: ignore[assignment]
        payment.error_message = None  # type: ignore[assignment]
        payment.completed_at = now or utc_now()  # type: ignore[assignment]
        self._publish_outcome(payment)
        logger.info("Payment %s confirmed", payment_id)
        return payment

    def fail(
        self, payment_id: int, reason: str | None = None, now: datetime | None = None
    ) -> Payment:
        """PENDING -> FAILED, then publish the FAILED outcome."""
        payment = self._get_pending(payment_id)
        payment.status = PaymentStatus.FAILED.value  # type: ignore[assignment]
        payment.error_message = reason or DEFAULT_FAILURE_REASON  # type: ignore[assignment]
        payment.completed_at = now or utc_now()  # type: ignore[assignment]
        self._publish_outcome(payment)
        logger.info("Payment %s failed: %s", payment_id, payment.error_message)
        return payment

    def expire_stale_payments(self, now: datetime | None = None) -> PaymentExpiryResult:
        """Fail payments that stayed PENDING past the timeout window."""
        now = now or utc_now()
        cutoff = now - timedelta(minutes=settings.PAYMENT_PENDING_TIMEOUT_MINUTES)
        result = PaymentExpiryResult()
        stale_ids = [int(p.id) for p in self.payment_repo.get_stale_pending(cutoff)]

        for payment_id in stale_ids:
            try:
                self.fail(payment_id, TIMEOUT_FAILURE_REASON, now=now)
                result.failed += 1
            except Exception:
                self.db.rollback()
                result.errors += 1
                logger.exception("Failed to expire pending payment %s", payment_id)

        if stale_ids:
            logger.warning(
                "Expired %d stale pending payments (%d errors)", result.failed, result.errors
            )
        return result

    def _get_pending(self, payment_id: int) -> Payment:
        payment = self.get(payment_id)
        if payment.status in TERMINAL_PAYMENT_STATUSES:
            raise InvalidStateError(
                f"Payment {payment_id} is {payment.status}; only PENDING payments can be resolved"
            )
        return payment

    def _publish_outcome(self, payment: Payment) -> None:
        payment_id = payment.id
        try:
            self.db.flush()
        except StaleDataError as exc:
            self.db.rollback()
            raise InvalidStateError(
                f"Payment {payment_id} was resolved concurrently; only PENDING payments can be resolved"
            ) from exc
        event = PaymentEventMessage(
            payment_id=payment.id,
            subscription_id=payment.subscription_id,
            customer_id=payment.customer_id,
            amount=payment.amount,
            currency=payment.currency,
            status=PaymentStatus(payment.status),
            payment_method=payment.payment_method,
            error_message=payment.error_message,
            event_time=payment.completed_at,
        )
        key = str(payment.subscription_id)
        if self.producer is None:
            self.db.rollback()
            raise MessagingError(
                "No event producer configured", settings.KAFKA_TOPIC_PAYMENT_EVENTS, key
            )
        try:
            self.producer.publish(settings.KAFKA_TOPIC_PAYMENT_EVENTS, key, event)
        except MessagingError:
            self.db.rollback()
            raise
        self.db.commit()
        self.db.refresh(payment)
