"""Subscription lifecycle engine: creation, renewal, suspension and the renewal saga."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.auth import RequestContext
from app.core.config import settings
from app.core.exceptions import (
    ConcurrentUpdateError,
    DuplicateSubscriptionError,
    InvalidStateError,
    MessagingError,
    NotFoundError,
)
from app.messaging.producer import EventPublisher
from app.models.offer import Offer, OfferStatus
from app.models.payment import PaymentStatus
from app.models.shared import as_utc, utc_now
from app.models.subscription import (
    RENEWABLE_STATUSES,
    Subscription,
    SubscriptionStatus,
    is_transition_allowed,
)
from app.repositories.offer_repository import OfferRepository
from app.repositories.processed_event_repository import ProcessedEventRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.schemas.events import (
    EventMessage,
    PaymentEventMessage,
    PaymentRequestMessage,
    RenewalReconciliationMessage,
)
from app.services.subscription_dates import next_renewal_date

logger = logging.getLogger(__name__)


@dataclass
class RenewalRunResult:
    """Outcome counts of one scheduler or timeout sweep."""

    renewed: int = 0
    requested: int = 0
    suspended: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "renewed": self.renewed,
            "requested": self.requested,
            "suspended": self.suspended,
            "skipped": self.skipped,
            "failed": self.failed,
        }


class SubscriptionLifecycleService:
    """Owns subscription rows and their ACTIVE / SUSPEND / DEACTIVE transitions."""

    def __init__(self, db: Session, producer: EventPublisher | None = None):
        self.db = db
        self.producer = producer
        self.subscription_repo = SubscriptionRepository(db)
        self.offer_repo = OfferRepository(db)
        self.processed_repo = ProcessedEventRepository(db)

    # Reads

    def get(self, subscription_id: int) -> Subscription:
        subscription = self.subscription_repo.get_by_id(subscription_id)
        if not subscription:
            raise NotFoundError("Subscription", subscription_id)
        return subscription

    def list_for_customer(
        self, customer_id: int, status: SubscriptionStatus | None = None
    ) -> list[Subscription]:
        return self.subscription_repo.get_by_customer_id(customer_id, status)

    def get_overdue(self, now: datetime | None = None) -> list[Subscription]:
        return self.subscription_repo.get_overdue(now or utc_now())

    # Mutations

    def create(
        self, ctx: RequestContext, offer_id: int, now: datetime | None = None
    ) -> Subscription:
        """Subscribe the calling customer to an offer, starting ACTIVE."""
        if ctx.customer_id is None:
            raise InvalidStateError("A customer identity is required to subscribe")
        customer_id = ctx.customer_id

        offer = self.offer_repo.get_by_id(offer_id)
        if not offer:
            raise NotFoundError("Offer", offer_id)
        if offer.status != OfferStatus.ACTIVE.value:
            raise InvalidStateError(f"Offer {offer_id} is not active")
        if self.subscription_repo.get_by_customer_and_offer(customer_id, offer_id):
            raise DuplicateSubscriptionError(
                f"Customer {customer_id} is already subscribed to offer {offer_id}"
            )

        now = now or utc_now()
        subscription = self.subscription_repo.create(
            customer_id=customer_id,
            offer_id=offer_id,
            next_renewal_date=next_renewal_date(now, int(offer.period)),
        )
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent create for the same pair
            self.db.rollback()
            raise DuplicateSubscriptionError(
                f"Customer {customer_id} is already subscribed to offer {offer_id}"
            ) from exc
        self.db.refresh(subscription)
        logger.info(
            "Created subscription %s for customer %s on offer %s",
            subscription.id,
            customer_id,
            offer_id,
        )
        return subscription

    def renew(
        self, subscription_id: int, now: datetime | None = None
    ) -> Subscription:
        """{ACTIVE, SUSPEND} -> ACTIVE, pushing the renewal date one offer period past ``now``."""
        subscription = self.get(subscription_id)
        self._apply_renewal(subscription, now or utc_now())
        self._commit(subscription)
        return subscription

    def suspend(self, subscription_id: int) -> Subscription:
        subscription = self.get(subscription_id)
        self._apply_suspension(subscription)
        self._commit(subscription)
        return subscription

    def update_status(
        self, subscription_id: int, status: SubscriptionStatus
    ) -> Subscription:
        """Manual status change, validated against the transition table."""
        subscription = self.get(subscription_id)
        current = SubscriptionStatus(subscription.status)
        if not is_transition_allowed(current, status):
            raise InvalidStateError(
                f"Cannot change subscription {subscription_id} from {current.value} to {status.value}"
            )
        if current == status:
            return subscription

        subscription.status = status.value  # type: ignore[assignment]
        if status == SubscriptionStatus.DEACTIVE:
            subscription.renewal_requested_at = None  # type: ignore[assignment]
        self._commit(subscription)
        logger.info(
            "Subscription %s manually moved %s -> %s",
            subscription_id,
            current.value,
            status.value,
        )
        return subscription

    def request_renewal(
        self,
        subscription_id: int,
        payment_method: str | None = None,
        now: datetime | None = None,
    ) -> Subscription:
        """Start a paid renewal by publishing a payment request.

        The subscription is only marked as awaiting payment once the broker
        has acknowledged the request; a publish failure leaves it untouched.
        """
        subscription = self.get(subscription_id)
        if SubscriptionStatus(subscription.status) not in RENEWABLE_STATUSES:
            raise InvalidStateError(
                f"Subscription {subscription_id} is {subscription.status} and cannot be renewed"
            )
        if subscription.renewal_requested_at is not None:
            raise InvalidStateError(
                f"Subscription {subscription_id} already has a renewal in progress"
            )
        offer = self._get_offer(subscription)

        message = PaymentRequestMessage(
            subscription_id=subscription.id,
            customer_id=subscription.customer_id,
            amount=offer.price,
            payment_method=payment_method or settings.DEFAULT_PAYMENT_METHOD,
            currency=settings.DEFAULT_CURRENCY,
            request_id=uuid.uuid4().hex,
        )

        subscription.renewal_requested_at = now or utc_now()  # type: ignore[assignment]
        self._flush(subscription)
        self._publish(
            settings.KAFKA_TOPIC_PAYMENT_REQUESTS, str(subscription.id), message
        )
        self._commit(subscription)
        logger.info(
            "Requested renewal payment for subscription %s (request %s, amount %s)",
            subscription.id,
            message.request_id,
            message.amount,
        )
        return subscription

    def apply_payment_event(
        self,
        event: PaymentEventMessage,
        consumer_group: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Advance or suspend a subscription from a payment outcome.

        Each (payment, status) pair takes effect at most once per consumer
        group; the processed-event record commits together with the change.

        Returns:
            True if the event changed the subscription.
        """
        group = consumer_group or settings.KAFKA_SUBSCRIPTION_GROUP
        if self.processed_repo.exists(group, event.event_key):
            logger.warning(
                "Skipping duplicate payment event %s for subscription %s",
                event.event_key,
                event.subscription_id,
            )
            return False

        subscription = self.get(event.subscription_id)
        changed = False
        if subscription.status == SubscriptionStatus.DEACTIVE.value:
            logger.info(
                "Ignoring payment event %s for deactivated subscription %s",
                event.event_key,
                subscription.id,
            )
        elif event.status == PaymentStatus.SUCCESS:
            self._apply_renewal(subscription, now or utc_now())
            subscription.last_payment_id = event.payment_id  # type: ignore[assignment]
            changed = True
        elif event.status == PaymentStatus.FAILED:
            self._apply_suspension(subscription)
            subscription.last_payment_id = event.payment_id  # type: ignore[assignment]
            changed = True
        else:
            logger.info(
                "No action for %s payment event %s", event.status.value, event.event_key
            )

        self.processed_repo.add(group, event.event_key)
        self._commit(subscription)
        if changed:
            logger.info(
                "Applied payment %s (%s) to subscription %s: now %s, next renewal %s",
                event.payment_id,
                event.status.value,
                subscription.id,
                subscription.status,
                subscription.next_renewal_date,
            )
        return changed

    # Batch jobs

    def renew_overdue_subscriptions(
        self, now: datetime | None = None, mode: str | None = None
    ) -> RenewalRunResult:
        """Renew every overdue subscription, isolating failures per subscription.

        ``mode`` "direct" extends the renewal date without charging; "saga"
        publishes a payment request and lets the payment outcome decide.
        """
        now = now or utc_now()
        mode = mode or settings.SCHEDULED_RENEWAL_MODE
        result = RenewalRunResult()
        overdue_ids = [int(s.id) for s in self.get_overdue(now)]
        logger.info("Found %d overdue subscriptions (mode=%s)", len(overdue_ids), mode)

        for subscription_id in overdue_ids:
            try:
                if mode == "saga":
                    subscription = self.get(subscription_id)
                    if subscription.renewal_requested_at is not None:
                        result.skipped += 1
                        continue
                    self.request_renewal(subscription_id, now=now)
                    result.requested += 1
                else:
                    self.renew(subscription_id, now=now)
                    result.renewed += 1
            except Exception:
                self.db.rollback()
                result.failed += 1
                logger.exception("Scheduled renewal failed for subscription %s", subscription_id)

        logger.info("Scheduled renewal run finished: %s", result.as_dict())
        return result

    def expire_stale_renewals(self, now: datetime | None = None) -> RenewalRunResult:
        """Suspend subscriptions whose payment request never got an outcome."""
        now = now or utc_now()
        cutoff = now - timedelta(minutes=settings.RENEWAL_SAGA_TIMEOUT_MINUTES)
        result = RenewalRunResult()
        stale_ids = [int(s.id) for s in self.subscription_repo.get_stale_renewals(cutoff)]

        for subscription_id in stale_ids:
            try:
                subscription = self.get(subscription_id)
                requested_at = as_utc(subscription.renewal_requested_at)
                if subscription.status != SubscriptionStatus.DEACTIVE.value:
                    subscription.status = SubscriptionStatus.SUSPEND.value  # type: ignore[assignment]
                subscription.renewal_requested_at = None  # type: ignore[assignment]
                self._flush(subscription)
                self._publish(
                    settings.KAFKA_TOPIC_RENEWAL_RECONCILIATION,
                    str(subscription.id),
                    RenewalReconciliationMessage(
                        subscription_id=subscription.id,
                        customer_id=subscription.customer_id,
                        renewal_requested_at=requested_at,
                        reason="No payment outcome within "
                        f"{settings.RENEWAL_SAGA_TIMEOUT_MINUTES} minutes",
                        event_time=now,
                    ),
                )
                self._commit(subscription)
                result.suspended += 1
                logger.warning(
                    "Renewal saga for subscription %s timed out (requested at %s); suspended",
                    subscription_id,
                    requested_at,
                )
            except Exception:
                self.db.rollback()
                result.failed += 1
                logger.exception("Failed to expire renewal for subscription %s", subscription_id)

        return result

    # Internals

    def _get_offer(self, subscription: Subscription) -> Offer:
        offer = self.offer_repo.get_by_id(subscription.offer_id)  # type: ignore[arg-type]
        if not offer:
            raise NotFoundError("Offer", subscription.offer_id)
        return offer

    def _apply_renewal(self, subscription: Subscription, now: datetime) -> None:
        if SubscriptionStatus(subscription.status) not in RENEWABLE_STATUSES:
            raise InvalidStateError(
                f"Subscription {subscription.id} is {subscription.status} and cannot be renewed"
            )
        # Period is re-read on every renewal; offers may change after subscribing
        offer = self._get_offer(subscription)
        subscription.status = SubscriptionStatus.ACTIVE.value  # type: ignore[assignment]
        subscription.next_renewal_date = next_renewal_date(now, int(offer.period))  # type: ignore[assignment]
        subscription.renewal_requested_at = None  # type: ignore[assignment]

    def _apply_suspension(self, subscription: Subscription) -> None:
        subscription.status = SubscriptionStatus.SUSPEND.value  # type: ignore[assignment]
        subscription.renewal_requested_at = None  # type: ignore[assignment]

    def _publish(self, topic: str, key: str, message: EventMessage) -> None:
        if self.producer is None:
            self.db.rollback()
            raise MessagingError("No event producer configured", topic, key)
        try:
            self.producer.publish(topic, key, message)
        except MessagingError:
            self.db.rollback()
            raise

    def _flush(self, subscription: Subscription) -> None:
        subscription_id = subscription.id
        try:
            self.db.flush()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrentUpdateError(
                f"Subscription {subscription_id} was modified concurrently"
            ) from exc

    def _commit(self, subscription: Subscription) -> None:
        subscription_id = subscription.id
        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrentUpdateError(
                f"Subscription {subscription_id} was modified concurrently"
            ) from exc
        self.db.refresh(subscription)
