"""Message handlers, one per consumer group.

Each handler decodes the payload (a ``pydantic.ValidationError`` sends the
message straight to quarantine), then delegates to its engine. Handlers must
be safe to run again with the same message.
"""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.config import settings
from app.messaging.consumer import ConsumedMessage, MessageHandler
from app.schemas.events import PaymentEventMessage, PaymentRequestMessage
from app.services.notification_service import NotificationService
from app.services.payment_service import PaymentService
from app.services.subscription_lifecycle import SubscriptionLifecycleService

logger = logging.getLogger(__name__)


def handle_payment_request(db: Session, message: ConsumedMessage) -> None:
    request = PaymentRequestMessage.from_json(message.value)
    payment = PaymentService(db).handle_payment_request(
        request, fallback_request_id=message.delivery_id
    )
    logger.info(
        "Payment request for subscription %s recorded as payment %s",
        request.subscription_id,
        payment.id,
    )


def handle_payment_event_for_subscription(db: Session, message: ConsumedMessage) -> None:
    event = PaymentEventMessage.from_json(message.value)
    SubscriptionLifecycleService(db).apply_payment_event(
        event, consumer_group=settings.KAFKA_SUBSCRIPTION_GROUP
    )


def handle_payment_event_for_notification(db: Session, message: ConsumedMessage) -> None:
    event = PaymentEventMessage.from_json(message.value)
    asyncio.run(
        NotificationService(db).handle_payment_event(
            event, consumer_group=settings.KAFKA_NOTIFICATION_GROUP
        )
    )


@dataclass(frozen=True)
class ConsumerBinding:
    group_id: str
    topics: list[str]
    handler: MessageHandler


def consumer_bindings() -> dict[str, ConsumerBinding]:
    """Consumer groups keyed by their short name."""
    return {
        "payment": ConsumerBinding(
            group_id=settings.KAFKA_PAYMENT_GROUP,
            topics=[settings.KAFKA_TOPIC_PAYMENT_REQUESTS],
            handler=handle_payment_request,
        ),
        "subscription": ConsumerBinding(
            group_id=settings.KAFKA_SUBSCRIPTION_GROUP,
            topics=[settings.KAFKA_TOPIC_PAYMENT_EVENTS],
            handler=handle_payment_event_for_subscription,
        ),
        "notification": ConsumerBinding(
            group_id=settings.KAFKA_NOTIFICATION_GROUP,
            topics=[settings.KAFKA_TOPIC_PAYMENT_EVENTS],
            handler=handle_payment_event_for_notification,
        ),
    }
