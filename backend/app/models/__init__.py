from app.models.failed_message import FailedMessage
from app.models.idempotency_record import IdempotencyRecord
from app.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from app.models.offer import Offer, OfferStatus
from app.models.payment import Payment, PaymentStatus
from app.models.processed_event import ProcessedEvent
from app.models.subscription import Subscription, SubscriptionStatus

__all__ = [
    "FailedMessage",
    "IdempotencyRecord",
    "Notification",
    "NotificationChannel",
    "NotificationStatus",
    "NotificationType",
    "Offer",
    "OfferStatus",
    "Payment",
    "PaymentStatus",
    "ProcessedEvent",
    "Subscription",
    "SubscriptionStatus",
]
