from app.repositories.failed_message_repository import FailedMessageRepository
from app.repositories.idempotency_repository import IdempotencyRepository
from app.repositories.notification_repository import NotificationRepository
from app.repositories.offer_repository import OfferRepository
from app.repositories.payment_repository import PaymentRepository
from app.repositories.processed_event_repository import ProcessedEventRepository
from app.repositories.subscription_repository import SubscriptionRepository

__all__ = [
    "FailedMessageRepository",
    "IdempotencyRepository",
    "NotificationRepository",
    "OfferRepository",
    "PaymentRepository",
    "ProcessedEventRepository",
    "SubscriptionRepository",
]
