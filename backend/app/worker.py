import logging
from typing import Any

from arq import cron

from app.core.config import settings
from app.core.database import SessionLocal
from app.messaging.producer import close_event_producer, get_event_producer
from app.repositories.idempotency_repository import IdempotencyRepository
from app.repositories.processed_event_repository import ProcessedEventRepository
from app.services.notification_service import NotificationService
from app.services.payment_service import PaymentService
from app.services.subscription_lifecycle import SubscriptionLifecycleService
from app.tasks import redis_settings

logger = logging.getLogger(__name__)


async def renew_overdue_subscriptions_task(
    ctx: dict[str, Any], mode: str | None = None
) -> dict[str, int]:
    """Background task: renew overdue subscriptions.

    Runs daily at midnight UTC. ``mode`` overrides SCHEDULED_RENEWAL_MODE
    for a manually enqueued run.
    """
    db = SessionLocal()
    try:
        mode = mode or settings.SCHEDULED_RENEWAL_MODE
        # Direct renewals publish nothing
        producer = get_event_producer() if mode == "saga" else None
        service = SubscriptionLifecycleService(db, producer)
        result = service.renew_overdue_subscriptions(mode=mode)
        return result.as_dict()
    finally:
        db.close()


async def expire_stale_renewals_task(ctx: dict[str, Any]) -> int:
    """Background task: suspend subscriptions whose renewal saga timed out.

    Runs every 5 minutes.
    """
    db = SessionLocal()
    try:
        service = SubscriptionLifecycleService(db, get_event_producer())
        result = service.expire_stale_renewals()
        if result.suspended > 0:
            logger.info("Suspended %d subscriptions with timed out renewals", result.suspended)
        return result.suspended
    finally:
        db.close()


async def expire_stale_payments_task(ctx: dict[str, Any]) -> int:
    """Background task: fail payments left PENDING past the timeout.

    Runs every 5 minutes.
    """
    db = SessionLocal()
    try:
        service = PaymentService(db, get_event_producer())
        result = service.expire_stale_payments()
        return result.failed
    finally:
        db.close()


async def retry_notifications_task(ctx: dict[str, Any]) -> int:
    """Background task: retry notifications whose backoff elapsed.

    Runs every 5 minutes.
    """
    db = SessionLocal()
    try:
        service = NotificationService(db)
        result = await service.retry_due()
        if result.sent or result.failed or result.retrying:
            logger.info(
                "Notification retries: %d sent, %d still retrying, %d failed",
                result.sent,
                result.retrying,
                result.failed,
            )
        return result.sent
    finally:
        db.close()


async def purge_processed_events_task(ctx: dict[str, Any]) -> int:
    """Background task: drop processed-event and idempotency records past their TTL.

    Runs daily.
    """
    db = SessionLocal()
    try:
        events = ProcessedEventRepository(db).delete_expired(settings.PROCESSED_EVENT_TTL_HOURS)
        records = IdempotencyRepository(db).delete_expired(settings.IDEMPOTENCY_TTL_HOURS)
        if events or records:
            logger.info(
                "Purged %d processed events and %d idempotency records", events, records
            )
        return events + records
    finally:
        db.close()


async def shutdown(ctx: dict[str, Any]) -> None:
    close_event_producer()


EVERY_FIVE_MINUTES = {0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55}


class WorkerSettings:
    functions = [
        renew_overdue_subscriptions_task,
        expire_stale_renewals_task,
        expire_stale_payments_task,
        retry_notifications_task,
        purge_processed_events_task,
    ]
    cron_jobs = [
        cron(renew_overdue_subscriptions_task, hour=0, minute=0),  # daily at midnight
        cron(expire_stale_renewals_task, minute=EVERY_FIVE_MINUTES),
        cron(expire_stale_payments_task, minute=EVERY_FIVE_MINUTES),
        cron(retry_notifications_task, minute=EVERY_FIVE_MINUTES),
        cron(purge_processed_events_task, hour=3, minute=30),  # daily
    ]
    on_shutdown = shutdown
    redis_settings = redis_settings
