"""Service for notifying customers about payment outcomes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.notification import Notification, NotificationChannel, NotificationStatus
from app.models.shared import utc_now
from app.repositories.notification_repository import NotificationRepository
from app.repositories.processed_event_repository import ProcessedEventRepository
from app.schemas.events import PaymentEventMessage
from app.services.email_service import EmailService
from app.services.notification_templates import (
    notification_type_for,
    render_content,
    render_subject,
)
from app.services.push_service import PushService

logger = logging.getLogger(__name__)


@dataclass
class RetryRunResult:
    sent: int = 0
    retrying: int = 0
    failed: int = 0


class NotificationService:
    """Renders, records and delivers payment notifications.

    Delivery failures never propagate to the caller: the notification moves
    to RETRYING with exponential backoff (2^retry_count minutes) and is picked
    up again by ``retry_due`` until ``max_retries`` is reached, at which point
    it is marked FAILED and an error is logged for operators.
    """

    def __init__(
        self,
        db: Session,
        email_service: EmailService | None = None,
        push_service: PushService | None = None,
    ):
        self.db = db
        self.repo = NotificationRepository(db)
        self.processed_repo = ProcessedEventRepository(db)
        self.email_service = email_service or EmailService()
        self.push_service = push_service or PushService()

    def get(self, notification_id: int) -> Notification:
        notification = self.repo.get_by_id(notification_id)
        if not notification:
            raise NotFoundError("Notification", notification_id)
        return notification

    def list_notifications(
        self,
        customer_id: int | None = None,
        status: NotificationStatus | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Notification]:
        return self.repo.get_all(customer_id=customer_id, status=status, skip=skip, limit=limit)

    def record_payment_event(
        self,
        event: PaymentEventMessage,
        consumer_group: str | None = None,
        channel: NotificationChannel = NotificationChannel.EMAIL,
    ) -> Notification | None:
        """Persist a PENDING notification for a payment event, once per event.

        Returns None when the event was already handled by this group.
        """
        group = consumer_group or settings.KAFKA_NOTIFICATION_GROUP
        if self.processed_repo.exists(group, event.event_key):
            logger.warning("Skipping duplicate payment event %s for notifications", event.event_key)
            return None

        notification = self.repo.create(
            customer_id=event.customer_id,
            type=notification_type_for(event.status).value,
            channel=channel.value,
            recipient=settings.NOTIFICATION_RECIPIENT_TEMPLATE.format(
                customer_id=event.customer_id
            ),
            subject=render_subject(event.status),
            content=render_content(event),
            related_entity_id=event.payment_id,
            max_retries=settings.NOTIFICATION_MAX_RETRIES,
        )
        self.processed_repo.add(group, event.event_key)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    async def handle_payment_event(
        self, event: PaymentEventMessage, consumer_group: str | None = None
    ) -> Notification | None:
        """Record the notification durably, then attempt the first delivery."""
        notification = self.record_payment_event(event, consumer_group)
        if notification is None:
            return None
        await self.deliver(notification)
        return notification

    async def deliver(self, notification: Notification, now: datetime | None = None) -> bool:
        """Attempt one delivery and record the outcome.

        Returns:
            True if the notification was sent.
        """
        now = now or utc_now()
        try:
            await self._send(notification)
        except Exception as exc:
            self._record_failure(notification, exc, now)
            self.db.commit()
            return False

        notification.status = NotificationStatus.SENT.value  # type: ignore[assignment]
        notification.sent_at = now  # type: ignore[assignment]
        notification.next_retry_at = None  # type: ignore[assignment]
        notification.error_message = None  # type: ignore[assignment]
        self.db.commit()
        logger.info(
            "Notification %s sent to %s via %s",
            notification.id,
            notification.recipient,
            notification.channel,
        )
        return True

    async def retry_due(self, now: datetime | None = None, limit: int = 100) -> RetryRunResult:
        """Re-attempt RETRYING notifications whose backoff has elapsed.

        PENDING notifications older than the grace window are picked up too:
        their first delivery was lost after the row was recorded.
        """
        now = now or utc_now()
        pending_cutoff = now - timedelta(minutes=settings.NOTIFICATION_PENDING_GRACE_MINUTES)
        result = RetryRunResult()
        for notification in self.repo.get_due_for_retry(now, pending_cutoff, limit=limit):
            if await self.deliver(notification, now):
                result.sent += 1
            elif notification.status == NotificationStatus.FAILED.value:
                result.failed += 1
            else:
                result.retrying += 1
        return result

    async def _send(self, notification: Notification) -> None:
        channel = NotificationChannel(notification.channel)
        if channel == NotificationChannel.EMAIL:
            await self.email_service.send_email(
                to=str(notification.recipient),
                subject=str(notification.subject),
                body=str(notification.content),
            )
        elif channel == NotificationChannel.PUSH:
            await self.push_service.send_push(
                recipient=str(notification.recipient),
                title=str(notification.subject),
                body=str(notification.content),
            )
        else:
            # No SMS provider is wired up yet
            logger.info("SMS channel not configured, skipping sms to %s", notification.recipient)

    def _record_failure(self, notification: Notification, exc: Exception, now: datetime) -> None:
        notification.retry_count = int(notification.retry_count or 0) + 1  # type: ignore[assignment]
        notification.error_message = f"{type(exc).__name__}: {exc}"[:1000]  # type: ignore[assignment]

        if notification.retry_count >= notification.max_retries:
            notification.status = NotificationStatus.FAILED.value  # type: ignore[assignment]
            notification.next_retry_at = None  # type: ignore[assignment]
            logger.error(
                "Notification %s to %s failed permanently after %d attempts: %s",
                notification.id,
                notification.recipient,
                notification.retry_count,
                notification.error_message,
            )
            return

        backoff = timedelta(minutes=2 ** int(notification.retry_count))
        notification.status = NotificationStatus.RETRYING.value  # type: ignore[assignment]
        notification.next_retry_at = now + backoff  # type: ignore[assignment]
        logger.warning(
            "Notification %s delivery failed (attempt %d/%d), retrying at %s: %s",
            notification.id,
            notification.retry_count,
            notification.max_retries,
            notification.next_retry_at,
            notification.error_message,
        )
