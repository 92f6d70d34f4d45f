"""Tests for NotificationService and the payment notification templates."""

import logging
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from app.models.payment import PaymentStatus
from app.models.shared import as_utc
from app.schemas.events import PaymentEventMessage
from app.services.notification_service import NotificationService
from app.services.notification_templates import (
    format_amount,
    notification_type_for,
    render_content,
    render_subject,
)
from tests.conftest import T0


def _event(status=PaymentStatus.SUCCESS, payment_id=42, **kwargs) -> PaymentEventMessage:
    defaults = {
        "payment_id": payment_id,
        "subscription_id": 3,
        "customer_id": 8,
        "amount": Decimal("1234.5"),
        "currency": "TRY",
        "status": status,
        "payment_method": "CREDIT_CARD",
        "event_time": datetime(2026, 1, 15, 9, 30, tzinfo=UTC),
    }
    defaults.update(kwargs)
    return PaymentEventMessage(**defaults)


def _service(db_session, email_side_effect=None, push_side_effect=None) -> NotificationService:
    email = MagicMock()
    email.send_email = AsyncMock(return_value=True, side_effect=email_side_effect)
    push = MagicMock()
    push.send_push = AsyncMock(return_value=True, side_effect=push_side_effect)
    return NotificationService(db_session, email_service=email, push_service=push)


class TestTemplates:
    def test_format_amount(self):
        assert format_amount(Decimal("1234.5")) == "$1,234.50"
        assert format_amount(Decimal("0")) == "$0.00"

    def test_types(self):
        assert notification_type_for(PaymentStatus.SUCCESS) == NotificationType.PAYMENT_SUCCESS
        assert notification_type_for(PaymentStatus.FAILED) == NotificationType.PAYMENT_FAILED
        assert notification_type_for(PaymentStatus.PENDING) == NotificationType.PAYMENT_PENDING

    def test_subjects(self):
        assert render_subject(PaymentStatus.SUCCESS) == "Payment Successful - Subscription Renewed"
        assert render_subject(PaymentStatus.FAILED) == "Payment Failed - Action Required"
        assert render_subject(PaymentStatus.PENDING) == "Payment Processing - Please Wait"
        assert render_subject(PaymentStatus.REFUNDED) == "Payment Notification"

    def test_success_content(self):
        content = render_content(_event())
        assert "processed successfully" in content
        assert "- Amount: $1,234.50 TRY" in content
        assert "- Transaction ID: 42" in content
        assert "- Date: 2026-01-15T09:30:00+00:00" in content
        assert content.endswith("Subscription System Team\n")

    def test_failed_content_uses_reason(self):
        content = render_content(_event(PaymentStatus.FAILED, error_message="Card expired"))
        assert "- Reason: Card expired" in content

    def test_failed_content_default_reason(self):
        content = render_content(_event(PaymentStatus.FAILED))
        assert "- Reason: Payment declined" in content

    def test_pending_content(self):
        assert "being processed" in render_content(_event(PaymentStatus.PENDING))


class TestHandlePaymentEvent:
    @pytest.mark.asyncio
    async def test_records_and_sends(self, db_session):
        service = _service(db_session)

        notification = await service.handle_payment_event(_event())

        assert notification is not None
        assert notification.status == NotificationStatus.SENT.value
        assert notification.type == NotificationType.PAYMENT_SUCCESS.value
        assert notification.channel == NotificationChannel.EMAIL.value
        assert notification.recipient == "customer8@example.com"
        assert notification.related_entity_id == 42
        assert notification.sent_at is not None
        assert notification.retry_count == 0
        service.email_service.send_email.assert_awaited_once()
        kwargs = service.email_service.send_email.call_args.kwargs
        assert kwargs["to"] == "customer8@example.com"
        assert kwargs["subject"] == "Payment Successful - Subscription Renewed"

    @pytest.mark.asyncio
    async def test_duplicate_event_is_skipped(self, db_session):
        service = _service(db_session)
        event = _event()

        assert await service.handle_payment_event(event) is not None
        assert await service.handle_payment_event(event) is None

        assert db_session.query(Notification).count() == 1
        service.email_service.send_email.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_success_and_failure_of_same_payment_are_distinct(self, db_session):
        service = _service(db_session)
        await service.handle_payment_event(_event(PaymentStatus.PENDING))
        await service.handle_payment_event(_event(PaymentStatus.SUCCESS))
        assert db_session.query(Notification).count() == 2

    @pytest.mark.asyncio
    async def test_send_failure_schedules_retry(self, db_session):
        service = _service(db_session, email_side_effect=ConnectionError("smtp down"))

        notification = await service.handle_payment_event(_event())

        assert notification.status == NotificationStatus.RETRYING.value
        assert notification.retry_count == 1
        assert "ConnectionError: smtp down" in notification.error_message
        assert notification.next_retry_at is not None

    def test_record_only_leaves_pending(self, db_session):
        notification = _service(db_session).record_payment_event(_event(PaymentStatus.FAILED))
        assert notification.status == NotificationStatus.PENDING.value
        assert notification.max_retries == settings.NOTIFICATION_MAX_RETRIES
        assert notification.subject == "Payment Failed - Action Required"


class TestDeliver:
    @pytest.mark.asyncio
    async def test_backoff_doubles_per_attempt(self, db_session):
        service = _service(db_session, email_side_effect=ConnectionError("down"))
        notification = service.record_payment_event(_event())

        assert await service.deliver(notification, now=T0) is False
        assert as_utc(notification.next_retry_at) == T0 + timedelta(minutes=2)

        assert await service.deliver(notification, now=T0) is False
        assert notification.retry_count == 2
        assert as_utc(notification.next_retry_at) == T0 + timedelta(minutes=4)

    @pytest.mark.asyncio
    async def test_marks_failed_after_max_retries(self, db_session, caplog):
        service = _service(db_session, email_side_effect=ConnectionError("down"))
        notification = service.record_payment_event(_event())
        notification.max_retries = 2
        db_session.commit()

        await service.deliver(notification, now=T0)
        with caplog.at_level(logging.ERROR, logger="app.services.notification_service"):
            await service.deliver(notification, now=T0)

        assert notification.status == NotificationStatus.FAILED.value
        assert notification.retry_count == 2
        assert notification.next_retry_at is None
        assert any("failed permanently" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_success_after_retry_clears_error(self, db_session):
        service = _service(db_session, email_side_effect=[ConnectionError("down"), True])
        notification = service.record_payment_event(_event())

        await service.deliver(notification, now=T0)
        assert await service.deliver(notification, now=T0 + timedelta(minutes=3)) is True

        assert notification.status == NotificationStatus.SENT.value
        assert notification.error_message is None
        assert notification.next_retry_at is None
        assert as_utc(notification.sent_at) == T0 + timedelta(minutes=3)

    @pytest.mark.asyncio
    async def test_push_channel(self, db_session):
        service = _service(db_session)
        notification = service.record_payment_event(_event(), channel=NotificationChannel.PUSH)

        assert await service.deliver(notification) is True
        service.push_service.send_push.assert_awaited_once()
        service.email_service.send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_push_failure_retries(self, db_session):
        service = _service(db_session, push_side_effect=RuntimeError("gateway 503"))
        notification = service.record_payment_event(_event(), channel=NotificationChannel.PUSH)

        assert await service.deliver(notification, now=T0) is False
        assert notification.status == NotificationStatus.RETRYING.value

    @pytest.mark.asyncio
    async def test_sms_channel_is_logged_as_sent(self, db_session):
        service = _service(db_session)
        notification = service.record_payment_event(_event(), channel=NotificationChannel.SMS)

        assert await service.deliver(notification) is True
        service.email_service.send_email.assert_not_called()
        service.push_service.send_push.assert_not_called()


class TestRetryDue:
    @pytest.mark.asyncio
    async def test_only_due_notifications_are_retried(self, db_session):
        service = _service(db_session, email_side_effect=ConnectionError("down"))
        due = service.record_payment_event(_event(payment_id=1))
        later = service.record_payment_event(_event(payment_id=2))
        await service.deliver(due, now=T0 - timedelta(minutes=10))
        await service.deliver(later, now=T0)

        service.email_service.send_email = AsyncMock(return_value=True)
        result = await service.retry_due(now=T0)

        assert result.sent == 1
        assert result.retrying == 0
        assert result.failed == 0
        assert due.status == NotificationStatus.SENT.value
        assert later.status == NotificationStatus.RETRYING.value

    @pytest.mark.asyncio
    async def test_counts_outcomes(self, db_session):
        service = _service(db_session, email_side_effect=ConnectionError("down"))
        final = service.record_payment_event(_event(payment_id=1))
        final.max_retries = 2
        again = service.record_payment_event(_event(payment_id=2))
        db_session.commit()
        await service.deliver(final, now=T0 - timedelta(hours=1))
        await service.deliver(again, now=T0 - timedelta(hours=1))

        result = await service.retry_due(now=T0)

        assert result.failed == 1
        assert result.retrying == 1
        assert final.status == NotificationStatus.FAILED.value

    @pytest.mark.asyncio
    async def test_pending_left_by_lost_first_delivery_is_sent(self, db_session):
        service = _service(db_session)
        event = _event()
        # Recorded, then the process died before the first delivery
        notification = service.record_payment_event(event)
        assert await service.handle_payment_event(event) is None
        service.email_service.send_email.assert_not_awaited()

        notification.created_at = T0 - timedelta(
            minutes=settings.NOTIFICATION_PENDING_GRACE_MINUTES + 1
        )
        db_session.commit()
        result = await service.retry_due(now=T0)

        assert result.sent == 1
        assert notification.status == NotificationStatus.SENT.value
        service.email_service.send_email.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_recent_pending_is_left_for_first_delivery(self, db_session):
        service = _service(db_session)
        notification = service.record_payment_event(_event())
        notification.created_at = T0 - timedelta(minutes=1)
        db_session.commit()

        result = await service.retry_due(now=T0)

        assert result.sent == 0
        assert notification.status == NotificationStatus.PENDING.value
        service.email_service.send_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nothing_due(self, db_session):
        result = await _service(db_session).retry_due(now=T0)
        assert (result.sent, result.retrying, result.failed) == (0, 0, 0)


class TestReads:
    def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError):
            _service(db_session).get(1)

    def test_list_filters(self, db_session):
        service = _service(db_session)
        service.record_payment_event(_event(payment_id=1))
        service.record_payment_event(_event(payment_id=2, customer_id=9))

        assert len(service.list_notifications()) == 2
        assert len(service.list_notifications(customer_id=9)) == 1
        assert len(service.list_notifications(status=NotificationStatus.SENT)) == 0
