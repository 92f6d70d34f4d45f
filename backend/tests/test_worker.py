"""Tests for worker background tasks and cron job registration."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core import database as db_module
from app.core.config import settings
from app.models.idempotency_record import IdempotencyRecord
from app.models.processed_event import ProcessedEvent
from app.models.subscription import SubscriptionStatus
from app.services.notification_service import RetryRunResult
from app.services.payment_service import PaymentExpiryResult
from app.services.subscription_lifecycle import RenewalRunResult
from app.worker import (
    WorkerSettings,
    expire_stale_payments_task,
    expire_stale_renewals_task,
    purge_processed_events_task,
    renew_overdue_subscriptions_task,
    retry_notifications_task,
    shutdown,
)


@pytest.fixture
def worker_db(producer):
    """Point the worker at the test database and the recording producer."""
    with (
        patch("app.worker.SessionLocal", db_module.SessionLocal),
        patch("app.worker.get_event_producer", return_value=producer),
    ):
        yield


class TestRenewOverdueSubscriptionsTask:
    @pytest.mark.asyncio
    async def test_renews_overdue_in_direct_mode(
        self, worker_db, db_session, make_offer, make_subscription
    ):
        sub = make_subscription(make_offer(), next_renewal_date=datetime(2026, 1, 1, tzinfo=UTC))

        result = await renew_overdue_subscriptions_task({}, mode="direct")

        assert result["renewed"] == 1
        assert result["failed"] == 0
        db_session.refresh(sub)
        assert sub.status == SubscriptionStatus.ACTIVE.value
        assert sub.version == 2

    @pytest.mark.asyncio
    async def test_saga_mode_publishes_requests(
        self, worker_db, producer, make_offer, make_subscription
    ):
        make_subscription(make_offer(), next_renewal_date=datetime(2026, 1, 1, tzinfo=UTC))

        result = await renew_overdue_subscriptions_task({}, mode="saga")

        assert result["requested"] == 1
        assert len(producer.messages(settings.KAFKA_TOPIC_PAYMENT_REQUESTS)) == 1

    @pytest.mark.asyncio
    async def test_direct_mode_does_not_build_producer(self):
        mock_service = MagicMock()
        mock_service.renew_overdue_subscriptions.return_value = RenewalRunResult(renewed=2)

        with (
            patch.object(settings, "SCHEDULED_RENEWAL_MODE", "direct"),
            patch(
                "app.worker.SubscriptionLifecycleService", return_value=mock_service
            ) as service_cls,
            patch("app.worker.get_event_producer") as get_producer,
        ):
            result = await renew_overdue_subscriptions_task({})

        assert result["renewed"] == 2
        get_producer.assert_not_called()
        assert service_cls.call_args.args[1] is None
        mock_service.renew_overdue_subscriptions.assert_called_once_with(mode="direct")

    @pytest.mark.asyncio
    async def test_configured_saga_mode_builds_producer(self):
        mock_service = MagicMock()
        mock_service.renew_overdue_subscriptions.return_value = RenewalRunResult(requested=1)
        producer = MagicMock()

        with (
            patch.object(settings, "SCHEDULED_RENEWAL_MODE", "saga"),
            patch(
                "app.worker.SubscriptionLifecycleService", return_value=mock_service
            ) as service_cls,
            patch("app.worker.get_event_producer", return_value=producer),
        ):
            result = await renew_overdue_subscriptions_task({})

        assert result["requested"] == 1
        assert service_cls.call_args.args[1] is producer
        mock_service.renew_overdue_subscriptions.assert_called_once_with(mode="saga")


class TestExpireStaleRenewalsTask:
    @pytest.mark.asyncio
    async def test_returns_suspended_count(self, worker_db, make_offer, make_subscription):
        make_subscription(
            make_offer(), renewal_requested_at=datetime.now(UTC) - timedelta(days=1)
        )
        assert await expire_stale_renewals_task({}) == 1

    @pytest.mark.asyncio
    async def test_nothing_stale(self, worker_db):
        assert await expire_stale_renewals_task({}) == 0


class TestExpireStalePaymentsTask:
    @pytest.mark.asyncio
    async def test_returns_failed_count(self):
        mock_service = MagicMock()
        mock_service.expire_stale_payments.return_value = PaymentExpiryResult(failed=3)

        with (
            patch("app.worker.PaymentService", return_value=mock_service),
            patch("app.worker.get_event_producer"),
        ):
            result = await expire_stale_payments_task({})

        assert result == 3
        mock_service.expire_stale_payments.assert_called_once()


class TestRetryNotificationsTask:
    @pytest.mark.asyncio
    async def test_returns_sent_count(self):
        mock_service = MagicMock()
        mock_service.retry_due = AsyncMock(return_value=RetryRunResult(sent=2, retrying=1))

        with patch("app.worker.NotificationService", return_value=mock_service):
            result = await retry_notifications_task({})

        assert result == 2
        mock_service.retry_due.assert_awaited_once()


class TestPurgeProcessedEventsTask:
    @pytest.mark.asyncio
    async def test_purges_expired_records(self, worker_db, db_session):
        old = datetime.now(UTC) - timedelta(hours=settings.PROCESSED_EVENT_TTL_HOURS + 1)
        db_session.add(ProcessedEvent(consumer_group="g", event_key="1:SUCCESS", processed_at=old))
        db_session.add(
            ProcessedEvent(
                consumer_group="g", event_key="2:SUCCESS", processed_at=datetime.now(UTC)
            )
        )
        db_session.add(
            IdempotencyRecord(
                idempotency_key="old-key",
                request_method="POST",
                request_path="/v1/payments/",
                created_at=datetime.now(UTC) - timedelta(hours=settings.IDEMPOTENCY_TTL_HOURS + 1),
            )
        )
        db_session.commit()

        result = await purge_processed_events_task({})

        assert result == 2
        assert [e.event_key for e in db_session.query(ProcessedEvent).all()] == ["2:SUCCESS"]
        assert db_session.query(IdempotencyRecord).count() == 0


class TestShutdown:
    @pytest.mark.asyncio
    async def test_closes_producer(self):
        with patch("app.worker.close_event_producer") as close:
            await shutdown({})
        close.assert_called_once()


class TestWorkerSettings:
    def test_functions_registered(self):
        names = {f.__name__ for f in WorkerSettings.functions}
        assert names == {
            "renew_overdue_subscriptions_task",
            "expire_stale_renewals_task",
            "expire_stale_payments_task",
            "retry_notifications_task",
            "purge_processed_events_task",
        }

    def test_cron_jobs(self):
        crons = {job.coroutine.__name__: job for job in WorkerSettings.cron_jobs}
        assert len(crons) == 5
        renewal = crons["renew_overdue_subscriptions_task"]
        assert renewal.hour == 0
        assert renewal.minute == 0
        assert crons["retry_notifications_task"].minute == {
            0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55,
        }

    def test_shutdown_hook(self):
        assert WorkerSettings.on_shutdown is shutdown
