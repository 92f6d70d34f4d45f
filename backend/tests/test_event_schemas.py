"""Tests for the event bus message contract."""

import json
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.models.payment import PaymentStatus
from app.schemas.events import (
    PaymentEventMessage,
    PaymentRequestMessage,
    RenewalReconciliationMessage,
)


class TestPaymentRequestMessage:
    def test_serializes_camel_case(self):
        message = PaymentRequestMessage(
            subscription_id=1,
            customer_id=2,
            amount=Decimal("29.99"),
            payment_method="CREDIT_CARD",
            currency="TRY",
            request_id="r-1",
        )
        payload = json.loads(message.to_json())
        assert payload == {
            "subscriptionId": 1,
            "customerId": 2,
            "amount": "29.99",
            "paymentMethod": "CREDIT_CARD",
            "currency": "TRY",
            "requestId": "r-1",
        }

    def test_parses_without_optional_fields(self):
        message = PaymentRequestMessage.from_json(
            b'{"subscriptionId": 5, "customerId": 6, "amount": 10, "paymentMethod": "PAYPAL"}'
        )
        assert message.subscription_id == 5
        assert message.amount == Decimal("10")
        assert message.currency is None
        assert message.request_id is None

    @pytest.mark.parametrize(
        "payload",
        [
            b'{"customerId": 6, "amount": 10, "paymentMethod": "PAYPAL"}',
            b'{"subscriptionId": 5, "customerId": 6, "amount": 0, "paymentMethod": "PAYPAL"}',
            b'{"subscriptionId": 5, "customerId": 6, "amount": 10, "paymentMethod": ""}',
            b"not json",
        ],
    )
    def test_rejects_invalid_payloads(self, payload):
        with pytest.raises(ValidationError):
            PaymentRequestMessage.from_json(payload)

    def test_is_immutable(self):
        message = PaymentRequestMessage(
            subscription_id=1, customer_id=2, amount=Decimal("1"), payment_method="X"
        )
        with pytest.raises(ValidationError):
            message.amount = Decimal("2")


class TestPaymentEventMessage:
    def _payload(self, **overrides):
        payload = {
            "paymentId": 10,
            "subscriptionId": 1,
            "customerId": 2,
            "amount": "29.99",
            "currency": "TRY",
            "status": "SUCCESS",
            "paymentMethod": "CREDIT_CARD",
            "eventTime": "2026-01-15T09:30:00Z",
        }
        payload.update(overrides)
        return json.dumps(payload)

    def test_parses_wire_format(self):
        event = PaymentEventMessage.from_json(self._payload())
        assert event.payment_id == 10
        assert event.status == PaymentStatus.SUCCESS
        assert event.event_time == datetime(2026, 1, 15, 9, 30, tzinfo=UTC)
        assert event.error_message is None

    def test_event_key_combines_payment_and_status(self):
        assert PaymentEventMessage.from_json(self._payload()).event_key == "10:SUCCESS"
        failed = PaymentEventMessage.from_json(self._payload(status="FAILED"))
        assert failed.event_key == "10:FAILED"

    def test_rejects_refunded(self):
        with pytest.raises(ValidationError, match="REFUNDED"):
            PaymentEventMessage.from_json(self._payload(status="REFUNDED"))

    def test_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            PaymentEventMessage.from_json(self._payload(status="CHARGEBACK"))

    def test_event_time_defaults_to_now(self):
        before = datetime.now(UTC)
        event = PaymentEventMessage(
            payment_id=1,
            subscription_id=1,
            customer_id=1,
            amount=Decimal("1"),
            currency="TRY",
            status=PaymentStatus.FAILED,
            payment_method="CREDIT_CARD",
        )
        assert event.event_time >= before

    def test_to_json_round_trips_status(self):
        event = PaymentEventMessage.from_json(self._payload(status="FAILED", errorMessage="x"))
        payload = json.loads(event.to_json())
        assert payload["status"] == "FAILED"
        assert payload["errorMessage"] == "x"
        assert payload["paymentId"] == 10


class TestRenewalReconciliationMessage:
    def test_serializes(self):
        message = RenewalReconciliationMessage(
            subscription_id=1,
            customer_id=2,
            renewal_requested_at=datetime(2026, 1, 15, tzinfo=UTC),
            reason="No payment outcome within 60 minutes",
        )
        payload = json.loads(message.to_json())
        assert payload["subscriptionId"] == 1
        assert payload["renewalRequestedAt"].startswith("2026-01-15T00:00:00")
        assert payload["reason"] == "No payment outcome within 60 minutes"
        assert "eventTime" in payload
