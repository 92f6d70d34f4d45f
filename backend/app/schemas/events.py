"""Wire contract for messages exchanged over the event bus.

Messages are JSON with camelCase field names. Decimals travel as strings and
timestamps as ISO-8601 UTC. All message models are immutable.
"""

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.payment import PaymentStatus


def _utc_now() -> datetime:
    return datetime.now(UTC)


class EventMessage(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes | str):
        return cls.model_validate_json(raw)


class PaymentRequestMessage(EventMessage):
    """Ask the payment engine to charge a subscription renewal."""

    subscription_id: int
    customer_id: int
    amount: Decimal = Field(..., ge=Decimal("0.01"))
    payment_method: str = Field(..., min_length=1)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    request_id: str | None = None


class PaymentEventMessage(EventMessage):
    """Outcome of a payment, keyed by subscription id on the wire."""

    payment_id: int
    subscription_id: int
    customer_id: int
    amount: Decimal
    currency: str = Field(..., min_length=3, max_length=3)
    status: PaymentStatus
    payment_method: str
    error_message: str | None = None
    event_time: datetime = Field(default_factory=_utc_now)

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: PaymentStatus) -> PaymentStatus:
        if value == PaymentStatus.REFUNDED:
            raise ValueError("REFUNDED is not a payment event status")
        return value

    @property
    def event_key(self) -> str:
        """Dedup key for consumers: one effect per payment outcome."""
        return f"{self.payment_id}:{self.status.value}"


class RenewalReconciliationMessage(EventMessage):
    """Published when a renewal saga times out without a payment outcome."""

    subscription_id: int
    customer_id: int
    renewal_requested_at: datetime
    reason: str
    event_time: datetime = Field(default_factory=_utc_now)
