"""Payment schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PaymentCreate(BaseModel):
    """Schema for creating a payment."""

    subscription_id: int
    customer_id: int
    amount: Decimal = Field(..., ge=Decimal("0.01"), max_digits=10, decimal_places=2)
    payment_method: str = Field(..., min_length=1, max_length=50)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    description: str | None = None
    request_id: str | None = Field(default=None, max_length=255)


class PaymentFailRequest(BaseModel):
    reason: str | None = None


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    subscription_id: int
    customer_id: int
    amount: Decimal
    currency: str
    status: str
    payment_method: str
    provider_transaction_id: str | None = None
    description: str | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
