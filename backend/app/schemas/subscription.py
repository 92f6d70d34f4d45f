from datetime import datetime

from pydantic import BaseModel, Field

from app.core.config import settings
from app.models.subscription import SubscriptionStatus


class SubscriptionCreate(BaseModel):
    offer_id: int


class SubscriptionUpdate(BaseModel):
    status: SubscriptionStatus


class RenewalRequest(BaseModel):
    """Body of a user-driven renewal. Optional; defaults the payment method."""

    payment_method: str = Field(
        default_factory=lambda: settings.DEFAULT_PAYMENT_METHOD, min_length=1, max_length=50
    )


class SubscriptionResponse(BaseModel):
    id: int
    customer_id: int
    offer_id: int
    status: SubscriptionStatus
    next_renewal_date: datetime
    renewal_requested_at: datetime | None
    last_payment_id: int | None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
