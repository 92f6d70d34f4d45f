from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.offer import OfferStatus


class OfferCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    period: int = Field(..., ge=1, description="Renewal interval in months")
    status: OfferStatus = OfferStatus.ACTIVE


class OfferResponse(BaseModel):
    id: int
    name: str
    description: str
    price: Decimal
    period: int
    status: OfferStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
