"""Offer model - the priced, periodic product a customer subscribes to."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, func

from app.core.database import Base
from app.models.shared import IdentityType


class OfferStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Offer(Base):
    __tablename__ = "offers"

    id = Column(IdentityType, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    period = Column(Integer, nullable=False)  # months
    status = Column(String(20), nullable=False, default=OfferStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
