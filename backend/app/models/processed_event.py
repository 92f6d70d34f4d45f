"""ProcessedEvent model - per-consumer-group record of applied events."""

from sqlalchemy import Column, DateTime, String, UniqueConstraint, func

from app.core.database import Base
from app.models.shared import IdentityType


class ProcessedEvent(Base):
    __tablename__ = "processed_events"
    __table_args__ = (
        UniqueConstraint("consumer_group", "event_key", name="uq_processed_events_group_key"),
    )

    id = Column(IdentityType, primary_key=True, autoincrement=True)
    consumer_group = Column(String(255), nullable=False)
    event_key = Column(String(255), nullable=False)
    processed_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
