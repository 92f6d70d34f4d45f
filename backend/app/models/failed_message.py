"""FailedMessage model - quarantined messages that exhausted their delivery budget."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import IdentityType


class FailedMessage(Base):
    __tablename__ = "failed_messages"

    id = Column(IdentityType, primary_key=True, autoincrement=True)
    consumer_group = Column(String(255), nullable=False, index=True)
    topic = Column(String(255), nullable=False, index=True)
    partition = Column(Integer, nullable=False)
    offset = Column(IdentityType, nullable=False)
    message_key = Column(String(255), nullable=True)
    payload = Column(Text, nullable=True)
    error_type = Column(String(255), nullable=False)
    error_message = Column(Text, nullable=False)
    attempts = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
