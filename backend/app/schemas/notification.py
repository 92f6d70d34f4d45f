"""Notification schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    type: str
    channel: str
    recipient: str
    subject: str
    content: str
    status: str
    error_message: str | None = None
    related_entity_id: int | None = None
    retry_count: int
    max_retries: int
    next_retry_at: datetime | None = None
    sent_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
