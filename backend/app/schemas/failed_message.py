from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FailedMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    consumer_group: str
    topic: str
    partition: int
    offset: int
    message_key: str | None = None
    payload: str | None = None
    error_type: str
    error_message: str
    attempts: int
    created_at: datetime
