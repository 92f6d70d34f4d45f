from sqlalchemy.orm import Session

from app.models.failed_message import FailedMessage


class FailedMessageRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        consumer_group: str,
        topic: str,
        partition: int,
        offset: int,
        message_key: str | None,
        payload: str | None,
        error_type: str,
        error_message: str,
        attempts: int,
    ) -> FailedMessage:
        failed = FailedMessage(
            consumer_group=consumer_group,
            topic=topic,
            partition=partition,
            offset=offset,
            message_key=message_key,
            payload=payload,
            error_type=error_type,
            error_message=error_message,
            attempts=attempts,
        )
        self.db.add(failed)
        self.db.commit()
        self.db.refresh(failed)
        return failed

    def get_by_id(self, failed_message_id: int) -> FailedMessage | None:
        return self.db.query(FailedMessage).filter(FailedMessage.id == failed_message_id).first()

    def get_all(
        self,
        consumer_group: str | None = None,
        topic: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[FailedMessage]:
        query = self.db.query(FailedMessage)
        if consumer_group is not None:
            query = query.filter(FailedMessage.consumer_group == consumer_group)
        if topic is not None:
            query = query.filter(FailedMessage.topic == topic)
        return query.order_by(FailedMessage.id.desc()).offset(skip).limit(limit).all()
