"""Repository for the per-consumer-group processed-event store."""

from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from app.models.processed_event import ProcessedEvent


class ProcessedEventRepository:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, consumer_group: str, event_key: str) -> bool:
        query = self.db.query(ProcessedEvent).filter(
            ProcessedEvent.consumer_group == consumer_group,
            ProcessedEvent.event_key == event_key,
        )
        return query.first() is not None

    def add(self, consumer_group: str, event_key: str) -> ProcessedEvent:
        """Record an event as applied. Flushes only; committed with the side effect."""
        record = ProcessedEvent(
            consumer_group=consumer_group,
            event_key=event_key,
            processed_at=datetime.now(UTC),
        )
        self.db.add(record)
        self.db.flush()
        return record

    def delete_expired(self, max_age_hours: int = 168) -> int:
        cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)
        count = (
            self.db.query(ProcessedEvent)
            .filter(ProcessedEvent.processed_at < cutoff)
            .delete()
        )
        self.db.commit()
        return int(count)
