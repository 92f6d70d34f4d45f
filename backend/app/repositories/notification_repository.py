"""Repository for Notification CRUD operations."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.models.notification import Notification, NotificationStatus


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        customer_id: int,
        type: str,
        channel: str,
        recipient: str,
        subject: str,
        content: str,
        related_entity_id: int | None = None,
        max_retries: int = 5,
    ) -> Notification:
        notification = Notification(
            customer_id=customer_id,
            type=type,
            channel=channel,
            recipient=recipient,
            subject=subject,
            content=content,
            status=NotificationStatus.PENDING.value,
            related_entity_id=related_entity_id,
            retry_count=0,
            max_retries=max_retries,
        )
        self.db.add(notification)
        self.db.flush()
        return notification

    def get_by_id(self, notification_id: int) -> Notification | None:
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_id)
            .first()
        )

    def get_all(
        self,
        customer_id: int | None = None,
        status: NotificationStatus | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Notification]:
        query = self.db.query(Notification)
        if customer_id is not None:
            query = query.filter(Notification.customer_id == customer_id)
        if status is not None:
            query = query.filter(Notification.status == status.value)
        return query.order_by(Notification.id.desc()).offset(skip).limit(limit).all()

    def get_due_for_retry(
        self, now: datetime, pending_cutoff: datetime, limit: int = 100
    ) -> list[Notification]:
        """RETRYING rows whose backoff elapsed, plus PENDING rows created before
        ``pending_cutoff`` whose first delivery never ran."""
        return (
            self.db.query(Notification)
            .filter(
                or_(
                    and_(
                        Notification.status == NotificationStatus.RETRYING.value,
                        or_(
                            Notification.next_retry_at.is_(None),
                            Notification.next_retry_at <= now,
                        ),
                    ),
                    and_(
                        Notification.status == NotificationStatus.PENDING.value,
                        Notification.created_at <= pending_cutoff,
                    ),
                )
            )
            .order_by(Notification.next_retry_at, Notification.id)
            .limit(limit)
            .all()
        )
