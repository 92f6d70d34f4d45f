"""Notification API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import DomainError, http_status_for
from app.models.notification import Notification, NotificationStatus
from app.schemas.notification import NotificationResponse
from app.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=list[NotificationResponse], summary="List notifications")
async def list_notifications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    customer_id: int | None = None,
    status: NotificationStatus | None = None,
    db: Session = Depends(get_db),
) -> list[Notification]:
    return NotificationService(db).list_notifications(
        customer_id=customer_id, status=status, skip=skip, limit=limit
    )


@router.get(
    "/{notification_id}",
    response_model=NotificationResponse,
    summary="Get notification",
    responses={404: {"description": "Notification not found"}},
)
async def get_notification(notification_id: int, db: Session = Depends(get_db)) -> Notification:
    try:
        return NotificationService(db).get(notification_id)
    except DomainError as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None
