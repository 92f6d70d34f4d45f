from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.failed_message import FailedMessage
from app.repositories.failed_message_repository import FailedMessageRepository
from app.schemas.failed_message import FailedMessageResponse

router = APIRouter()


@router.get(
    "/", response_model=list[FailedMessageResponse], summary="List quarantined messages"
)
async def list_failed_messages(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    consumer_group: str | None = None,
    topic: str | None = None,
    db: Session = Depends(get_db),
) -> list[FailedMessage]:
    return FailedMessageRepository(db).get_all(
        consumer_group=consumer_group, topic=topic, skip=skip, limit=limit
    )


@router.get(
    "/{failed_message_id}",
    response_model=FailedMessageResponse,
    summary="Get quarantined message",
    responses={404: {"description": "Failed message not found"}},
)
async def get_failed_message(
    failed_message_id: int, db: Session = Depends(get_db)
) -> FailedMessage:
    failed = FailedMessageRepository(db).get_by_id(failed_message_id)
    if not failed:
        raise HTTPException(status_code=404, detail="Failed message not found")
    return failed
