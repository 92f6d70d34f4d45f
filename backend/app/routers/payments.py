"""Payment API endpoints."""

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import DomainError, MessagingError, http_status_for
from app.core.idempotency import IdempotencyResult, check_idempotency, record_idempotency_response
from app.messaging.producer import EventProducer, get_event_producer
from app.models.payment import Payment, PaymentStatus
from app.schemas.payment import PaymentCreate, PaymentFailRequest, PaymentResponse
from app.services.payment_service import PaymentService

router = APIRouter()


@router.get("/", response_model=list[PaymentResponse], summary="List payments")
async def list_payments(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    subscription_id: int | None = None,
    customer_id: int | None = None,
    status: PaymentStatus | None = None,
    db: Session = Depends(get_db),
) -> list[Payment]:
    """List payments, optionally filtered by subscription, customer and status."""
    return PaymentService(db).list_payments(
        subscription_id=subscription_id,
        customer_id=customer_id,
        status=status,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/{payment_id}",
    response_model=PaymentResponse,
    summary="Get payment",
    responses={404: {"description": "Payment not found"}},
)
async def get_payment(payment_id: int, db: Session = Depends(get_db)) -> Payment:
    try:
        return PaymentService(db).get(payment_id)
    except DomainError as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None


@router.post(
    "/",
    response_model=PaymentResponse,
    status_code=201,
    summary="Create payment",
    responses={
        404: {"description": "Subscription not found"},
        422: {"description": "Validation error"},
    },
)
async def create_payment(
    data: PaymentCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> Payment | JSONResponse:
    """Create a PENDING payment. The outcome is reported via /success or /fail."""
    idempotency = check_idempotency(request, db)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    try:
        payment = PaymentService(db).create(data)
    except DomainError as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None

    if isinstance(idempotency, IdempotencyResult):
        body = PaymentResponse.model_validate(payment).model_dump(mode="json")
        record_idempotency_response(db, idempotency.key, 201, body)

    return payment


@router.post(
    "/{payment_id}/success",
    response_model=PaymentResponse,
    summary="Confirm payment",
    responses={
        404: {"description": "Payment not found"},
        409: {"description": "Payment already resolved"},
        503: {"description": "Payment event could not be published"},
    },
)
async def confirm_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    producer: EventProducer = Depends(get_event_producer),
) -> Payment:
    """Gateway callback: the charge succeeded."""
    try:
        return PaymentService(db, producer).confirm(payment_id)
    except (DomainError, MessagingError) as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None


@router.post(
    "/{payment_id}/fail",
    response_model=PaymentResponse,
    summary="Fail payment",
    responses={
        404: {"description": "Payment not found"},
        409: {"description": "Payment already resolved"},
        503: {"description": "Payment event could not be published"},
    },
)
async def fail_payment(
    payment_id: int,
    data: PaymentFailRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    producer: EventProducer = Depends(get_event_producer),
) -> Payment:
    """Gateway callback: the charge was declined."""
    try:
        return PaymentService(db, producer).fail(payment_id, data.reason if data else None)
    except (DomainError, MessagingError) as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None
