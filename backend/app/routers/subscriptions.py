from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import RequestContext, require_customer
from app.core.database import get_db
from app.core.exceptions import DomainError, MessagingError, http_status_for
from app.core.idempotency import IdempotencyResult, check_idempotency, record_idempotency_response
from app.messaging.producer import EventProducer, get_event_producer
from app.models.subscription import Subscription, SubscriptionStatus
from app.schemas.subscription import (
    RenewalRequest,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from app.services.subscription_lifecycle import SubscriptionLifecycleService

router = APIRouter()


@router.get(
    "/",
    response_model=list[SubscriptionResponse],
    summary="List the caller's subscriptions",
    responses={401: {"description": "Missing customer identity"}},
)
async def list_subscriptions(
    status: SubscriptionStatus | None = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_customer),
) -> list[Subscription]:
    """List subscriptions owned by the calling customer, optionally by status."""
    service = SubscriptionLifecycleService(db)
    return service.list_for_customer(ctx.customer_id, status)  # type: ignore[arg-type]


@router.get(
    "/to-renew",
    response_model=list[SubscriptionResponse],
    summary="List overdue subscriptions",
)
async def list_subscriptions_to_renew(
    db: Session = Depends(get_db),
) -> list[Subscription]:
    """Internal: ACTIVE subscriptions whose renewal date has passed."""
    return SubscriptionLifecycleService(db).get_overdue()


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Get subscription",
    responses={404: {"description": "Subscription not found"}},
)
async def get_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
) -> Subscription:
    """Get a subscription by ID."""
    try:
        return SubscriptionLifecycleService(db).get(subscription_id)
    except DomainError as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None


@router.post(
    "/",
    response_model=SubscriptionResponse,
    status_code=201,
    summary="Create subscription",
    responses={
        401: {"description": "Missing customer identity"},
        404: {"description": "Offer not found"},
        409: {"description": "Already subscribed, or offer inactive"},
        422: {"description": "Validation error"},
    },
)
async def create_subscription(
    data: SubscriptionCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_customer),
) -> Subscription:
    """Subscribe the calling customer to an offer."""
    try:
        return SubscriptionLifecycleService(db).create(ctx, data.offer_id)
    except DomainError as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None


@router.put(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Change subscription status",
    responses={
        404: {"description": "Subscription not found"},
        409: {"description": "Transition not allowed or concurrent update"},
        422: {"description": "Validation error"},
    },
)
async def update_subscription(
    subscription_id: int,
    data: SubscriptionUpdate,
    db: Session = Depends(get_db),
) -> Subscription:
    """Manually move a subscription to another status."""
    try:
        return SubscriptionLifecycleService(db).update_status(subscription_id, data.status)
    except DomainError as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None


@router.post(
    "/{subscription_id}/renew",
    response_model=SubscriptionResponse,
    status_code=202,
    summary="Request a paid renewal",
    responses={
        404: {"description": "Subscription or offer not found"},
        409: {"description": "Subscription cannot be renewed right now"},
        503: {"description": "Payment request could not be published"},
    },
)
async def renew_subscription(
    subscription_id: int,
    request: Request,
    data: RenewalRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    producer: EventProducer = Depends(get_event_producer),
) -> Subscription | JSONResponse:
    """Publish a payment request for the subscription.

    The renewal itself happens when the payment outcome arrives.
    """
    idempotency = check_idempotency(request, db)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    service = SubscriptionLifecycleService(db, producer)
    try:
        subscription = service.request_renewal(
            subscription_id, payment_method=data.payment_method if data else None
        )
    except (DomainError, MessagingError) as e:
        raise HTTPException(status_code=http_status_for(e), detail=str(e)) from None

    if isinstance(idempotency, IdempotencyResult):
        body = SubscriptionResponse.model_validate(subscription).model_dump(mode="json")
        record_idempotency_response(db, idempotency.key, 202, body)

    return subscription
