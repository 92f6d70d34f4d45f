from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.offer import Offer, OfferStatus
from app.repositories.offer_repository import OfferRepository
from app.schemas.offer import OfferCreate, OfferResponse

router = APIRouter()


@router.get("/", response_model=list[OfferResponse], summary="List offers")
async def list_offers(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: OfferStatus | None = None,
    db: Session = Depends(get_db),
) -> list[Offer]:
    return OfferRepository(db).get_all(skip=skip, limit=limit, status=status)


@router.get(
    "/{offer_id}",
    response_model=OfferResponse,
    summary="Get offer",
    responses={404: {"description": "Offer not found"}},
)
async def get_offer(offer_id: int, db: Session = Depends(get_db)) -> Offer:
    offer = OfferRepository(db).get_by_id(offer_id)
    if not offer:
        raise HTTPException(status_code=404, detail="Offer not found")
    return offer


@router.post(
    "/",
    response_model=OfferResponse,
    status_code=201,
    summary="Create offer",
    responses={422: {"description": "Validation error"}},
)
async def create_offer(data: OfferCreate, db: Session = Depends(get_db)) -> Offer:
    return OfferRepository(db).create(data)
