from sqlalchemy.orm import Session

from app.models.offer import Offer, OfferStatus
from app.schemas.offer import OfferCreate


class OfferRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self, skip: int = 0, limit: int = 100, status: OfferStatus | None = None
    ) -> list[Offer]:
        query = self.db.query(Offer)
        if status is not None:
            query = query.filter(Offer.status == status.value)
        return query.order_by(Offer.id).offset(skip).limit(limit).all()

    def get_by_id(self, offer_id: int) -> Offer | None:
        return self.db.query(Offer).filter(Offer.id == offer_id).first()

    def create(self, data: OfferCreate) -> Offer:
        offer = Offer(
            name=data.name,
            description=data.description,
            price=data.price,
            period=data.period,
            status=data.status.value,
        )
        self.db.add(offer)
        self.db.commit()
        self.db.refresh(offer)
        return offer
