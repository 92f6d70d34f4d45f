"""Shared test fixtures for all test modules."""

import contextlib
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core import database as db_module
from app.core.database import Base, get_db
from app.core.exceptions import MessagingError
from app.models.offer import Offer, OfferStatus
from app.models.subscription import Subscription, SubscriptionStatus

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

T0 = datetime(2026, 1, 15, 9, 30, tzinfo=UTC)


class RecordingProducer:
    """Stands in for the Kafka producer and records every published message."""

    def __init__(self):
        self.published: list[tuple[str, str, object]] = []
        self.fail_with: Exception | None = None

    def publish(self, topic, key, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((topic, key, message))

    def fail_next(self, reason: str = "broker unavailable") -> None:
        self.fail_with = MessagingError(reason)

    def messages(self, topic: str) -> list:
        return [message for t, _, message in self.published if t == topic]


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    # Patch module-level engine and session factory
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    # Restore originals
    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def producer():
    return RecordingProducer()


@pytest.fixture
def make_offer(db_session):
    def _make(
        price: str = "29.99",
        period: int = 1,
        status: OfferStatus = OfferStatus.ACTIVE,
        name: str = "Monthly Plan",
    ) -> Offer:
        offer = Offer(
            name=name,
            description=f"{name} offer",
            price=Decimal(price),
            period=period,
            status=status.value,
        )
        db_session.add(offer)
        db_session.commit()
        db_session.refresh(offer)
        return offer

    return _make


@pytest.fixture
def make_subscription(db_session):
    def _make(
        offer: Offer,
        customer_id: int = 1,
        next_renewal_date: datetime = T0,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        renewal_requested_at: datetime | None = None,
    ) -> Subscription:
        subscription = Subscription(
            customer_id=customer_id,
            offer_id=offer.id,
            next_renewal_date=next_renewal_date,
            status=status.value,
            renewal_requested_at=renewal_requested_at,
        )
        db_session.add(subscription)
        db_session.commit()
        db_session.refresh(subscription)
        return subscription

    return _make
