"""
Test configuration and fixtures.
"""
import os
import pytest
from datetime import timedelta
from decimal import Decimal
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from fastapi.testclient import TestClient

# Configure the app for tests before importing it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PROMOTION_SCHEDULER_ENABLED"] = "false"
os.environ["PROMOTION_MAINTENANCE_RETRY_BASE_DELAY"] = "0"

from cleanbook.main import app
from cleanbook.core.clock import utc_now
from cleanbook.db.base import Base
from cleanbook.db.session import SessionLocal, engine_options
from cleanbook.models.promotion import Promotion
from cleanbook.models.service import Service


@pytest.fixture(scope="function")
def engine(tmp_path):
    """
    File-backed SQLite database per test.

    The shared SessionLocal is rebound to it, so code that opens its own
    sessions (the maintenance scheduler) sees the same data as the test.
    """
    url = f"sqlite:///{tmp_path / 'test.db'}"
    test_engine = create_engine(url, **engine_options(url))
    Base.metadata.create_all(bind=test_engine)
    SessionLocal.configure(bind=test_engine)

    yield test_engine

    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    """Create a database session for the test."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client; requests use the per-test database."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_promotion(db: Session):
    """Factory for promotions that are live right now unless told otherwise."""
    def _make(
        title: str = "Promo",
        discount_percentage=None,
        discount_amount=None,
        start_offset: timedelta = timedelta(days=-1),
        end_offset: timedelta = timedelta(days=7),
        is_active: bool = True,
    ) -> Promotion:
        now = utc_now()
        promo = Promotion(
            title=title,
            description=f"{title} description",
            discount_percentage=Decimal(str(discount_percentage)) if discount_percentage is not None else None,
            discount_amount=Decimal(str(discount_amount)) if discount_amount is not None else None,
            start_date=now + start_offset,
            end_date=now + end_offset,
            is_active=is_active,
        )
        db.add(promo)
        db.commit()
        db.refresh(promo)
        return promo

    return _make


@pytest.fixture
def test_service(db: Session) -> Service:
    service = Service(name="Deep Cleaning", price=Decimal("100.00"), duration=180)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


class FakePromotionStore:
    """In-memory PromotionStore that records writes and can be told to fail."""

    def __init__(self, promotions=None, bookings=None):
        self.promotions = list(promotions or [])
        self.bookings = list(bookings or [])
        self.promotion_updates = []
        self.booking_updates = []
        self.read_error = None

    def list_active_promotions(self):
        self._maybe_fail()
        return [p for p in self.promotions if p.is_active]

    def list_all_promotions(self):
        self._maybe_fail()
        return list(self.promotions)

    def list_all_bookings(self):
        self._maybe_fail()
        return list(self.bookings)

    def update_promotion(self, promotion_id, fields):
        self.promotion_updates.append((promotion_id, fields))
        return self._apply(self.promotions, promotion_id, fields)

    def update_booking(self, booking_id, fields):
        self.booking_updates.append((booking_id, fields))
        return self._apply(self.bookings, booking_id, fields)

    def _maybe_fail(self):
        if self.read_error is not None:
            raise self.read_error

    @staticmethod
    def _apply(records, record_id, fields):
        for record in records:
            if record.id == record_id:
                for field, value in fields.items():
                    setattr(record, field, value)
                return record
        raise KeyError(record_id)


@pytest.fixture
def fake_store() -> FakePromotionStore:
    return FakePromotionStore()
