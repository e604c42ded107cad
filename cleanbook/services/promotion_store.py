"""
Persistence access for the promotion engine.

The selector and the maintenance service only talk to a ``PromotionStore``.
``SqlAlchemyPromotionStore`` is the production implementation; every update
is committed on its own, so a single promotion or booking write is atomic but
a sequence of them is not.
"""
import enum
import logging
from typing import Any, Dict, List, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.exc import (
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from cleanbook.core.clock import utc_now
from cleanbook.models import Booking, Promotion

logger = logging.getLogger(__name__)


class StoreErrorKind(str, enum.Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class StoreError(Exception):
    """A persistence failure, tagged with whether a retry may help."""

    def __init__(self, message: str, kind: StoreErrorKind = StoreErrorKind.PERMANENT):
        super().__init__(message)
        self.kind = kind


TRANSIENT_DB_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)

# Message fragments that usually mean the database was unreachable rather than
# that the data or query was wrong.
TRANSIENT_ERROR_MARKERS = (
    "timeout",
    "timed out",
    "etimedout",
    "econnreset",
    "connection reset",
    "connection terminated",
    "socket",
    "channel",
    "terminated",
    "connection",
)


def is_transient_error(error: BaseException) -> bool:
    """Heuristic: does the error message read like a connectivity or timeout problem?"""
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


class PromotionStore(Protocol):
    def list_active_promotions(self) -> Sequence[Promotion]: ...

    def list_all_promotions(self) -> Sequence[Promotion]: ...

    def list_all_bookings(self) -> Sequence[Booking]: ...

    def update_promotion(self, promotion_id: int, fields: Dict[str, Any]) -> Promotion: ...

    def update_booking(self, booking_id: int, fields: Dict[str, Any]) -> Booking: ...


class SqlAlchemyPromotionStore:
    """PromotionStore backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def list_active_promotions(self) -> List[Promotion]:
        """Promotions flagged active whose date window contains now, in id order."""
        now = utc_now()
        stmt = (
            select(Promotion)
            .where(
                Promotion.is_active.is_(True),
                Promotion.start_date <= now,
                Promotion.end_date >= now,
            )
            .order_by(Promotion.id)
        )
        return self._read(stmt)

    def list_all_promotions(self) -> List[Promotion]:
        stmt = select(Promotion).order_by(Promotion.created_at.desc(), Promotion.id.desc())
        return self._read(stmt)

    def list_all_bookings(self) -> List[Booking]:
        return self._read(select(Booking).order_by(Booking.id))

    def update_promotion(self, promotion_id: int, fields: Dict[str, Any]) -> Promotion:
        return self._update(Promotion, promotion_id, fields)

    def update_booking(self, booking_id: int, fields: Dict[str, Any]) -> Booking:
        return self._update(Booking, booking_id, fields)

    def _read(self, stmt) -> list:
        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._wrap(e) from e

    def _update(self, model, record_id: int, fields: Dict[str, Any]):
        try:
            record = self.db.get(model, record_id)
            if record is None:
                raise StoreError(f"{model.__name__} {record_id} not found")

            for field, value in fields.items():
                setattr(record, field, value)

            self.db.commit()
            self.db.refresh(record)
            return record
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._wrap(e) from e

    @staticmethod
    def _wrap(error: SQLAlchemyError) -> StoreError:
        # Driver errors such as InterfaceError("connection already closed")
        # only say they are connectivity problems in their message.
        if isinstance(error, TRANSIENT_DB_ERRORS) or is_transient_error(error):
            kind = StoreErrorKind.TRANSIENT
        else:
            kind = StoreErrorKind.PERMANENT
        logger.debug(f"Store error classified as {kind.value}: {error}")
        return StoreError(str(error), kind)
