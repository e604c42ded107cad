"""
Promotion maintenance: expire promotions past their end date and strip
stale promotions from bookings.

Both operations are idempotent and converge on the same state no matter how
often they run. Store errors are not caught here; the scheduler owns retries.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.orm import Session

from cleanbook.core.clock import utc_now
from cleanbook.services.promotion_store import PromotionStore, SqlAlchemyPromotionStore

logger = logging.getLogger(__name__)

ZERO_DISCOUNT = Decimal("0.00")


@dataclass
class MaintenanceResult:
    """Counts from one maintenance run."""
    expired_promotions: int
    cleaned_bookings: int

    @property
    def changed(self) -> bool:
        return self.expired_promotions > 0 or self.cleaned_bookings > 0


class PromotionMaintenanceService:
    """Reconciles promotion and booking state as promotions expire."""

    def __init__(self, store: PromotionStore):
        self.store = store

    def expire_promotions(self, now: Optional[datetime] = None) -> int:
        """
        Deactivate every active promotion whose end date has passed.

        Returns:
            Number of promotions deactivated
        """
        now = now or utc_now()
        deactivated = 0

        for promotion in self.store.list_all_promotions():
            if promotion.is_active and promotion.end_date < now:
                self.store.update_promotion(promotion.id, {"is_active": False})
                deactivated += 1
                logger.debug(f"Promotion {promotion.id} expired (ended {promotion.end_date})")

        if deactivated > 0:
            logger.info(f"Deactivated {deactivated} expired promotions")
        return deactivated

    def repair_bookings(self) -> int:
        """
        Clear promotions from bookings whose promotion is missing or inactive.

        A repaired booking gets no promotion, a 0.00 discount and its original
        amount back as total (current total when no original was recorded).

        Returns:
            Number of bookings repaired
        """
        bookings = self.store.list_all_bookings()
        promotions = {p.id: p for p in self.store.list_all_promotions()}
        cleaned = 0

        for booking in bookings:
            if booking.promotion_id is None:
                continue

            promotion = promotions.get(booking.promotion_id)
            if promotion is not None and promotion.is_active:
                continue

            stale_promotion_id = booking.promotion_id
            self.store.update_booking(booking.id, {
                "promotion_id": None,
                "discount_amount": ZERO_DISCOUNT,
                "total_amount": (
                    booking.original_amount
                    if booking.original_amount is not None
                    else booking.total_amount
                ),
            })
            cleaned += 1
            logger.debug(f"Booking {booking.id} released stale promotion {stale_promotion_id}")

        if cleaned > 0:
            logger.info(f"Cleaned up {cleaned} bookings with invalid promotions")
        return cleaned

    def run_maintenance(self, now: Optional[datetime] = None) -> MaintenanceResult:
        """Expire promotions, then repair bookings so this run's expiries count as stale."""
        logger.info("Running promotion maintenance")

        expired = self.expire_promotions(now)
        cleaned = self.repair_bookings()

        return MaintenanceResult(expired_promotions=expired, cleaned_bookings=cleaned)


def run_promotion_maintenance(session_factory: Callable[[], Session]) -> MaintenanceResult:
    """Run one maintenance pass on a fresh session from ``session_factory``."""
    db = session_factory()
    try:
        service = PromotionMaintenanceService(SqlAlchemyPromotionStore(db))
        return service.run_maintenance()
    finally:
        db.close()
