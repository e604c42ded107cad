"""
Checkout discount selection.

Picks the single best active promotion for a booking. Discounts never stack.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from cleanbook.services.promotion_store import PromotionStore

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

Amount = Union[Decimal, int, float, str]


@dataclass
class AppliedPromotion:
    """Public summary of the promotion used for a booking."""
    id: int
    title: str
    description: str
    discount_percentage: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None


@dataclass
class DiscountCalculation:
    """Result of discount selection. Not persisted on its own."""
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    applied_promotion: Optional[AppliedPromotion] = None

    @property
    def promotion_id(self) -> Optional[int]:
        return self.applied_promotion.id if self.applied_promotion else None


def _to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def no_discount(price: Amount) -> DiscountCalculation:
    price = _to_decimal(price)
    return DiscountCalculation(
        original_amount=price,
        discount_amount=ZERO,
        final_amount=price,
    )


def compute_discount(promotion, price: Amount) -> Decimal:
    """
    Discount a promotion gives on ``price``, clamped to [0, price].

    Percentage wins over a fixed amount when both are populated; a promotion
    with neither gives nothing.
    """
    price = _to_decimal(price)

    if promotion.discount_percentage is not None:
        discount = price * _to_decimal(promotion.discount_percentage) / 100
    elif promotion.discount_amount is not None:
        discount = _to_decimal(promotion.discount_amount)
    else:
        discount = ZERO

    return max(ZERO, min(discount, price))


def summarize_promotion(promotion) -> AppliedPromotion:
    summary = AppliedPromotion(
        id=promotion.id,
        title=promotion.title,
        description=promotion.description or "",
    )
    if promotion.discount_percentage is not None:
        summary.discount_percentage = _to_decimal(promotion.discount_percentage)
    elif promotion.discount_amount is not None:
        summary.discount_amount = _to_decimal(promotion.discount_amount)
    return summary


def find_best_promotion(
    store: PromotionStore,
    service_price: Amount,
    booking_date: Optional[datetime] = None,
) -> DiscountCalculation:
    """
    Find the promotion giving the largest discount on ``service_price``.

    Candidates come from ``store.list_active_promotions()``, which applies the
    active flag and date window as of now; ``booking_date`` is only logged.
    On equal discounts the first promotion in store order wins.

    Never raises: if promotions cannot be read or priced the booking proceeds
    at full price. A price that is not a number quotes as zero with no
    promotion applied.
    """
    try:
        price = _to_decimal(service_price)
    except (InvalidOperation, TypeError, ValueError):
        logger.error(f"Invalid service price {service_price!r}, no discount applied")
        return no_discount(ZERO)

    try:
        active_promotions = store.list_active_promotions()
        if not active_promotions:
            return no_discount(price)

        best_promotion = None
        max_discount = ZERO

        for promotion in active_promotions:
            discount = compute_discount(promotion, price)
            if discount > max_discount:
                max_discount = discount
                best_promotion = promotion

        if best_promotion is None:
            return no_discount(price)

        logger.debug(
            f"Promotion {best_promotion.id} selected for booking on {booking_date}: "
            f"{max_discount} off {price}"
        )

        return DiscountCalculation(
            original_amount=price,
            discount_amount=max_discount,
            final_amount=price - max_discount,
            applied_promotion=summarize_promotion(best_promotion),
        )
    except Exception as e:
        logger.error(f"Error finding best promotion, charging full price: {e}")
        return no_discount(price)
