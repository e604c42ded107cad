"""
Promotions router.

Public listing of active promotions, admin create/update, checkout discount
quotes, and manual control over promotion maintenance.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cleanbook.core.deps import get_promotion_scheduler, get_promotion_store
from cleanbook.db.session import get_db
from cleanbook.models.promotion import Promotion
from cleanbook.models.service import Service
from cleanbook.schemas.promotion import (
    DiscountCalculationResponse,
    DiscountQuoteRequest,
    MaintenanceResultResponse,
    MaintenanceRunResponse,
    PromotionCreate,
    PromotionListResponse,
    PromotionResponse,
    PromotionUpdate,
    SchedulerStatusResponse,
)
from cleanbook.services.discount_selector import find_best_promotion
from cleanbook.services.promotion_scheduler import PromotionScheduler
from cleanbook.services.promotion_store import SqlAlchemyPromotionStore

router = APIRouter(prefix="/promotions", tags=["promotions"])


# ============ Helper Functions ============

def get_promotion_or_404(db: Session, promotion_id: int) -> Promotion:
    promo = db.get(Promotion, promotion_id)
    if not promo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Promotion not found"
        )
    return promo


def _list_response(promotions) -> PromotionListResponse:
    return PromotionListResponse(
        promotions=[PromotionResponse.model_validate(p) for p in promotions],
        total=len(promotions)
    )


# ============ Endpoints ============

@router.get("", response_model=PromotionListResponse)
def list_active_promotions(
    store: SqlAlchemyPromotionStore = Depends(get_promotion_store),
):
    """List promotions that are active right now."""
    return _list_response(store.list_active_promotions())


@router.get("/all", response_model=PromotionListResponse)
def list_all_promotions(
    store: SqlAlchemyPromotionStore = Depends(get_promotion_store),
):
    """List every promotion, newest first, including expired ones."""
    return _list_response(store.list_all_promotions())


@router.post("", response_model=PromotionResponse, status_code=status.HTTP_201_CREATED)
def create_promotion(
    promo: PromotionCreate,
    db: Session = Depends(get_db),
):
    """Create a promotion. Exactly one of percentage or fixed amount must be given."""
    db_promo = Promotion(
        title=promo.title,
        description=promo.description,
        image=promo.image,
        discount_percentage=promo.discount_percentage,
        discount_amount=promo.discount_amount,
        start_date=promo.start_date,
        end_date=promo.end_date,
        is_active=promo.is_active,
    )

    db.add(db_promo)
    db.commit()
    db.refresh(db_promo)

    return PromotionResponse.model_validate(db_promo)


@router.post("/quote", response_model=DiscountCalculationResponse)
def quote_discount(
    quote: DiscountQuoteRequest,
    db: Session = Depends(get_db),
    store: SqlAlchemyPromotionStore = Depends(get_promotion_store),
):
    """
    Price a checkout with the best active promotion.

    Never fails because of promotion lookup trouble; the worst case is a
    full-price quote.
    """
    price = quote.price
    if quote.service_id is not None:
        service = db.get(Service, quote.service_id)
        if not service:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Service not found"
            )
        price = service.price

    calculation = find_best_promotion(store, price, quote.booking_date)
    return DiscountCalculationResponse.model_validate(calculation)


@router.get("/maintenance/status", response_model=SchedulerStatusResponse)
def maintenance_status(
    scheduler: PromotionScheduler = Depends(get_promotion_scheduler),
):
    """Current scheduler state and the outcome of the last successful cycle."""
    last_result = scheduler.last_result
    return SchedulerStatusResponse(
        state=scheduler.state.value,
        cycle_in_progress=scheduler.cycle_in_progress,
        interval_seconds=scheduler.interval_seconds,
        last_run_at=scheduler.last_run_at,
        last_result=MaintenanceResultResponse.model_validate(last_result) if last_result else None,
    )


@router.post("/maintenance/run", response_model=MaintenanceRunResponse)
async def run_maintenance_now(
    scheduler: PromotionScheduler = Depends(get_promotion_scheduler),
):
    """
    Run a maintenance cycle immediately.

    Returns status "skipped" if a cycle is already running.
    """
    report = await scheduler.run_cycle()
    return MaintenanceRunResponse(
        status=report.status.value,
        attempts=report.attempts,
        expired_promotions=report.result.expired_promotions if report.result else 0,
        cleaned_bookings=report.result.cleaned_bookings if report.result else 0,
        error=report.error,
    )


@router.get("/{promotion_id}", response_model=PromotionResponse)
def get_promotion(
    promotion_id: int,
    db: Session = Depends(get_db),
):
    """Get a specific promotion by ID."""
    return PromotionResponse.model_validate(get_promotion_or_404(db, promotion_id))


@router.patch("/{promotion_id}", response_model=PromotionResponse)
def update_promotion(
    promotion_id: int,
    update_data: PromotionUpdate,
    db: Session = Depends(get_db),
):
    """
    Update a promotion.

    Switching discount mode means sending the new field and null for the old
    one; the result must still have exactly one mode and a valid window.
    """
    promo = get_promotion_or_404(db, promotion_id)

    update_dict = update_data.model_dump(exclude_unset=True)

    for field, value in update_dict.items():
        setattr(promo, field, value)

    if (promo.discount_percentage is None) == (promo.discount_amount is None):
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Promotion must have exactly one of discount_percentage or discount_amount"
        )
    if promo.start_date is None or promo.end_date is None or promo.end_date <= promo.start_date:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be after start_date"
        )

    db.commit()
    db.refresh(promo)

    return PromotionResponse.model_validate(promo)
