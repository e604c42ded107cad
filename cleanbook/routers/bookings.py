"""
Bookings router. Creating a booking applies the best active promotion.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from cleanbook.core.clock import to_naive_utc
from cleanbook.core.deps import get_promotion_store
from cleanbook.db.session import get_db
from cleanbook.models.booking import Booking
from cleanbook.models.service import Service
from cleanbook.schemas.booking import BookingCreate, BookingListResponse, BookingResponse
from cleanbook.services.discount_selector import find_best_promotion
from cleanbook.services.promotion_store import SqlAlchemyPromotionStore

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=BookingListResponse)
def list_bookings(db: Session = Depends(get_db)):
    bookings = db.execute(select(Booking).order_by(Booking.id)).scalars().all()
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=len(bookings)
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking: BookingCreate,
    db: Session = Depends(get_db),
    store: SqlAlchemyPromotionStore = Depends(get_promotion_store),
):
    """
    Book a service at its catalog price minus the best active promotion.

    Promotion lookup failures fall back to full price instead of failing
    the booking.
    """
    service = db.get(Service, booking.service_id)
    if not service or service.status != "active":
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service not found"
        )

    scheduled_date = to_naive_utc(booking.scheduled_date)
    calculation = find_best_promotion(store, service.price, scheduled_date)

    db_booking = Booking(
        service_id=service.id,
        customer_name=booking.customer_name,
        address=booking.address,
        city=booking.city,
        scheduled_date=scheduled_date,
        notes=booking.notes,
        original_amount=calculation.original_amount,
        discount_amount=calculation.discount_amount,
        total_amount=calculation.final_amount,
        promotion_id=calculation.promotion_id,
    )

    db.add(db_booking)
    db.commit()
    db.refresh(db_booking)

    return BookingResponse.model_validate(db_booking)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    db_booking = db.get(Booking, booking_id)
    if not db_booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found"
        )
    return BookingResponse.model_validate(db_booking)
