"""
Booking Pydantic schemas for API request/response models.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BookingCreate(BaseModel):
    """Request model for creating a booking."""
    service_id: int
    customer_name: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = Field(default=None, max_length=100)
    scheduled_date: datetime
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    """Response model for a single booking."""
    id: int
    service_id: int
    customer_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    scheduled_date: datetime
    status: str
    notes: Optional[str] = None
    original_amount: Optional[Decimal] = None
    total_amount: Decimal
    promotion_id: Optional[int] = None
    discount_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    total: int
