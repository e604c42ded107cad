"""
Promotion Pydantic schemas for API request/response models.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cleanbook.core.clock import to_naive_utc


class PromotionCreate(BaseModel):
    """Request model for creating a promotion."""
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def normalise_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_discount_and_window(self):
        if (self.discount_percentage is None) == (self.discount_amount is None):
            raise ValueError("Set exactly one of discount_percentage or discount_amount")
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class PromotionUpdate(BaseModel):
    """Request model for updating a promotion. Only provided fields change."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def normalise_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class PromotionResponse(BaseModel):
    """Response model for a single promotion."""
    id: int
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    discount_percentage: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PromotionListResponse(BaseModel):
    promotions: List[PromotionResponse]
    total: int


# ============ Checkout quote ============

class DiscountQuoteRequest(BaseModel):
    """Price a checkout either by service or by an explicit price."""
    service_id: Optional[int] = None
    price: Optional[Decimal] = Field(default=None, gt=0)
    booking_date: Optional[datetime] = None

    @field_validator("booking_date", mode="after")
    @classmethod
    def normalise_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_price_source(self):
        if (self.service_id is None) == (self.price is None):
            raise ValueError("Provide exactly one of service_id or price")
        return self


class AppliedPromotionResponse(BaseModel):
    id: int
    title: str
    description: str
    discount_percentage: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)


class DiscountCalculationResponse(BaseModel):
    promotion_id: Optional[int] = None
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    applied_promotion: Optional[AppliedPromotionResponse] = None

    model_config = ConfigDict(from_attributes=True)


# ============ Maintenance ============

class MaintenanceRunResponse(BaseModel):
    """Result of a manually triggered maintenance cycle."""
    status: Literal["completed", "skipped", "failed"]
    attempts: int
    expired_promotions: int = 0
    cleaned_bookings: int = 0
    error: Optional[str] = None


class MaintenanceResultResponse(BaseModel):
    expired_promotions: int
    cleaned_bookings: int

    model_config = ConfigDict(from_attributes=True)


class SchedulerStatusResponse(BaseModel):
    state: Literal["idle", "running", "stopped"]
    cycle_in_progress: bool
    interval_seconds: float
    last_run_at: Optional[datetime] = None
    last_result: Optional[MaintenanceResultResponse] = None
