"""
Booking model.
"""
from sqlalchemy import Column, String, Text, Integer, Numeric, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from cleanbook.db.base import Base


class Booking(Base):
    """A customer's purchase of a service for a scheduled date."""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    customer_name = Column(String(255))
    address = Column(Text)
    city = Column(String(100))
    scheduled_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, confirmed, completed, cancelled
    notes = Column(Text)

    # Pricing
    original_amount = Column(Numeric(10, 2))  # Pre-discount price, NULL on legacy rows
    total_amount = Column(Numeric(10, 2), nullable=False)  # Currently charged
    # No FK constraint: a promotion reference may dangle until maintenance clears it
    promotion_id = Column(Integer, nullable=True, index=True)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="bookings")
