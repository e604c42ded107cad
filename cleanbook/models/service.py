"""
Cleaning service catalog model.
"""
from sqlalchemy import Column, String, Text, Integer, Numeric, DateTime, func
from sqlalchemy.orm import relationship

from cleanbook.db.base import Base


class Service(Base):
    """A bookable cleaning service (deep clean, move-out, carpet, etc.)."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    status = Column(String(20), nullable=False, default="active")  # active, inactive
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="service")
