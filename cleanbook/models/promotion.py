"""
Promotion model.
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, Numeric, DateTime, Index, func

from cleanbook.db.base import Base


class Promotion(Base):
    """
    Site-wide discount offer applied at checkout.

    Exactly one of discount_percentage / discount_amount is expected to be set.
    A promotion with neither contributes no discount.
    """
    __tablename__ = "promotions"
    __table_args__ = (
        Index("ix_promotions_active_end_date", "is_active", "end_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    image = Column(Text)
    discount_percentage = Column(Numeric(5, 2))  # 0-100
    discount_amount = Column(Numeric(10, 2))  # Fixed currency amount
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
