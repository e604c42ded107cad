"""
SQLAlchemy models for Cleanbook.
"""
# Catalog
from cleanbook.models.service import Service

# Promotions
from cleanbook.models.promotion import Promotion

# Bookings
from cleanbook.models.booking import Booking


__all__ = [
    "Service",
    "Promotion",
    "Booking",
]
