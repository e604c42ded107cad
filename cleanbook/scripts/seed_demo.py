"""
Seed a development database with a small service catalog and promotions.

Usage: python -m cleanbook.scripts.seed_demo
"""
from datetime import timedelta
from decimal import Decimal

from cleanbook.core.clock import utc_now
from cleanbook.db.base import Base
from cleanbook.db.session import SessionLocal, engine
from cleanbook.models.promotion import Promotion
from cleanbook.models.service import Service


DEMO_SERVICES = [
    ("Standard Home Cleaning", Decimal("89.00"), 120),
    ("Deep Cleaning", Decimal("179.00"), 240),
    ("Move-Out Cleaning", Decimal("249.00"), 300),
    ("Carpet Shampoo", Decimal("120.00"), 90),
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    now = utc_now()

    try:
        print("Checking for demo services...")
        if db.query(Service).count() == 0:
            for name, price, duration in DEMO_SERVICES:
                db.add(Service(name=name, price=price, duration=duration))
            print(f"Added {len(DEMO_SERVICES)} services")
        else:
            print("Services already present, skipping")

        print("Checking for demo promotions...")
        if db.query(Promotion).count() == 0:
            db.add_all([
                Promotion(
                    title="Spring Refresh",
                    description="15% off any cleaning this season",
                    discount_percentage=Decimal("15.00"),
                    start_date=now - timedelta(days=1),
                    end_date=now + timedelta(days=30),
                ),
                Promotion(
                    title="First Booking",
                    description="$20 off your first booking",
                    discount_amount=Decimal("20.00"),
                    start_date=now - timedelta(days=1),
                    end_date=now + timedelta(days=90),
                ),
                # Already over; the next maintenance run deactivates it
                Promotion(
                    title="Winter Sale",
                    discount_percentage=Decimal("25.00"),
                    start_date=now - timedelta(days=60),
                    end_date=now - timedelta(days=1),
                ),
            ])
            print("Added 3 promotions")
        else:
            print("Promotions already present, skipping")

        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
