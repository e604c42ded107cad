"""
Integration tests for promotions API router.
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from cleanbook.core.clock import utc_now
from cleanbook.models.booking import Booking
from cleanbook.models.promotion import Promotion


class TestPromotionsRouter:
    """Tests for /api/promotions endpoints."""

    def test_list_promotions_empty(self, client):
        response = client.get("/api/promotions")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 0
        assert data["promotions"] == []

    def test_list_only_active(self, client, make_promotion):
        live = make_promotion("Live", discount_percentage=10)
        make_promotion("Ended", discount_percentage=10, end_offset=timedelta(days=-1))
        make_promotion("Off", discount_percentage=10, is_active=False)

        data = client.get("/api/promotions").json()

        assert data["total"] == 1
        assert data["promotions"][0]["id"] == live.id

        all_data = client.get("/api/promotions/all").json()
        assert all_data["total"] == 3

    def test_create_promotion(self, client):
        now = utc_now()
        response = client.post(
            "/api/promotions",
            json={
                "title": "Spring Refresh",
                "description": "15% off",
                "discount_percentage": "15.00",
                "start_date": now.isoformat(),
                "end_date": (now + timedelta(days=7)).isoformat(),
            }
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Spring Refresh"
        assert Decimal(data["discount_percentage"]) == Decimal("15.00")
        assert data["discount_amount"] is None
        assert data["is_active"] is True

    @pytest.mark.parametrize("payload", [
        {"discount_percentage": "10.00", "discount_amount": "5.00"},
        {},
        {"discount_percentage": "120.00"},
        {"discount_amount": "-1.00"},
    ])
    def test_create_rejects_invalid_discount(self, client, payload):
        now = utc_now()
        response = client.post(
            "/api/promotions",
            json={
                "title": "Bad",
                "start_date": now.isoformat(),
                "end_date": (now + timedelta(days=1)).isoformat(),
                **payload,
            }
        )

        assert response.status_code == 422

    def test_create_rejects_inverted_window(self, client):
        now = utc_now()
        response = client.post(
            "/api/promotions",
            json={
                "title": "Backwards",
                "discount_amount": "5.00",
                "start_date": now.isoformat(),
                "end_date": (now - timedelta(days=1)).isoformat(),
            }
        )

        assert response.status_code == 422

    def test_create_accepts_mixed_offsets(self, client):
        """Offset-aware and naive dates are both read as UTC."""
        response = client.post(
            "/api/promotions",
            json={
                "title": "Mixed",
                "discount_amount": "5.00",
                "start_date": "2026-01-01T02:00:00+02:00",
                "end_date": "2026-12-01T00:00:00",
            }
        )

        assert response.status_code == 201
        data = response.json()
        assert data["start_date"] == "2026-01-01T00:00:00"
        assert data["end_date"] == "2026-12-01T00:00:00"

    def test_create_rejects_inverted_window_with_mixed_offsets(self, client):
        response = client.post(
            "/api/promotions",
            json={
                "title": "Backwards",
                "discount_amount": "5.00",
                "start_date": "2026-06-01T00:00:00+00:00",
                "end_date": "2026-05-01T00:00:00",
            }
        )

        assert response.status_code == 422

    def test_get_promotion(self, client, make_promotion):
        promo = make_promotion("Lookup", discount_amount="12.50")

        response = client.get(f"/api/promotions/{promo.id}")

        assert response.status_code == 200
        assert Decimal(response.json()["discount_amount"]) == Decimal("12.50")

    def test_get_promotion_not_found(self, client):
        response = client.get("/api/promotions/9999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Promotion not found"

    def test_update_promotion(self, client, make_promotion):
        promo = make_promotion("Update Test", discount_percentage=10)

        response = client.patch(
            f"/api/promotions/{promo.id}",
            json={"title": "Updated", "is_active": False}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Updated"
        assert data["is_active"] is False

    def test_update_switch_discount_mode(self, client, make_promotion):
        promo = make_promotion("Switch", discount_percentage=10)

        response = client.patch(
            f"/api/promotions/{promo.id}",
            json={"discount_percentage": None, "discount_amount": "20.00"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["discount_percentage"] is None
        assert Decimal(data["discount_amount"]) == Decimal("20.00")

    def test_update_rejects_two_discount_modes(self, client, make_promotion, db):
        promo = make_promotion("Both", discount_percentage=10)

        response = client.patch(
            f"/api/promotions/{promo.id}",
            json={"discount_amount": "20.00"}
        )

        assert response.status_code == 400
        db.expire_all()
        assert db.get(Promotion, promo.id).discount_amount is None


class TestDiscountQuote:
    """Tests for POST /api/promotions/quote."""

    def test_quote_by_service(self, client, make_promotion, test_service):
        make_promotion("Ten", discount_percentage=10)
        best = make_promotion("Twenty off", discount_amount="20.00")

        response = client.post("/api/promotions/quote", json={"service_id": test_service.id})

        assert response.status_code == 200
        data = response.json()
        assert data["promotion_id"] == best.id
        assert Decimal(data["original_amount"]) == Decimal("100.00")
        assert Decimal(data["discount_amount"]) == Decimal("20.00")
        assert Decimal(data["final_amount"]) == Decimal("80.00")
        assert data["applied_promotion"]["title"] == "Twenty off"
        assert data["applied_promotion"]["discount_percentage"] is None

    def test_quote_by_price_without_promotions(self, client):
        response = client.post("/api/promotions/quote", json={"price": "59.99"})

        assert response.status_code == 200
        data = response.json()
        assert data["promotion_id"] is None
        assert data["applied_promotion"] is None
        assert Decimal(data["discount_amount"]) == 0
        assert Decimal(data["final_amount"]) == Decimal("59.99")

    def test_quote_unknown_service(self, client):
        response = client.post("/api/promotions/quote", json={"service_id": 4242})

        assert response.status_code == 404

    @pytest.mark.parametrize("payload", [
        {},
        {"service_id": 1, "price": "10.00"},
        {"price": "0"},
    ])
    def test_quote_requires_one_price_source(self, client, payload):
        response = client.post("/api/promotions/quote", json=payload)

        assert response.status_code == 422


class TestMaintenanceEndpoints:
    """Tests for manual maintenance control."""

    def test_status_before_any_run(self, client):
        response = client.get("/api/promotions/maintenance/status")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "idle"
        assert data["cycle_in_progress"] is False
        assert data["last_result"] is None

    def test_run_now_expires_and_repairs(self, client, db, make_promotion, test_service):
        expired = make_promotion("Old", discount_amount="20.00", end_offset=timedelta(hours=-1))
        booking = Booking(
            service_id=test_service.id,
            scheduled_date=utc_now() + timedelta(days=1),
            original_amount=Decimal("100.00"),
            total_amount=Decimal("80.00"),
            discount_amount=Decimal("20.00"),
            promotion_id=expired.id,
        )
        db.add(booking)
        db.commit()

        response = client.post("/api/promotions/maintenance/run")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["attempts"] == 1
        assert data["expired_promotions"] == 1
        assert data["cleaned_bookings"] == 1

        db.expire_all()
        assert db.get(Promotion, expired.id).is_active is False
        repaired = db.get(Booking, booking.id)
        assert repaired.promotion_id is None
        assert repaired.total_amount == Decimal("100.00")

        status_data = client.get("/api/promotions/maintenance/status").json()
        assert status_data["last_result"] == {"expired_promotions": 1, "cleaned_bookings": 1}
        assert status_data["last_run_at"] is not None
