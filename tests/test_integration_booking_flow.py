"""
End-to-end booking through the HTTP surface:
create -> apply promo -> pay -> confirmation -> cancel, plus the JSON error shapes.
"""
from datetime import timedelta

import pytest

from vehicle_rental.models.db import utcnow
from vehicle_rental.utils.constants import BookingStatus

from conftest import login_as


def _day(offset):
    return (utcnow().date() + timedelta(days=offset)).isoformat()


@pytest.fixture
def logged_in(client, customer):
    login_as(client, customer)
    return client


def _create(client, vehicle_id, start=5, end=8):
    return client.post("/api/bookings", json={
        "vehicle_id": vehicle_id, "start_date": _day(start), "end_date": _day(end)})


def test_full_flow_create_promo_pay_cancel(logged_in, vehicle, make_deal, app):
    client = logged_in
    now = utcnow()
    make_deal(code="WELCOME10", valid_from=now - timedelta(days=1), valid_until=now + timedelta(days=30))

    # 1) Create
    r = _create(client, vehicle.id)
    assert r.status_code == 201, r.get_data(as_text=True)
    booking = r.get_json()["booking"]
    assert booking["status"] == BookingStatus.PENDING
    assert booking["total_price"] == "150.00"
    bid = booking["id"]

    # 2) Payment page renders
    assert client.get(f"/bookings/{bid}/payment").status_code == 200

    # 3) Promo
    r = client.post(f"/api/bookings/{bid}/promo", json={"code": "welcome10"})
    assert r.status_code == 200
    assert r.get_json()["booking"]["amount_due"] == "135.00"

    # 4) Pay
    r = client.post(f"/api/bookings/{bid}/pay", json={"payment_method_token": "tok_visa"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["success"] is True
    assert body["redirect"].endswith(f"/bookings/{bid}/confirmation")
    charge = app.extensions["payment_processor"].requests[-1]
    assert str(charge.amount) == "135.00"

    # 5) Confirmation
    r = client.get(f"/bookings/{bid}/confirmation")
    assert "confirmed" in r.get_data(as_text=True).lower()

    # 6) Listed under upcoming
    assert client.get("/bookings").status_code == 200

    # 7) Cancel (start is days away)
    r = client.post(f"/api/bookings/{bid}/cancel")
    assert r.status_code == 200
    assert r.get_json()["booking"]["status"] == BookingStatus.CANCELLED


def test_overlap_returns_409(logged_in, vehicle):
    assert _create(logged_in, vehicle.id, 5, 8).status_code == 201
    r = _create(logged_in, vehicle.id, 6, 10)
    assert r.status_code == 409
    assert r.get_json() == {"success": False,
                            "message": "Error: vehicle is already booked for the selected dates"}


def test_back_to_back_is_allowed_over_http(logged_in, vehicle):
    assert _create(logged_in, vehicle.id, 5, 8).status_code == 201
    assert _create(logged_in, vehicle.id, 8, 10).status_code == 201


def test_past_start_returns_400(logged_in, vehicle):
    r = _create(logged_in, vehicle.id, -2, 3)
    assert r.status_code == 400
    assert "past" in r.get_json()["message"]


def test_unknown_vehicle_returns_404(logged_in):
    assert _create(logged_in, 4242).status_code == 404


def test_requires_action_returns_202_and_stays_pending(logged_in, vehicle):
    bid = _create(logged_in, vehicle.id).get_json()["booking"]["id"]
    r = logged_in.post(f"/api/bookings/{bid}/pay", json={"payment_method_token": "tok_3ds"})
    assert r.status_code == 202
    assert r.get_json()["requires_action"] is True
    r = logged_in.get(f"/bookings/{bid}/payment")
    assert r.status_code == 200


def test_declined_payment_returns_402(logged_in, vehicle):
    bid = _create(logged_in, vehicle.id).get_json()["booking"]["id"]
    r = logged_in.post(f"/api/bookings/{bid}/pay", json={"payment_method_token": "tok_fail"})
    assert r.status_code == 402
    assert r.get_json()["success"] is False


def test_gateway_timeout_returns_502(logged_in, vehicle):
    bid = _create(logged_in, vehicle.id).get_json()["booking"]["id"]
    r = logged_in.post(f"/api/bookings/{bid}/pay", json={"payment_method_token": "tok_timeout"})
    assert r.status_code == 502


def test_other_users_booking_is_forbidden(client, customer, other_customer, vehicle):
    login_as(client, customer)
    bid = _create(client, vehicle.id).get_json()["booking"]["id"]
    login_as(client, other_customer)
    r = client.post(f"/api/bookings/{bid}/cancel")
    assert r.status_code == 403


def test_cancel_inside_window_returns_409(logged_in, vehicle):
    bid = _create(logged_in, vehicle.id, 0, 2).get_json()["booking"]["id"]
    r = logged_in.post(f"/api/bookings/{bid}/cancel")
    assert r.status_code == 409


def test_booking_form_redirects_to_payment(logged_in, vehicle):
    r = logged_in.post("/bookings", data={
        "vehicle_id": vehicle.id, "start_date": _day(3), "end_date": _day(4)})
    assert r.status_code == 302
    assert "/payment" in r.headers["Location"]


def test_admin_status_endpoint(client, customer, admin, vehicle):
    login_as(client, customer)
    bid = _create(client, vehicle.id).get_json()["booking"]["id"]
    login_as(client, admin)
    r = client.post(f"/api/admin/bookings/{bid}/status", json={"status": "CONFIRMED"})
    assert r.get_json()["booking"]["status"] == BookingStatus.CONFIRMED
    r = client.post(f"/api/admin/bookings/{bid}/status", json={"status": "PENDING"})
    assert r.status_code == 409


def test_deals_json_hides_codes(client, make_deal):
    now = utcnow()
    make_deal(code="HIDDEN", valid_from=now - timedelta(days=1), valid_until=now + timedelta(days=5))
    r = client.get("/api/deals")
    deals = r.get_json()["deals"]
    assert len(deals) == 1
    assert "code_hash" not in deals[0] and "code_hint" not in deals[0]


def test_validate_promo_endpoint(logged_in, make_deal):
    now = utcnow()
    make_deal(code="CAPPED", usage_limit=5, usage_count=5,
              valid_from=now - timedelta(days=1), valid_until=now + timedelta(days=5))
    r = logged_in.post("/api/deals/validate", json={"code": "capped"})
    assert r.status_code == 400
    assert "usage limit" in r.get_json()["message"]
    r = logged_in.post("/api/deals/validate", json={"code": "missing"})
    assert r.status_code == 404
