"""
Admin pages and JSON endpoints are protected from anonymous and non-admin access.
"""
import pytest

from conftest import login_as

ADMIN_PAGES = ["/admin", "/admin/vehicles", "/admin/bookings", "/admin/deals",
               "/admin/broadcasts", "/admin/users", "/admin/vehicle-requests"]


@pytest.mark.parametrize("path", ADMIN_PAGES)
def test_admin_pages_require_login(client, path):
    r = client.get(path)
    assert r.status_code == 302
    assert "/login" in r.headers["Location"]


@pytest.mark.parametrize("path", ADMIN_PAGES)
def test_admin_pages_reject_customers(client, customer, path):
    login_as(client, customer)
    r = client.get(path)
    assert r.status_code == 302
    assert "/login" not in r.headers["Location"]


@pytest.mark.parametrize("path", ADMIN_PAGES)
def test_admin_pages_render_for_admin(client, admin, vehicle, path):
    login_as(client, admin)
    assert client.get(path).status_code == 200


def test_json_endpoints_answer_401_when_anonymous(client, vehicle):
    r = client.post("/api/bookings", json={"vehicle_id": vehicle.id})
    assert r.status_code == 401
    assert r.get_json()["success"] is False


def test_admin_json_answers_403_for_customers(client, customer):
    login_as(client, customer)
    assert client.get("/api/admin/stats").status_code == 403
    r = client.post("/api/admin/bookings/1/status", json={"status": "CONFIRMED"})
    assert r.status_code == 403


def test_admin_stats_json(client, admin):
    login_as(client, admin)
    r = client.get("/api/admin/stats")
    assert r.status_code == 200
    stats = r.get_json()["stats"]
    assert len(stats["revenue_by_month"]) == 12
    assert "active_deals" in stats


def test_vehicle_pages_are_public(client, vehicle):
    assert client.get("/vehicles").status_code == 200
    assert client.get(f"/vehicles/{vehicle.id}").status_code == 200


def test_unknown_vehicle_redirects_with_message(client):
    r = client.get("/vehicles/999", follow_redirects=True)
    assert "vehicle with id" in r.get_data(as_text=True).lower()
