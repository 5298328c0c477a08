from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from vehicle_rental import create_app
from vehicle_rental.config import TestConfig
from vehicle_rental.models.booking import Booking
from vehicle_rental.models.db import db
from vehicle_rental.models.deal import Deal
from vehicle_rental.models.user import User
from vehicle_rental.models.vehicle import Vehicle
from vehicle_rental.services.booking_service import BookingService
from vehicle_rental.services.payments import FakePaymentProcessor
from vehicle_rental.utils.constants import BookingStatus, DiscountType, Role
from vehicle_rental.utils.permissions import Principal
from vehicle_rental.utils.security import TokenCipher, code_hint, generate_hash, hash_promo_code

# Fixed "now" for service-level tests: 2030-01-10 12:00 UTC
NOW = datetime(2030, 1, 10, 12, 0, 0)


@pytest.fixture
def app():
    """Fresh app with an in-memory database per test."""
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def clock():
    """Settable clock; tests move it with clock.now = ..."""

    class Clock:
        now = NOW

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def processor():
    return FakePaymentProcessor()


@pytest.fixture
def cipher():
    return TokenCipher(TestConfig.PAYMENT_TOKEN_KEY)


@pytest.fixture
def bookings(session, processor, cipher, clock):
    return BookingService(session, processor=processor, cipher=cipher, clock=clock)


def _make_user(username, role=Role.USER, password="Secret123"):
    user = User(username=username, password_hash=generate_hash(password), role=role)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def make_user(app):
    return _make_user


@pytest.fixture
def customer(app):
    u = _make_user("alice")
    return Principal(u.id, Role.USER, u.username)


@pytest.fixture
def other_customer(app):
    u = _make_user("bob")
    return Principal(u.id, Role.USER, u.username)


@pytest.fixture
def admin(app):
    u = _make_user("admin", role=Role.ADMIN, password="Admin123")
    return Principal(u.id, Role.ADMIN, u.username)


@pytest.fixture
def make_vehicle(app):
    def _make(name="Toyota Corolla", vtype="Sedan", rate="50.00", available=True, **specs):
        make, _, model = name.partition(" ")
        v = Vehicle(
            name=name,
            type=vtype,
            price_per_day=Decimal(rate),
            available=available,
            specs={"make": make, "model": model, "year": 2022, "seats": 5,
                   "transmission": "Automatic", "fuel_type": "Petrol", **specs},
            features=[],
            images=["/static/images/placeholder-car.jpg"],
            description=name,
        )
        db.session.add(v)
        db.session.commit()
        return v

    return _make


@pytest.fixture
def vehicle(make_vehicle):
    return make_vehicle()


@pytest.fixture
def make_booking(app):
    """Insert a booking row directly (bypasses the past-date check)."""

    def _make(user_id, vehicle_id, start, end, status=BookingStatus.CONFIRMED, total="100.00"):
        days = max(1, (end - start).days)
        b = Booking(user_id=user_id, vehicle_id=vehicle_id, start_date=start, end_date=end,
                    days=days, daily_rate=Decimal(total) / days, total_price=Decimal(total),
                    discount_amount=Decimal("0.00"), status=status)
        db.session.add(b)
        db.session.commit()
        return b

    return _make


@pytest.fixture
def make_deal(app):
    def _make(code="SAVE10", discount_type=DiscountType.PERCENT, value="10.00",
              valid_from=NOW - timedelta(days=30), valid_until=NOW + timedelta(days=30),
              usage_limit=None, usage_count=0, is_active=True, min_purchase=None):
        d = Deal(code_hash=hash_promo_code(code), code_hint=code_hint(code),
                 description=f"{code} deal", discount_type=discount_type,
                 discount_value=Decimal(value),
                 min_purchase=Decimal(min_purchase) if min_purchase is not None else None,
                 usage_limit=usage_limit, usage_count=usage_count,
                 valid_from=valid_from, valid_until=valid_until, is_active=is_active)
        db.session.add(d)
        db.session.commit()
        return d

    return _make


def login_as(client, principal: Principal):
    """Put a principal into the test client's session, as the login view does."""
    with client.session_transaction() as s:
        s["uid"] = principal.user_id
        s["role"] = principal.role
        s["username"] = principal.username
