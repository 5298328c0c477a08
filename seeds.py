import os
from datetime import timedelta
from decimal import Decimal

from vehicle_rental import create_app
from vehicle_rental.models.db import db, utcnow
from vehicle_rental.models.deal import Deal
from vehicle_rental.models.user import User
from vehicle_rental.models.vehicle import Vehicle
from vehicle_rental.utils.constants import DiscountType, Role
from vehicle_rental.utils.security import code_hint, generate_hash, hash_promo_code

DEMO_VEHICLES = [
    {"make": "Toyota", "model": "Corolla", "type": "Sedan", "rate": "45.00", "seats": 5,
     "fuel_type": "Hybrid", "features": ["Bluetooth", "Reverse camera"]},
    {"make": "Honda", "model": "Civic", "type": "Sedan", "rate": "50.00", "seats": 5,
     "fuel_type": "Petrol", "features": ["Apple CarPlay"]},
    {"make": "Mazda", "model": "CX-5", "type": "SUV", "rate": "85.00", "seats": 5,
     "fuel_type": "Petrol", "features": ["AWD", "Roof rails"]},
    {"make": "Tesla", "model": "Model 3", "type": "Electric", "rate": "120.00", "seats": 5,
     "fuel_type": "Electric", "features": ["Autopilot", "Heated seats"]},
    {"make": "Toyota", "model": "Hiace", "type": "Van", "rate": "110.00", "seats": 12,
     "fuel_type": "Diesel", "transmission": "Manual", "features": ["Towbar"]},
]


def ensure_user(username: str, password: str, role: str) -> User:
    """
    Ensure a user with `username` exists.
    - If exists: update password hash and role (idempotent).
    - If not:   create a new user.
    """
    user = User.query.filter_by(username=username).first()
    if user is None:
        user = User(username=username)
        db.session.add(user)
    user.password_hash = generate_hash(password)
    user.role = role
    return user


def main():
    app = create_app()
    with app.app_context():
        admin_user = os.getenv("ADMIN_USERNAME", "admin")
        admin_pass = os.getenv("ADMIN_PASSWORD", "Admin123")

        # ---- Admin / customer demo accounts ----
        ensure_user(admin_user, admin_pass, Role.ADMIN)
        ensure_user("customer", "Customer123", Role.USER)

        # ---- Demo vehicles (create only if none exist) ----
        if Vehicle.query.count() == 0:
            for spec in DEMO_VEHICLES:
                db.session.add(Vehicle(
                    name=f"{spec['make']} {spec['model']}",
                    type=spec["type"],
                    price_per_day=Decimal(spec["rate"]),
                    available=True,
                    specs={
                        "make": spec["make"],
                        "model": spec["model"],
                        "year": 2023,
                        "seats": spec["seats"],
                        "transmission": spec.get("transmission", "Automatic"),
                        "fuel_type": spec["fuel_type"],
                    },
                    features=spec["features"],
                    images=["/static/images/placeholder-car.jpg"],
                    description=f"{spec['make']} {spec['model']} 2023",
                ))

        # ---- Demo promo code ----
        if Deal.query.filter_by(code_hash=hash_promo_code("WELCOME10")).first() is None:
            now = utcnow()
            db.session.add(Deal(
                code_hash=hash_promo_code("WELCOME10"),
                code_hint=code_hint("WELCOME10"),
                description="10% off your first rental",
                discount_type=DiscountType.PERCENT,
                discount_value=Decimal("10.00"),
                usage_limit=100,
                usage_count=0,
                valid_from=now,
                valid_until=now + timedelta(days=90),
                is_active=True,
            ))

        db.session.commit()

        print("Seed complete.")
        print(f"Admin login:     {admin_user} / {admin_pass}")
        print("Customer login:  customer / Customer123")
        print("Promo code:      WELCOME10")


if __name__ == "__main__":
    main()
