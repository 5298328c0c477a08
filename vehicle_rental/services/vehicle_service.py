from __future__ import annotations

import logging
from typing import List

from sqlalchemy import func

from ..exceptions import InvalidInputError, InvalidStateError, VehicleNotFoundError
from ..models.booking import Booking
from ..models.vehicle import Vehicle
from ..utils.constants import FUEL_TYPES, PLACEHOLDER, TRANSMISSIONS
from ..utils.permissions import Capability, Principal, authorize
from .availability import AvailabilityChecker
from .common import as_bool, money, norm_type, split_list, to_decimal_safe, to_int_safe, valid_image_path

logger = logging.getLogger(__name__)

# fields an admin may still edit once a booking references the vehicle
MUTABLE_WHEN_BOOKED = {"price_per_day", "available"}


class VehicleService:
    """Vehicle catalogue: filter, detail, create, update, delete."""

    def __init__(self, session):
        self.session = session

    # --------------- Queries ---------------
    def filter_vehicles(self, vtype=None, text=None, min_rate=None, max_rate=None,
                        available_only: bool = False) -> List[Vehicle]:
        """
        Filter vehicles by type, make/model text, and price range.
        - text matches the vehicle name, case-insensitive and partial
        - invalid min/max values are ignored; reversed bounds are swapped
        """
        q = self.session.query(Vehicle)

        vt = norm_type(vtype)
        if vt:
            q = q.filter(func.lower(Vehicle.type) == vt)

        kw = (text or "").strip().lower()
        if kw:
            q = q.filter(func.lower(Vehicle.name).contains(kw, autoescape=True))

        min_val = to_decimal_safe(min_rate)
        max_val = to_decimal_safe(max_rate)
        if (min_val is not None) and (max_val is not None) and (min_val > max_val):
            min_val, max_val = max_val, min_val
        if min_val is not None:
            q = q.filter(Vehicle.price_per_day >= min_val)
        if max_val is not None:
            q = q.filter(Vehicle.price_per_day <= max_val)

        if available_only:
            q = q.filter(Vehicle.available.is_(True))

        return q.order_by(Vehicle.price_per_day.asc(), Vehicle.id.asc()).all()

    def get_vehicle(self, vid) -> Vehicle:
        """Return a vehicle by ID or raise VehicleNotFoundError."""
        v = self.session.get(Vehicle, to_int_safe(vid)) if to_int_safe(vid) is not None else None
        if v is None:
            raise VehicleNotFoundError(f"Error: vehicle with ID '{vid}' not found")
        return v

    def vehicle_types(self) -> List[str]:
        rows = self.session.query(Vehicle.type).distinct().order_by(Vehicle.type).all()
        return [r[0] for r in rows]

    def availability_calendar(self, vehicle_id) -> list:
        """Blocking (start, end) ranges for the detail page's date picker."""
        return AvailabilityChecker(self.session).booked_ranges(self.get_vehicle(vehicle_id).id)

    def all_vehicles(self, actor: Principal, page: int = 1, limit: int = 10):
        authorize(actor, Capability.ADMIN)
        page = max(1, page)
        limit = max(1, min(limit, 100))
        q = self.session.query(Vehicle).order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        return q.offset((page - 1) * limit).limit(limit).all(), q.count()

    def _is_referenced(self, vehicle_id: int) -> bool:
        return self.session.query(Booking.id).filter(Booking.vehicle_id == vehicle_id).first() is not None

    # --------------- Admin ---------------
    @staticmethod
    def _parse_payload(payload: dict) -> dict:
        """Validate a create/edit form into model fields."""
        make = (payload.get("make") or "").strip()
        model = (payload.get("model") or "").strip()
        vtype = (payload.get("type") or "").strip()
        price = to_decimal_safe(payload.get("price_per_day"))

        if not make or not model or not vtype or payload.get("price_per_day") in (None, ""):
            raise InvalidInputError("Make, model, type, and price are required")
        if price is None or price <= 0:
            raise InvalidInputError("Price per day must be a valid positive number")

        seats = to_int_safe(payload.get("seats"))
        if seats is None or seats <= 0:
            raise InvalidInputError("Seats must be a positive whole number")
        year = to_int_safe(payload.get("year")) if payload.get("year") not in (None, "") else None
        if year is not None and not (1900 <= year <= 2100):
            raise InvalidInputError("Year is out of range")

        transmission = (payload.get("transmission") or TRANSMISSIONS[0]).strip().title()
        if transmission not in TRANSMISSIONS:
            raise InvalidInputError(f"Transmission must be one of {', '.join(TRANSMISSIONS)}")
        fuel_type = (payload.get("fuel_type") or FUEL_TYPES[0]).strip().title()
        if fuel_type not in FUEL_TYPES:
            raise InvalidInputError(f"Fuel type must be one of {', '.join(FUEL_TYPES)}")

        images = [i for i in split_list(payload.get("images")) if valid_image_path(i)] or [PLACEHOLDER]
        description = (payload.get("description") or "").strip()
        if not description:
            description = f"{make} {model} {year or ''} - {transmission} {fuel_type}".replace("  ", " ")

        return {
            "name": f"{make} {model}",
            "type": vtype,
            "price_per_day": money(price),
            "available": as_bool(payload.get("available")),
            "specs": {
                "make": make,
                "model": model,
                "year": year,
                "seats": seats,
                "transmission": transmission,
                "fuel_type": fuel_type,
            },
            "features": split_list(payload.get("features")),
            "images": images,
            "description": description,
        }

    def create(self, actor: Principal, payload: dict) -> Vehicle:
        authorize(actor, Capability.ADMIN)
        vehicle = Vehicle(**self._parse_payload(payload))
        self.session.add(vehicle)
        self.session.commit()
        logger.info("Vehicle %s (%s) created by user %s", vehicle.id, vehicle.name, actor.user_id)
        return vehicle

    def update(self, actor: Principal, vehicle_id, payload: dict) -> Vehicle:
        """
        Edit a vehicle. Once any booking references it only price and availability
        may change; bookings keep the rate they were priced at.
        """
        authorize(actor, Capability.ADMIN)
        vehicle = self.get_vehicle(vehicle_id)
        fields = self._parse_payload(payload)

        if self._is_referenced(vehicle.id):
            changed = {k for k, v in fields.items() if getattr(vehicle, k) != v}
            locked = changed - MUTABLE_WHEN_BOOKED
            if locked:
                raise InvalidStateError(
                    "Vehicle has bookings; only price and availability can be changed")

        for k, v in fields.items():
            setattr(vehicle, k, v)
        self.session.commit()
        logger.info("Vehicle %s updated by user %s", vehicle.id, actor.user_id)
        return vehicle

    def delete(self, actor: Principal, vehicle_id) -> None:
        """Delete a vehicle if and only if no booking references it."""
        authorize(actor, Capability.ADMIN)
        vehicle = self.get_vehicle(vehicle_id)
        if self._is_referenced(vehicle.id):
            raise InvalidStateError("Cannot delete vehicle because it has associated bookings")
        self.session.delete(vehicle)
        self.session.commit()
        logger.info("Vehicle %s deleted by user %s", vehicle_id, actor.user_id)

    def set_availability(self, actor: Principal, vehicle_id, available: bool) -> Vehicle:
        authorize(actor, Capability.ADMIN)
        vehicle = self.get_vehicle(vehicle_id)
        vehicle.available = bool(available)
        self.session.commit()
        return vehicle
