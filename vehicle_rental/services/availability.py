from __future__ import annotations

from datetime import datetime
from typing import List, Tuple

from ..models.booking import Booking
from ..utils.constants import BookingStatus


class AvailabilityChecker:
    """Read-only conflict queries against PENDING/CONFIRMED bookings of one vehicle."""

    def __init__(self, session):
        self.session = session

    def _blocking(self, vehicle_id: int):
        return self.session.query(Booking).filter(
            Booking.vehicle_id == vehicle_id,
            Booking.status.in_(BookingStatus.BLOCKING),
        )

    def has_conflict(self, vehicle_id: int, start: datetime, end: datetime) -> bool:
        """Half-open test: existing.start < end and start < existing.end."""
        q = self._blocking(vehicle_id).filter(
            Booking.start_date < end,
            Booking.end_date > start,
        )
        return self.session.query(q.exists()).scalar()

    def booked_ranges(self, vehicle_id: int) -> List[Tuple[datetime, datetime]]:
        """Blocking ranges sorted by start, used by the UI to disable booked dates."""
        rows = self._blocking(vehicle_id).order_by(Booking.start_date).all()
        return [(b.start_date, b.end_date) for b in rows]
