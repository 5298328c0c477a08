"""
Cross-booking (overlap) tests for booking creation. Ensures that creating a booking
for a vehicle within a window overlapping an existing PENDING/CONFIRMED booking is rejected.
"""
from datetime import datetime

import pytest

from vehicle_rental.exceptions import ConflictError
from vehicle_rental.services.availability import AvailabilityChecker
from vehicle_rental.utils.constants import BookingStatus


@pytest.fixture
def existing(make_booking, other_customer, vehicle):
    """An existing CONFIRMED booking from 2030-11-01 to 2030-11-05."""
    return make_booking(other_customer.user_id, vehicle.id,
                        datetime(2030, 11, 1), datetime(2030, 11, 5))


def test_cross_booking_conflict(bookings, customer, vehicle, existing):
    """Overlapping 2030-11-03 ~ 2030-11-07 must fail."""
    with pytest.raises(ConflictError):
        bookings.create(customer, vehicle.id, "2030-11-03", "2030-11-07")


def test_enclosing_range_conflicts(bookings, customer, vehicle, existing):
    with pytest.raises(ConflictError):
        bookings.create(customer, vehicle.id, "2030-10-30", "2030-11-10")


def test_non_overlapping_booking_succeeds(bookings, customer, vehicle, existing):
    """Strictly after the existing booking (2030-11-06 ~ 2030-11-10) succeeds."""
    b = bookings.create(customer, vehicle.id, "2030-11-06", "2030-11-10")
    assert b.status == BookingStatus.PENDING


def test_back_to_back_bookings_are_allowed(bookings, customer, vehicle, existing):
    """Ranges are half-open, so a booking may start the day the previous one ends."""
    b = bookings.create(customer, vehicle.id, "2030-11-05", "2030-11-08")
    assert b.id is not None
    b2 = bookings.create(customer, vehicle.id, "2030-10-29", "2030-11-01")
    assert b2.id is not None


@pytest.mark.parametrize("status,blocks", [
    (BookingStatus.PENDING, True),
    (BookingStatus.CONFIRMED, True),
    (BookingStatus.CANCELLED, False),
])
def test_only_pending_and_confirmed_block(make_booking, other_customer, vehicle, session, status, blocks):
    make_booking(other_customer.user_id, vehicle.id,
                 datetime(2030, 11, 1), datetime(2030, 11, 5), status=status)
    checker = AvailabilityChecker(session)
    assert checker.has_conflict(vehicle.id, datetime(2030, 11, 2), datetime(2030, 11, 3)) == blocks


def test_other_vehicles_do_not_block(make_vehicle, make_booking, other_customer, session):
    a = make_vehicle("Honda Fit")
    b = make_vehicle("Mazda CX-5", vtype="SUV")
    make_booking(other_customer.user_id, a.id, datetime(2030, 11, 1), datetime(2030, 11, 5))
    assert not AvailabilityChecker(session).has_conflict(b.id, datetime(2030, 11, 2), datetime(2030, 11, 3))


def test_conflict_check_is_read_only(make_booking, other_customer, vehicle, session):
    b = make_booking(other_customer.user_id, vehicle.id, datetime(2030, 11, 1), datetime(2030, 11, 5))
    AvailabilityChecker(session).has_conflict(vehicle.id, datetime(2030, 11, 2), datetime(2030, 11, 3))
    session.refresh(b)
    assert b.status == BookingStatus.CONFIRMED



def test_booked_ranges_sorted_by_start(make_booking, other_customer, vehicle, session):
    make_booking(other_customer.user_id, vehicle.id, datetime(2030, 12, 1), datetime(2030, 12, 3))
    make_booking(other_customer.user_id, vehicle.id, datetime(2030, 11, 1), datetime(2030, 11, 3))
    make_booking(other_customer.user_id, vehicle.id, datetime(2030, 11, 10), datetime(2030, 11, 12),
                 status=BookingStatus.CANCELLED)
    ranges = AvailabilityChecker(session).booked_ranges(vehicle.id)
    assert ranges == [
        (datetime(2030, 11, 1), datetime(2030, 11, 3)),
        (datetime(2030, 12, 1), datetime(2030, 12, 3)),
    ]
