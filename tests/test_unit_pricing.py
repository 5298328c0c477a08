from datetime import date, datetime
from decimal import Decimal

import pytest

from vehicle_rental.exceptions import InvalidDateRangeError, InvalidInputError
from vehicle_rental.services.pricing import calculate_total, rental_days


def test_three_days_at_fifty_costs_150():
    assert calculate_total(Decimal("50"), "2030-03-01", "2030-03-04") == Decimal("150.00")


@pytest.mark.parametrize("start,end,days", [
    (datetime(2030, 3, 1, 10), datetime(2030, 3, 2, 10), 1),
    (datetime(2030, 3, 1, 10), datetime(2030, 3, 2, 11), 2),   # a started day is a full day
    (datetime(2030, 3, 1, 10), datetime(2030, 3, 1, 12), 1),
    (date(2030, 3, 1), date(2030, 3, 8), 7),
])
def test_rental_days_is_ceiling_of_elapsed_days(start, end, days):
    assert rental_days(start, end) == days


def test_total_is_rounded_to_cents():
    assert calculate_total("33.333", "2030-03-01", "2030-03-04") == Decimal("100.00")


@pytest.mark.parametrize("start,end", [
    ("2030-03-04", "2030-03-01"),
    ("2030-03-01", "2030-03-01"),
])
def test_end_not_after_start_is_invalid_range(start, end):
    with pytest.raises(InvalidDateRangeError):
        calculate_total("50", start, end)


@pytest.mark.parametrize("rate", ["0", "-10", "abc", None])
def test_non_positive_rate_is_invalid_range(rate):
    with pytest.raises(InvalidDateRangeError):
        calculate_total(rate, "2030-03-01", "2030-03-04")


def test_invalid_range_is_a_kind_of_invalid_input():
    with pytest.raises(InvalidInputError):
        rental_days("2030-03-04", "2030-03-01")


def test_malformed_dates_are_invalid_input():
    with pytest.raises(InvalidInputError):
        rental_days("03/01/2030", "2030-03-04")
    with pytest.raises(InvalidInputError):
        rental_days(None, "2030-03-04")
