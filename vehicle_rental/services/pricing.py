"""Rental duration and price calculation."""
import math
from datetime import datetime
from decimal import Decimal

from ..exceptions import InvalidDateRangeError
from .common import as_datetime, money, to_decimal_safe

SECONDS_PER_DAY = 86400


def rental_days(start, end) -> int:
    """Whole days billed for [start, end): any started day counts as a full day."""
    d1: datetime = as_datetime(start, "start date")
    d2: datetime = as_datetime(end, "end date")
    if d2 <= d1:
        raise InvalidDateRangeError("End date must be after start date")
    return math.ceil((d2 - d1).total_seconds() / SECONDS_PER_DAY)


def calculate_total(daily_rate, start, end) -> Decimal:
    """
    total = ceil(days(end - start)) * daily_rate, rounded to cents.
    Raises InvalidDateRangeError for end <= start or a non-positive rate.
    """
    rate = to_decimal_safe(daily_rate)
    if rate is None or rate <= 0:
        raise InvalidDateRangeError("Daily rate must be a positive number")
    return money(rate * rental_days(start, end))
