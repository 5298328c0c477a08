"""Shared service helpers: parsing, money and clock."""

from datetime import datetime, date, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Optional
from urllib.parse import urlparse

from ..exceptions import InvalidInputError
from ..models.db import utcnow
from ..utils.constants import DATE_FMT

CENTS = Decimal("0.01")

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Wrapper for easier testing/mocking."""
    return utcnow()


# -------- date & math helpers --------
def as_datetime(x, field: str = "date") -> datetime:
    """
    Coerce a date-like value to a naive datetime.
    Accepts datetime, date (midnight), 'YYYY-MM-DD' or an ISO timestamp;
    offsets are converted to UTC.
    """
    if isinstance(x, datetime):
        return x if x.tzinfo is None else x.astimezone(timezone.utc).replace(tzinfo=None)
    if isinstance(x, date):
        return datetime(x.year, x.month, x.day)
    if isinstance(x, str) and x.strip():
        s = x.strip()
        try:
            if len(s) == 10:
                return datetime.strptime(s, DATE_FMT)
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidInputError(f"Invalid {field} (expected YYYY-MM-DD)") from None
        if dt.tzinfo is not None:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        return dt
    raise InvalidInputError(f"Missing {field}")


def money(x) -> Decimal:
    return Decimal(x).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal_safe(value) -> Optional[Decimal]:
    """Safely convert to Decimal; return None if invalid."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def to_int_safe(value) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def as_bool(value) -> bool:
    """HTML checkboxes post 'on'; JSON posts real booleans."""
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("on", "true", "1", "yes")


# -------- validators / normalizers --------
def valid_image_path(s: Optional[str]) -> bool:
    """Accept /static/... or absolute http(s) URL."""
    if not s:
        return False
    s = s.strip()
    if s.startswith("/static/"):
        return True
    u = urlparse(s)
    return u.scheme in ("http", "https") and bool(u.netloc)


def norm_type(value: Optional[str]) -> str:
    """Normalize vehicle type for comparisons; return '' for None."""
    return (value or "").strip().lower()


def split_list(value) -> list[str]:
    """Accept a list, a newline list or a comma list; drop blanks."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        text = str(value)
        items = text.splitlines() if "\n" in text else text.split(",")
    return [str(i).strip() for i in items if i and str(i).strip()]
