"""Jinja filters for display: stored UTC datetimes to local time, and money."""
from datetime import datetime, date, timezone
from decimal import Decimal, InvalidOperation

import pytz

DEFAULT_TZ = "Pacific/Auckland"


def _coerce(value):
    """datetime/date as-is; ISO strings parsed ('Z' suffix allowed); anything else None."""
    if isinstance(value, (datetime, date)):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text) if ("T" in text or " " in text) else date.fromisoformat(text)
    except ValueError:
        return None


def fmt_iso_local(value, use_12h: bool = False, tz_name: str = DEFAULT_TZ) -> str:
    """
    Render a stored timestamp in the display timezone.
    Plain dates are shown as-is (dd/mm/yyyy); naive datetimes are UTC.
    Unparseable input is returned unchanged so a page never goes blank.
    """
    if value is None or value == "":
        return ""
    dt = _coerce(value)
    if dt is None:
        return str(value)
    if not isinstance(dt, datetime):
        return dt.strftime("%d/%m/%Y")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        local = dt.astimezone(pytz.timezone(tz_name))
    except pytz.UnknownTimeZoneError:
        local = dt

    if use_12h:
        hour = local.strftime("%I").lstrip("0") or "12"
        return f"{local:%d %b %Y}, {hour}:{local:%M %p}"
    return f"{local:%d/%m/%Y %H:%M}"


def fmt_money(value) -> str:
    if value is None or value == "":
        return "0.00"
    try:
        return f"{Decimal(str(value)):,.2f}"
    except InvalidOperation:
        return str(value)
