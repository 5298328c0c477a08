# vehicle_rental/utils/constants.py

"""
Global constants for roles, statuses, and allowed types.
These constants are imported by both models and services.
"""

# Date format (used for booking start/end form fields)
DATE_FMT = "%Y-%m-%d"


class Role:
    USER = "user"
    ADMIN = "admin"

    ALL = (USER, ADMIN)


class BookingStatus:
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    ALL = (PENDING, CONFIRMED, CANCELLED)
    # statuses that hold the vehicle for their date range
    BLOCKING = (PENDING, CONFIRMED)


class BookingPhase:
    """Display classification derived from status and the clock, never stored."""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    PAST = "past"
    CANCELLED = "cancelled"


class DiscountType:
    PERCENT = "PERCENT"
    FIXED = "FIXED"

    ALL = (PERCENT, FIXED)


class Audience:
    ALL = "ALL"
    USERS = "USERS"
    ADMINS = "ADMINS"

    CHOICES = (ALL, USERS, ADMINS)


class RequestStatus:
    """Lifecycle of a customer's request for a vehicle the fleet does not have."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    ALL = (PENDING, APPROVED, REJECTED)


class PaymentStatus:
    SUCCEEDED = "succeeded"
    REQUIRES_ACTION = "requires_action"
    FAILED = "failed"


# --- Misc ---
TRANSMISSIONS = ("Automatic", "Manual")
FUEL_TYPES = ("Petrol", "Diesel", "Hybrid", "Electric")
PLACEHOLDER = "/static/images/placeholder-car.jpg"
