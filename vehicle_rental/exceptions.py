"""
Custom exception classes for the Vehicle Rental web app.

These exceptions provide precise error types that controllers can catch
to render friendly messages instead of generic 500 errors. Each carries the
HTTP status the JSON endpoints answer with.
"""


class RentalError(Exception):
    """Base class for every domain error raised by the service layer."""

    status_code = 400
    default_message = "Error: request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class InvalidInputError(RentalError):
    """Raised when a form field is missing or malformed."""

    default_message = "Error: invalid input"


class InvalidDateRangeError(InvalidInputError):
    """Raised when start date is after end date or an invalid date is provided."""

    default_message = "Error: invalid date range"


class NotFoundError(RentalError):
    status_code = 404
    default_message = "Error: not found"


class VehicleNotFoundError(NotFoundError):
    """Raised when a vehicle ID cannot be found in the system."""

    default_message = "Error: vehicle not found"


class BookingNotFoundError(NotFoundError):
    """Raised when a booking record cannot be found in the system."""

    default_message = "Error: booking not found"


class DealNotFoundError(NotFoundError):
    """Raised when no deal matches the given promo code or ID."""

    default_message = "Error: promo code not found"


class UserNotFoundError(NotFoundError):
    default_message = "Error: user not found"


class VehicleRequestNotFoundError(NotFoundError):
    default_message = "Error: vehicle request not found"


class ForbiddenError(RentalError):
    """Raised when the current principal lacks the owner/admin capability."""

    status_code = 403
    default_message = "Error: not allowed"


class ConflictError(RentalError):
    """Raised when the requested dates overlap an existing booking."""

    status_code = 409
    default_message = "Error: vehicle is already booked for the selected dates"


class VehicleUnavailableError(RentalError):
    """Raised when a vehicle is flagged as not available for booking."""

    status_code = 409
    default_message = "Error: vehicle is not available"


class InvalidStateError(RentalError):
    status_code = 409
    default_message = "Error: operation not allowed in the current state"


class TooLateError(RentalError):
    """Raised when a cancellation falls inside the no-cancel window."""

    status_code = 409
    default_message = "Error: cancellation is not allowed less than 24 hours before start date"


class PaymentFailedError(RentalError):
    """Raised when the payment processor declines the charge."""

    status_code = 402
    default_message = "Error: payment was declined"


class PaymentProcessingError(RentalError):
    """Raised when the processor response is missing or ambiguous."""

    status_code = 502
    default_message = "Error: payment processing failed, please retry"


class DealInactiveError(RentalError):
    default_message = "Error: promo code is not active"


class DealOutOfWindowError(RentalError):
    default_message = "Error: promo code is not valid at this time"


class DealLimitReachedError(RentalError):
    default_message = "Error: promo code usage limit reached"
