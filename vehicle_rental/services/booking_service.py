"""Booking lifecycle: create, promo, pay, cancel, admin status changes, classification."""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from ..exceptions import (
    BookingNotFoundError,
    ConflictError,
    InvalidInputError,
    InvalidStateError,
    PaymentFailedError,
    PaymentProcessingError,
    TooLateError,
    VehicleNotFoundError,
    VehicleUnavailableError,
)
from ..models.booking import Booking
from ..models.vehicle import Vehicle
from ..utils.constants import BookingPhase, BookingStatus, PaymentStatus
from ..utils.permissions import Capability, Principal, authorize
from ..utils.security import TokenCipher
from .availability import AvailabilityChecker
from .common import Clock, as_datetime, money, system_clock, to_int_safe
from .deal_service import DealService
from .payments import PaymentProcessor, PaymentRequest, PaymentResult
from .pricing import calculate_total, rental_days

logger = logging.getLogger(__name__)

# moves an admin may make from the back office
ADMIN_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
}


def classify(booking: Booking, now: datetime) -> str:
    """
    Display phase derived from status and the clock; never persisted.
    A PENDING booking whose start has passed without payment counts as past.
    """
    if booking.status == BookingStatus.CANCELLED:
        return BookingPhase.CANCELLED
    if now < booking.start_date:
        return BookingPhase.UPCOMING
    if booking.status == BookingStatus.CONFIRMED and now < booking.end_date:
        return BookingPhase.ACTIVE
    return BookingPhase.PAST


class BookingService:
    """
    Orchestrates a booking from PENDING to CONFIRMED or CANCELLED.
    Collaborators are passed in; nothing is looked up from request globals.
    """

    def __init__(self, session, processor: Optional[PaymentProcessor] = None,
                 cipher: Optional[TokenCipher] = None, clock: Clock = system_clock,
                 currency: str = "usd", cancellation_window_hours: int = 24):
        self.session = session
        self.processor = processor
        self.cipher = cipher
        self.clock = clock
        self.currency = currency
        self.cancellation_window = timedelta(hours=cancellation_window_hours)
        self.availability = AvailabilityChecker(session)
        self.deals = DealService(session, clock=clock)

    # --------------- Queries ---------------
    def _load(self, booking_id) -> Booking:
        bid = to_int_safe(booking_id)
        booking = self.session.get(Booking, bid) if bid is not None else None
        if booking is None:
            raise BookingNotFoundError()
        return booking

    def get_booking(self, actor: Principal, booking_id) -> Booking:
        booking = self._load(booking_id)
        authorize(actor, Capability.OWNER, booking.user_id)
        return booking

    def bookings_for_user(self, actor: Principal):
        """This user's bookings (vehicle attached), grouped by display phase, newest first."""
        now = self.clock()
        rows = (self.session.query(Booking)
                .filter(Booking.user_id == actor.user_id)
                .order_by(Booking.start_date.desc())
                .all())
        grouped = defaultdict(list)
        for b in rows:
            grouped[classify(b, now)].append(b)
        pending = [b for b in grouped[BookingPhase.UPCOMING] if b.status == BookingStatus.PENDING]
        return {
            BookingPhase.UPCOMING: grouped[BookingPhase.UPCOMING],
            BookingPhase.ACTIVE: grouped[BookingPhase.ACTIVE],
            BookingPhase.PAST: grouped[BookingPhase.PAST],
            BookingPhase.CANCELLED: grouped[BookingPhase.CANCELLED],
            "pending": pending,
        }

    def all_bookings(self, actor: Principal, page: int = 1, limit: int = 10):
        authorize(actor, Capability.ADMIN)
        page = max(1, page)
        limit = max(1, min(limit, 100))
        q = self.session.query(Booking).order_by(Booking.created_at.desc())
        return q.offset((page - 1) * limit).limit(limit).all(), q.count()

    # --------------- Commands ---------------
    def create(self, actor: Principal, vehicle_id, start, end) -> Booking:
        """
        Validate and insert a PENDING booking.
        The vehicle row is locked first so that concurrent requests for the same
        vehicle run their overlap check one at a time.
        """
        d1 = as_datetime(start, "start date")
        d2 = as_datetime(end, "end date")
        days = rental_days(d1, d2)

        now = self.clock()
        if d1 < now.replace(hour=0, minute=0, second=0, microsecond=0):
            raise InvalidInputError("Start date cannot be in the past")

        try:
            vid = int(vehicle_id)
        except (TypeError, ValueError):
            raise VehicleNotFoundError() from None
        vehicle = (self.session.query(Vehicle)
                   .filter(Vehicle.id == vid)
                   .with_for_update()
                   .first())
        if vehicle is None:
            raise VehicleNotFoundError()
        if not vehicle.available:
            raise VehicleUnavailableError("Vehicle is not available for booking")

        if self.availability.has_conflict(vehicle.id, d1, d2):
            raise ConflictError()

        booking = Booking(
            user_id=actor.user_id,
            vehicle_id=vehicle.id,
            start_date=d1,
            end_date=d2,
            days=days,
            daily_rate=vehicle.price_per_day,
            total_price=calculate_total(vehicle.price_per_day, d1, d2),
            discount_amount=Decimal("0.00"),
            status=BookingStatus.PENDING,
        )
        self.session.add(booking)
        self.session.commit()
        logger.info("Booking %s created: vehicle=%s user=%s %s..%s total=%s",
                    booking.id, vehicle.id, actor.user_id, d1.isoformat(), d2.isoformat(),
                    booking.total_price)
        return booking

    def apply_promo(self, actor: Principal, booking_id, code: str) -> Booking:
        """Checkout step: validate a promo code and record its discount on a PENDING booking."""
        booking = self.get_booking(actor, booking_id)
        if booking.status != BookingStatus.PENDING:
            raise InvalidStateError("Promo codes can only be applied before payment")
        if booking.payment_in_doubt:
            raise InvalidStateError("A payment attempt is still being confirmed; the amount cannot change now")

        terms = self.deals.validate(code)
        total = Decimal(booking.total_price)
        if terms.min_purchase is not None and total < terms.min_purchase:
            raise InvalidInputError(f"This promo code requires a minimum purchase of {terms.min_purchase}")

        booking.deal_id = terms.deal_id
        booking.discount_amount = terms.discount_for(total)
        self.session.commit()
        logger.info("Deal %s applied to booking %s (discount=%s)",
                    terms.deal_id, booking.id, booking.discount_amount)
        return booking

    def confirm_payment(self, actor: Principal, booking_id, payment_method_token: str) -> PaymentResult:
        """
        Charge the amount due and confirm the booking.
        - succeeded: CONFIRMED, transaction id stored, deal usage counted
        - requires_action: stays PENDING; nothing was captured, so the next
          attempt gets a fresh idempotency key
        - failed: stays PENDING, next attempt gets a fresh idempotency key
        - ambiguous: stays PENDING and in doubt; a retry must resend the same
          request under the same key
        A booking whose amount due is zero is confirmed without a charge.
        """
        booking = self.get_booking(actor, booking_id)
        if booking.status != BookingStatus.PENDING:
            raise InvalidStateError("Only pending bookings can be paid")

        amount = money(booking.amount_due)
        if amount <= 0:
            return self._confirm(booking, PaymentResult(PaymentStatus.SUCCEEDED, None, "No payment required"))

        token = (payment_method_token or "").strip()
        if not token:
            raise InvalidInputError("Payment method is required")
        if self.processor is None or self.cipher is None:
            raise PaymentProcessingError("Payments are not configured")

        if booking.payment_in_doubt:
            if self.cipher.decrypt(booking.payment_method_enc or "") != token:
                raise InvalidStateError(
                    "A previous payment attempt is still being confirmed; retry with the same payment method")
        else:
            booking.payment_method_enc = self.cipher.encrypt(token)
            booking.payment_in_doubt = True
        self.session.commit()

        request = PaymentRequest(
            amount=amount,
            currency=self.currency,
            payment_method_token=token,
            idempotency_key=booking.idempotency_key,
            metadata={"booking_id": str(booking.id), "user_id": str(booking.user_id)},
        )
        try:
            result = self.processor.charge(request)
        except PaymentProcessingError:
            logger.exception("Ambiguous payment response for booking %s (key=%s)",
                             booking.id, request.idempotency_key)
            raise

        booking.payment_in_doubt = False
        if result.succeeded:
            return self._confirm(booking, result)

        # definite non-capture: the next attempt is a new request with a new key
        booking.payment_attempts = (booking.payment_attempts or 0) + 1
        if result.status == PaymentStatus.REQUIRES_ACTION:
            booking.payment_reference = result.transaction_id
            self.session.commit()
            logger.info("Booking %s payment requires action", booking.id)
            return result

        self.session.commit()
        logger.warning("Booking %s payment declined: %s", booking.id, result.message)
        raise PaymentFailedError(result.message or None)

    def _confirm(self, booking: Booking, result: PaymentResult) -> PaymentResult:
        booking.status = BookingStatus.CONFIRMED
        booking.payment_reference = result.transaction_id
        if booking.deal_id is not None:
            self.deals.redeem(booking.deal_id)
        self.session.commit()
        logger.info("Booking %s confirmed (txn=%s)", booking.id, result.transaction_id or "none")
        return result

    def cancel(self, actor: Principal, booking_id) -> Booking:
        booking = self.get_booking(actor, booking_id)
        if booking.status not in BookingStatus.BLOCKING:
            raise InvalidStateError("Cannot cancel booking with current status")
        if booking.payment_in_doubt:
            raise InvalidStateError("A payment attempt is still being confirmed; try again shortly")
        if booking.start_date - self.clock() < self.cancellation_window:
            raise TooLateError()

        booking.status = BookingStatus.CANCELLED
        self.session.commit()
        logger.info("Booking %s cancelled by user %s", booking.id, actor.user_id)
        return booking

    def update_status(self, actor: Principal, booking_id, status: str) -> Booking:
        """Back-office status change; bypasses the customer cancellation window."""
        authorize(actor, Capability.ADMIN)
        status = (status or "").strip().upper()
        if status not in BookingStatus.ALL:
            raise InvalidInputError("Invalid status")

        booking = self._load(booking_id)
        if status not in ADMIN_TRANSITIONS.get(booking.status, set()):
            raise InvalidStateError(f"Cannot move booking from {booking.status} to {status}")

        old = booking.status
        booking.status = status
        self.session.commit()
        logger.info("Booking %s moved %s -> %s by admin %s", booking.id, old, status, actor.user_id)
        return booking
