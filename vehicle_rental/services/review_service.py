from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func

from ..exceptions import BookingNotFoundError, ConflictError, InvalidInputError, InvalidStateError
from ..models.booking import Booking
from ..models.review import Review
from ..utils.constants import BookingPhase, BookingStatus
from ..utils.permissions import Capability, Principal, authorize
from .booking_service import classify
from .common import Clock, system_clock, to_int_safe

logger = logging.getLogger(__name__)

MAX_COMMENT = 1000


class ReviewService:
    """Ratings left by customers on bookings that have finished."""

    def __init__(self, session, clock: Clock = system_clock):
        self.session = session
        self.clock = clock

    def create(self, actor: Principal, booking_id, rating, comment: str = "") -> Review:
        bid = to_int_safe(booking_id)
        booking = self.session.get(Booking, bid) if bid is not None else None
        if booking is None:
            raise BookingNotFoundError()
        authorize(actor, Capability.OWNER, booking.user_id)
        if booking.status != BookingStatus.CONFIRMED or classify(booking, self.clock()) != BookingPhase.PAST:
            raise InvalidStateError("Only completed bookings can be reviewed")

        stars = to_int_safe(rating)
        if stars is None or not 1 <= stars <= 5:
            raise InvalidInputError("Rating must be a whole number from 1 to 5")
        comment = (comment or "").strip()
        if len(comment) > MAX_COMMENT:
            raise InvalidInputError(f"Comment cannot exceed {MAX_COMMENT} characters")

        if self.session.query(Review.id).filter(Review.booking_id == booking.id).first() is not None:
            raise ConflictError("This booking has already been reviewed")

        review = Review(user_id=booking.user_id, vehicle_id=booking.vehicle_id, booking_id=booking.id,
                        rating=stars, comment=comment or None, created_at=self.clock())
        self.session.add(review)
        self.session.commit()
        logger.info("Review %s (%d stars) added to vehicle %s by user %s",
                    review.id, stars, booking.vehicle_id, actor.user_id)
        return review

    def for_user(self, actor: Principal):
        return (self.session.query(Review)
                .filter(Review.user_id == actor.user_id)
                .order_by(Review.created_at.desc(), Review.id.desc())
                .all())

    def for_vehicle(self, vehicle_id: int, limit: int = 20):
        return (self.session.query(Review)
                .filter(Review.vehicle_id == vehicle_id)
                .order_by(Review.created_at.desc(), Review.id.desc())
                .limit(limit)
                .all())

    def average_rating(self, vehicle_id: int) -> Optional[float]:
        avg = self.session.query(func.avg(Review.rating)).filter(Review.vehicle_id == vehicle_id).scalar()
        return round(float(avg), 1) if avg is not None else None

    def reviewed_booking_ids(self, actor: Principal) -> set:
        rows = self.session.query(Review.booking_id).filter(Review.user_id == actor.user_id).all()
        return {r[0] for r in rows}
