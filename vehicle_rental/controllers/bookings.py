from flask import Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for

from ..models.db import db
from ..services.booking_service import BookingService, classify
from ..services.review_service import ReviewService
from ..utils.constants import BookingStatus, PaymentStatus
from ..utils.decorators import current_principal, login_required

bp = Blueprint("bookings", __name__)


def _service() -> BookingService:
    cfg = current_app.config
    return BookingService(
        db.session,
        processor=current_app.extensions["payment_processor"],
        cipher=current_app.extensions["token_cipher"],
        currency=cfg.get("PAYMENT_CURRENCY", "usd"),
        cancellation_window_hours=cfg.get("CANCELLATION_WINDOW_HOURS", 24),
    )


def _payload():
    return request.get_json(silent=True) or request.form


# --------------- JSON ---------------
@bp.post("/api/bookings")
@login_required
def create_booking():
    data = _payload()
    booking = _service().create(
        current_principal(),
        vehicle_id=data.get("vehicle_id"),
        start=data.get("start_date"),
        end=data.get("end_date"),
    )
    return jsonify(success=True, booking=booking.to_dict(),
                   payment_url=url_for("bookings.payment", booking_id=booking.id)), 201


@bp.post("/api/bookings/<int:booking_id>/promo")
@login_required
def apply_promo(booking_id):
    booking = _service().apply_promo(current_principal(), booking_id, _payload().get("code"))
    return jsonify(success=True, booking=booking.to_dict())


@bp.post("/api/bookings/<int:booking_id>/pay")
@login_required
def pay(booking_id):
    result = _service().confirm_payment(current_principal(), booking_id,
                                        _payload().get("payment_method_token"))
    if result.status == PaymentStatus.REQUIRES_ACTION:
        return jsonify(success=False, status=result.status, requires_action=True,
                       message=result.message), 202
    return jsonify(success=True, status=result.status, transaction_id=result.transaction_id,
                   redirect=url_for("bookings.confirmation", booking_id=booking_id))


@bp.post("/api/bookings/<int:booking_id>/cancel")
@login_required
def cancel_json(booking_id):
    booking = _service().cancel(current_principal(), booking_id)
    return jsonify(success=True, booking=booking.to_dict())


# --------------- Pages ---------------
@bp.post("/bookings")
@login_required
def create_booking_form():
    """Booking form on the vehicle detail page; errors flash back to that page."""
    form = request.form
    booking = _service().create(
        current_principal(),
        vehicle_id=form.get("vehicle_id"),
        start=form.get("start_date"),
        end=form.get("end_date"),
    )
    flash("Booking created, please complete payment", "success")
    return redirect(url_for("bookings.payment", booking_id=booking.id))


@bp.get("/bookings")
@login_required
def my_bookings():
    me = current_principal()
    groups = _service().bookings_for_user(me)
    reviewed = ReviewService(db.session).reviewed_booking_ids(me)
    return render_template("bookings/list.html", groups=groups, reviewed=reviewed)


@bp.get("/bookings/<int:booking_id>/payment")
@login_required
def payment(booking_id):
    booking = _service().get_booking(current_principal(), booking_id)
    if booking.status != BookingStatus.PENDING:
        return redirect(url_for("bookings.confirmation", booking_id=booking.id))
    return render_template("bookings/payment.html", booking=booking)


@bp.get("/bookings/<int:booking_id>/confirmation")
@login_required
def confirmation(booking_id):
    svc = _service()
    booking = svc.get_booking(current_principal(), booking_id)
    return render_template("bookings/confirmation.html", booking=booking,
                           phase=classify(booking, svc.clock()))


@bp.post("/bookings/<int:booking_id>/cancel")
@login_required
def cancel_form(booking_id):
    _service().cancel(current_principal(), booking_id)
    flash("Booking cancelled", "success")
    return redirect(url_for("bookings.my_bookings"))


@bp.post("/bookings/<int:booking_id>/review")
@login_required
def review(booking_id):
    ReviewService(db.session).create(current_principal(), booking_id,
                                     request.form.get("rating"), request.form.get("comment"))
    flash("Thanks for your review", "success")
    return redirect(url_for("bookings.my_bookings"))
