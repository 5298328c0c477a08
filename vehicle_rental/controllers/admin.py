from __future__ import annotations

from flask import Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for

from ..exceptions import RentalError
from ..models.db import db
from ..services.analytics_service import AnalyticsService
from ..services.booking_service import BookingService
from ..services.broadcast_service import BroadcastService
from ..services.common import as_bool, to_int_safe
from ..services.deal_service import DealService
from ..services.user_service import UserService
from ..services.vehicle_request_service import VehicleRequestService
from ..services.vehicle_service import VehicleService
from ..utils.constants import Audience, BookingStatus, DiscountType, FUEL_TYPES, RequestStatus, Role, TRANSMISSIONS
from ..utils.decorators import admin_required, current_principal

bp = Blueprint("admin", __name__)

PAGE_SIZE = 20


def _page() -> int:
    return max(1, to_int_safe(request.args.get("page")) or 1)


def _form_error(e: RentalError, endpoint: str, **values):
    """Roll back, flash the service message and go back to the form's page."""
    db.session.rollback()
    flash(e.message, "danger")
    return redirect(url_for(endpoint, **values))


# --------------- Dashboard ---------------
@bp.get("/admin")
@admin_required
def dashboard():
    data = AnalyticsService(db.session).dashboard()
    return render_template("admin/dashboard.html", data=data)


@bp.get("/api/admin/stats")
@admin_required
def stats():
    return jsonify(success=True, stats=AnalyticsService(db.session).stats())


# --------------- Vehicles ---------------
@bp.get("/admin/vehicles")
@admin_required
def vehicles():
    page = _page()
    rows, total = VehicleService(db.session).all_vehicles(current_principal(), page, PAGE_SIZE)
    return render_template("admin/vehicles.html", vehicles=rows, total=total,
                           page=page, page_size=PAGE_SIZE)


@bp.get("/admin/vehicles/new")
@admin_required
def new_vehicle():
    return render_template("admin/vehicle_form.html", v=None,
                           transmissions=TRANSMISSIONS, fuel_types=FUEL_TYPES)


@bp.post("/admin/vehicles")
@admin_required
def create_vehicle():
    try:
        v = VehicleService(db.session).create(current_principal(), request.form.to_dict())
    except RentalError as e:
        return _form_error(e, "admin.new_vehicle")
    flash(f"Vehicle {v.name} added", "success")
    return redirect(url_for("admin.vehicles"))


@bp.get("/admin/vehicles/<int:vid>/edit")
@admin_required
def edit_vehicle(vid):
    v = VehicleService(db.session).get_vehicle(vid)
    return render_template("admin/vehicle_form.html", v=v,
                           transmissions=TRANSMISSIONS, fuel_types=FUEL_TYPES)


@bp.post("/admin/vehicles/<int:vid>")
@admin_required
def update_vehicle(vid):
    try:
        VehicleService(db.session).update(current_principal(), vid, request.form.to_dict())
    except RentalError as e:
        return _form_error(e, "admin.edit_vehicle", vid=vid)
    flash("Vehicle updated", "success")
    return redirect(url_for("admin.vehicles"))


@bp.post("/admin/vehicles/<int:vid>/availability")
@admin_required
def toggle_vehicle(vid):
    v = VehicleService(db.session).set_availability(
        current_principal(), vid, as_bool(request.form.get("available")))
    flash(f"{v.name} is now {'available' if v.available else 'unavailable'}", "success")
    return redirect(url_for("admin.vehicles"))


@bp.post("/admin/vehicles/<int:vid>/delete")
@admin_required
def delete_vehicle(vid):
    try:
        VehicleService(db.session).delete(current_principal(), vid)
    except RentalError as e:
        return _form_error(e, "admin.vehicles")
    flash("Vehicle deleted", "success")
    return redirect(url_for("admin.vehicles"))


# --------------- Bookings ---------------
@bp.get("/admin/bookings")
@admin_required
def bookings():
    page = _page()
    rows, total = BookingService(db.session).all_bookings(current_principal(), page, PAGE_SIZE)
    return render_template("admin/bookings.html", bookings=rows, total=total, page=page,
                           page_size=PAGE_SIZE, statuses=BookingStatus.ALL)


@bp.post("/api/admin/bookings/<int:booking_id>/status")
@admin_required
def booking_status(booking_id):
    data = request.get_json(silent=True) or request.form
    booking = BookingService(db.session).update_status(current_principal(), booking_id, data.get("status"))
    return jsonify(success=True, booking=booking.to_dict())


# --------------- Vehicle requests ---------------
@bp.get("/admin/vehicle-requests")
@admin_required
def vehicle_requests():
    status = request.args.get("status") or None
    rows = VehicleRequestService(db.session).all_requests(current_principal(), status)
    return render_template("admin/vehicle_requests.html", requests=rows,
                           statuses=RequestStatus.ALL, selected=status)


@bp.post("/api/admin/vehicle-requests/<int:request_id>/status")
@admin_required
def vehicle_request_status(request_id):
    data = request.get_json(silent=True) or request.form
    req = VehicleRequestService(db.session).update_status(current_principal(), request_id, data.get("status"))
    return jsonify(success=True, request=req.to_dict())


# --------------- Deals ---------------
@bp.get("/admin/deals")
@admin_required
def deals():
    rows = DealService(db.session).all_deals(current_principal())
    return render_template("admin/deals.html", deals=rows, deal=None, discount_types=DiscountType.ALL)


@bp.post("/admin/deals")
@admin_required
def create_deal():
    try:
        DealService(db.session).create(current_principal(), request.form.to_dict())
    except RentalError as e:
        return _form_error(e, "admin.deals")
    flash("Deal created", "success")
    return redirect(url_for("admin.deals"))


@bp.get("/admin/deals/<int:deal_id>/edit")
@admin_required
def edit_deal(deal_id):
    svc = DealService(db.session)
    return render_template("admin/deals.html", deals=svc.all_deals(current_principal()),
                           deal=svc.get(deal_id), discount_types=DiscountType.ALL)


@bp.post("/admin/deals/<int:deal_id>")
@admin_required
def update_deal(deal_id):
    try:
        DealService(db.session).update(current_principal(), deal_id, request.form.to_dict())
    except RentalError as e:
        return _form_error(e, "admin.edit_deal", deal_id=deal_id)
    flash("Deal updated", "success")
    return redirect(url_for("admin.deals"))


@bp.post("/admin/deals/<int:deal_id>/delete")
@admin_required
def delete_deal(deal_id):
    try:
        DealService(db.session).delete(current_principal(), deal_id)
    except RentalError as e:
        return _form_error(e, "admin.deals")
    flash("Deal deleted", "success")
    return redirect(url_for("admin.deals"))


# --------------- Broadcasts ---------------
@bp.get("/admin/broadcasts")
@admin_required
def broadcasts():
    rows = BroadcastService(db.session).recent(50)
    return render_template("admin/broadcasts.html", broadcasts=rows, audiences=Audience.CHOICES)


@bp.post("/admin/broadcasts")
@admin_required
def send_broadcast():
    svc = BroadcastService(db.session, hub=current_app.extensions["broadcast_hub"])
    try:
        svc.create(current_principal(), request.form.get("title"),
                   request.form.get("message"), request.form.get("target"))
    except RentalError as e:
        return _form_error(e, "admin.broadcasts")
    flash("Broadcast sent", "success")
    return redirect(url_for("admin.broadcasts"))


# --------------- Users ---------------
@bp.get("/admin/users")
@admin_required
def users():
    rows = UserService(db.session).all_users(current_principal())
    return render_template("admin/users.html", users=rows, roles=Role.ALL)


@bp.post("/admin/users")
@admin_required
def add_user():
    form = request.form
    try:
        UserService(db.session).admin_create_user(
            current_principal(), form.get("username"), form.get("password"),
            role=form.get("role") or Role.USER, email=form.get("email"))
    except RentalError as e:
        return _form_error(e, "admin.users")
    flash("User created", "success")
    return redirect(url_for("admin.users"))


@bp.post("/admin/users/<int:user_id>/delete")
@admin_required
def delete_user(user_id):
    try:
        UserService(db.session).admin_delete_user(current_principal(), user_id)
    except RentalError as e:
        return _form_error(e, "admin.users")
    flash("User deleted", "success")
    return redirect(url_for("admin.users"))
