from flask import Blueprint, flash, jsonify, redirect, render_template, request, url_for

from ..models.db import db
from ..services.vehicle_request_service import VehicleRequestService
from ..utils.decorators import current_principal, login_required

bp = Blueprint("vehicle_requests", __name__)


@bp.get("/requests")
@login_required
def index():
    rows = VehicleRequestService(db.session).for_user(current_principal())
    return render_template("vehicle_requests/index.html", requests=rows)


@bp.post("/requests")
@login_required
def submit():
    """Errors raise to the app handler, which flashes and goes back to the form."""
    VehicleRequestService(db.session).submit(current_principal(), request.form.to_dict())
    flash("Request sent, we will let you know", "success")
    return redirect(url_for("vehicle_requests.index"))


@bp.post("/api/requests")
@login_required
def submit_json():
    req = VehicleRequestService(db.session).submit(current_principal(), request.get_json(silent=True) or {})
    return jsonify(success=True, request=req.to_dict()), 201
