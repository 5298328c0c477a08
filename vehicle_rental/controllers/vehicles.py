from flask import Blueprint, render_template, request, redirect, url_for

from ..models.db import db
from ..services.common import as_bool
from ..services.review_service import ReviewService
from ..services.vehicle_service import VehicleService

bp = Blueprint("vehicles", __name__)


@bp.get("/vehicles")
def list_vehicles():
    """Vehicles list with filters. Strip empty query params and redirect to a clean URL."""
    q = {k: (v or "").strip() for k, v in request.args.items()}
    nonempty = {k: v for k, v in q.items() if v}

    # If URL has only empty params, redirect to /vehicles without ?type=&q=...
    if request.args and not nonempty:
        return redirect(url_for("vehicles.list_vehicles"))

    svc = VehicleService(db.session)
    vehicles = svc.filter_vehicles(
        vtype=nonempty.get("type"),
        text=nonempty.get("q"),
        min_rate=nonempty.get("min"),
        max_rate=nonempty.get("max"),
        available_only=as_bool(nonempty.get("available")),
    )
    return render_template("vehicles/index.html", vehicles=vehicles,
                           types=svc.vehicle_types(), filters=nonempty)


@bp.get("/vehicles/<int:vid>")
def vehicle_detail(vid):
    """Vehicle detail page; booked periods feed the date picker."""
    svc = VehicleService(db.session)
    v = svc.get_vehicle(vid)
    calendar = [{"start": s.date().isoformat(), "end": e.date().isoformat()}
                for (s, e) in svc.availability_calendar(vid)]
    reviews = ReviewService(db.session)
    return render_template("vehicles/detail.html", v=v, calendar=calendar,
                           reviews=reviews.for_vehicle(vid), avg_rating=reviews.average_rating(vid))
