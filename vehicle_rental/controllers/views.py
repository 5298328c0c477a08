from flask import Blueprint, flash, render_template, redirect, request, url_for

from ..exceptions import RentalError
from ..models.db import db
from ..services.booking_service import BookingService
from ..services.broadcast_service import BroadcastService
from ..services.deal_service import DealService
from ..services.notifications import audience_for
from ..services.review_service import ReviewService
from ..services.user_service import UserService
from ..utils.decorators import current_principal, login_required

bp = Blueprint("views", __name__)


@bp.get("/")
@login_required
def home():
    if current_principal().is_admin:
        return redirect(url_for("admin.dashboard"))
    return redirect(url_for("views.user_dashboard"))


@bp.get("/dashboard")
@login_required
def user_dashboard():
    me = current_principal()
    groups = BookingService(db.session).bookings_for_user(me)
    deals = DealService(db.session).active_deals()
    broadcasts = BroadcastService(db.session).recent(5, audience=audience_for(me.role))
    return render_template("dashboards/user.html", groups=groups, deals=deals, broadcasts=broadcasts)


@bp.get("/profile")
@login_required
def profile():
    user = UserService(db.session).profile(current_principal())
    return render_template("user/profile.html", user=user)


@bp.post("/profile")
@login_required
def update_profile():
    try:
        UserService(db.session).update_profile(current_principal(), request.form.to_dict())
    except RentalError as e:
        db.session.rollback()
        flash(e.message, "danger")
        return redirect(url_for("views.profile"))
    flash("Profile updated", "success")
    return redirect(url_for("views.profile"))


@bp.get("/reviews")
@login_required
def my_reviews():
    reviews = ReviewService(db.session).for_user(current_principal())
    return render_template("user/reviews.html", reviews=reviews)
