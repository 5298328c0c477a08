import logging

from dotenv import load_dotenv

load_dotenv()

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for  # noqa: E402
from werkzeug.exceptions import HTTPException  # noqa: E402

from .config import Config  # noqa: E402
from .exceptions import RentalError  # noqa: E402
from .models.db import db  # noqa: E402
from .services.notifications import BroadcastHub  # noqa: E402
from .services.payments import build_processor  # noqa: E402
from .utils.decorators import load_principal, wants_json  # noqa: E402
from .utils.filters import fmt_iso_local, fmt_money  # noqa: E402
from .utils.security import TokenCipher  # noqa: E402

logger = logging.getLogger(__name__)


def create_app(config_object=None):
    app = Flask(__name__, static_folder="static", template_folder="templates")
    app.config.from_object(config_object or Config)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db.init_app(app)
    from .models import booking, broadcast, deal, review, user, vehicle, vehicle_request  # noqa: F401  (register tables)
    with app.app_context():
        db.create_all()

    app.extensions["payment_processor"] = build_processor(app.config)
    app.extensions["token_cipher"] = TokenCipher(app.config.get("PAYMENT_TOKEN_KEY") or app.config["SECRET_KEY"])
    app.extensions["broadcast_hub"] = BroadcastHub()

    from .controllers.admin import bp as admin_bp
    from .controllers.auth import bp as auth_bp
    from .controllers.bookings import bp as bookings_bp
    from .controllers.broadcasts import bp as broadcasts_bp
    from .controllers.deals import bp as deals_bp
    from .controllers.vehicles import bp as vehicles_bp
    from .controllers.vehicle_requests import bp as vehicle_requests_bp
    from .controllers.views import bp as views_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(views_bp)
    app.register_blueprint(vehicles_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(deals_bp)
    app.register_blueprint(vehicle_requests_bp)
    app.register_blueprint(broadcasts_bp)
    app.register_blueprint(admin_bp)

    app.before_request(load_principal)

    tz_name = app.config.get("DISPLAY_TIMEZONE")
    app.jinja_env.filters["fmt_iso_local"] = lambda v, use_12h=False: fmt_iso_local(v, use_12h, tz_name)
    app.jinja_env.filters["fmt_money"] = fmt_money

    _register_error_handlers(app)
    return app


def _register_error_handlers(app):
    @app.errorhandler(RentalError)
    def handle_rental_error(err: RentalError):
        db.session.rollback()
        if wants_json():
            return jsonify(success=False, message=err.message), err.status_code
        flash(err.message, "danger")
        return redirect(request.referrer or url_for("views.home"))

    @app.errorhandler(404)
    def handle_not_found(err):
        if wants_json():
            return jsonify(success=False, message="Not found"), 404
        return render_template("error.html", code=404, message="Page not found"), 404

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        if isinstance(err, HTTPException):
            return err
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if wants_json():
            return jsonify(success=False, message="Internal server error"), 500
        return render_template("error.html", code=500, message="Something went wrong"), 500
