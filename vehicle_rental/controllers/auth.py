from flask import Blueprint, render_template, request, redirect, url_for, session, flash

from ..exceptions import RentalError
from ..models.db import db
from ..services.user_service import UserService

bp = Blueprint("auth", __name__, url_prefix="/")


@bp.get("register")
def register_form():
    return render_template("auth/register.html")


@bp.post("register")
def register_submit():
    try:
        UserService(db.session).register(
            username=request.form.get("username"),
            password=request.form.get("password"),
            email=request.form.get("email"),
        )
    except RentalError as e:
        db.session.rollback()
        flash(e.message, "danger")
        return redirect(url_for("auth.register_form"))

    flash("Registration successful. Please login.", "success")
    return redirect(url_for("auth.login_form"))


@bp.get("login")
def login_form():
    return render_template("auth/login.html")


@bp.post("login")
def login_submit():
    username = request.form.get("username", "").strip()
    password = request.form.get("password", "")
    user = UserService(db.session).authenticate(username, password)

    if user is None:
        flash("Invalid credentials", "danger")
        return redirect(url_for("auth.login_form"))

    session.clear()
    session["uid"] = user.id
    session["role"] = user.role
    session["username"] = user.username
    return redirect(url_for("views.home"))


@bp.get("logout")
def logout():
    session.clear()
    flash("Logged out")
    return redirect(url_for("auth.login_form"))
