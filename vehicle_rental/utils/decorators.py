from functools import wraps

from flask import g, session, redirect, url_for, flash, request, jsonify

from .constants import Role
from .permissions import Principal, Capability


def load_principal():
    """Build the request principal from the session set at login."""
    uid = session.get("uid")
    g.principal = Principal(uid, session.get("role") or Role.USER,
                            session.get("username") or "") if uid else None


def current_principal():
    return g.get("principal")


def wants_json() -> bool:
    """JSON endpoints live under /api/; other routes answer JSON only when asked."""
    return request.path.startswith("/api/") or request.is_json or request.accept_mimetypes.best == "application/json"


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if current_principal() is None:
            if wants_json():
                return jsonify(success=False, message="Authentication required"), 401
            flash("Please login first")
            return redirect(url_for("auth.login_form"))
        return fn(*args, **kwargs)

    return wrapper


def capability_required(capability: Capability):
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_principal().has(capability):
                if wants_json():
                    return jsonify(success=False, message="Insufficient permission"), 403
                flash("Insufficient permission")
                return redirect(url_for("views.home"))
            return fn(*args, **kwargs)

        return login_required(wrapper)

    return deco


admin_required = capability_required(Capability.ADMIN)
