from __future__ import annotations

import logging
import re
from typing import Optional

from ..exceptions import ConflictError, InvalidInputError, InvalidStateError, UserNotFoundError
from ..models.booking import Booking
from ..models.user import User
from ..models.vehicle_request import VehicleRequest
from ..utils.constants import Role
from ..utils.permissions import Capability, Principal, authorize
from ..utils.security import check_hash, generate_hash
from .common import to_int_safe

logger = logging.getLogger(__name__)

# Compile once at module import
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{6,}$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9 ()-]{6,20}$")


class UserService:
    """Local accounts: registration, login check, and admin user management."""

    def __init__(self, session):
        self.session = session

    def find_by_username(self, username: str) -> Optional[User]:
        return self.session.query(User).filter_by(username=(username or "").strip()).first()

    def get(self, user_id) -> User:
        uid = to_int_safe(user_id)
        user = self.session.get(User, uid) if uid is not None else None
        if user is None:
            raise UserNotFoundError()
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self.find_by_username(username)
        if user is None or not check_hash(password or "", user.password_hash):
            return None
        return user

    def register(self, username: str, password: str, email: str = "", role: str = Role.USER) -> User:
        username = (username or "").strip()
        password = password or ""
        email = (email or "").strip() or None

        if not username or not password:
            raise InvalidInputError("Username and password are required.")
        if role not in Role.ALL:
            raise InvalidInputError("Invalid role.")
        if not USERNAME_PATTERN.match(username):
            raise InvalidInputError("Username must be 3-30 chars (letters, digits, ., _, -).")
        if not PASSWORD_PATTERN.match(password):
            raise InvalidInputError("Password must have at least 6 characters, including A-Z, a-z, and 0-9.")
        # Extra guard: disallow password equal to username
        if password.lower() == username.lower():
            raise InvalidInputError("Password cannot be the same as username.")
        if email and not EMAIL_PATTERN.match(email):
            raise InvalidInputError("Email address is not valid.")
        if self.find_by_username(username) is not None:
            raise ConflictError("Username already exists.")

        user = User(username=username, email=email, password_hash=generate_hash(password), role=role)
        self.session.add(user)
        self.session.commit()
        logger.info("User %s registered (%s)", user.id, role)
        return user

    # --------------- Admin ---------------
    def all_users(self, actor: Principal):
        authorize(actor, Capability.ADMIN)
        return self.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def admin_create_user(self, actor: Principal, username: str, password: str,
                          role: str = Role.USER, email: str = "") -> User:
        authorize(actor, Capability.ADMIN)
        return self.register(username, password, email=email, role=(role or "").strip().lower())

    def admin_delete_user(self, actor: Principal, user_id) -> None:
        authorize(actor, Capability.ADMIN)
        user = self.get(user_id)
        if user.id == actor.user_id:
            raise InvalidStateError("You cannot delete your own account")
        if self.session.query(Booking.id).filter(Booking.user_id == user.id).first() is not None:
            raise InvalidStateError("User has bookings and cannot be deleted")
        self.session.query(VehicleRequest).filter(VehicleRequest.user_id == user.id).delete(synchronize_session=False)
        self.session.delete(user)
        self.session.commit()
        logger.info("User %s deleted by admin %s", user_id, actor.user_id)

    # --------------- Profile ---------------
    def profile(self, actor: Principal) -> User:
        return self.get(actor.user_id)

    def update_profile(self, actor: Principal, data: dict) -> User:
        """Contact details only; username, role and password are not changed here."""
        user = self.get(actor.user_id)
        full_name = (data.get("full_name") or data.get("name") or "").strip()
        phone = (data.get("phone") or "").strip()
        address = (data.get("address") or "").strip()
        email = (data.get("email") or "").strip()

        if len(full_name) > 120:
            raise InvalidInputError("Name cannot exceed 120 characters.")
        if phone and not PHONE_PATTERN.match(phone):
            raise InvalidInputError("Phone number is not valid.")
        if len(address) > 255:
            raise InvalidInputError("Address cannot exceed 255 characters.")
        if email and not EMAIL_PATTERN.match(email):
            raise InvalidInputError("Email address is not valid.")

        user.full_name = full_name or None
        user.phone = phone or None
        user.address = address or None
        user.email = email or None
        self.session.commit()
        logger.info("User %s updated their profile", user.id)
        return user
