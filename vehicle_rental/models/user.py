from .db import db, utcnow
from ..utils.constants import Role


class User(db.Model):
    """
    Local account record. The identity layer only needs id/username/role;
    password hashes stay here and never leave the auth controller.
    """
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(120))
    full_name = db.Column(db.String(120))
    phone = db.Column(db.String(32))
    address = db.Column(db.String(255))
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=Role.USER)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    bookings = db.relationship("Booking", back_populates="user", lazy="dynamic")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "address": self.address,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
