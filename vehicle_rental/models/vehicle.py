from .db import db, utcnow
from ..utils.constants import PLACEHOLDER


class Vehicle(db.Model):
    """
    Rentable vehicle. `price_per_day` is the listed daily rate; bookings copy
    it at creation so later price edits never change existing reservations.
    """
    __tablename__ = "vehicles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(40), nullable=False, index=True)
    price_per_day = db.Column(db.Numeric(10, 2), nullable=False)
    available = db.Column(db.Boolean, nullable=False, default=True)
    # make / model / year / seats / transmission / fuel_type
    specs = db.Column(db.JSON, nullable=False, default=dict)
    features = db.Column(db.JSON, nullable=False, default=list)
    images = db.Column(db.JSON, nullable=False, default=list)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    bookings = db.relationship("Booking", back_populates="vehicle", lazy="dynamic")

    @property
    def cover_image(self) -> str:
        return (self.images or [PLACEHOLDER])[0]

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "price_per_day": str(self.price_per_day),
            "available": bool(self.available),
            "specs": dict(self.specs or {}),
            "features": list(self.features or []),
            "images": list(self.images or []),
            "description": self.description,
        }
