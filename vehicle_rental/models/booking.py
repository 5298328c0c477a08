from decimal import Decimal

from .db import db, utcnow
from ..utils.constants import BookingStatus


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id"), nullable=False, index=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    days = db.Column(db.Integer, nullable=False)
    daily_rate = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    deal_id = db.Column(db.Integer, db.ForeignKey("deals.id"))
    status = db.Column(db.String(16), nullable=False, default=BookingStatus.PENDING, index=True)
    payment_reference = db.Column(db.String(120))
    payment_method_enc = db.Column(db.Text)
    payment_attempts = db.Column(db.Integer, nullable=False, default=0)
    # set before a charge is sent, cleared once the processor gives a definite answer
    payment_in_doubt = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="bookings")
    vehicle = db.relationship("Vehicle", back_populates="bookings")
    deal = db.relationship("Deal")

    __table_args__ = (
        db.CheckConstraint("end_date > start_date", name="ck_booking_range"),
    )

    @property
    def amount_due(self) -> Decimal:
        return Decimal(self.total_price) - Decimal(self.discount_amount or 0)

    @property
    def idempotency_key(self) -> str:
        return f"booking-{self.id}-{self.payment_attempts or 0}"

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "vehicle_id": self.vehicle_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": self.days,
            "daily_rate": str(self.daily_rate),
            "total_price": str(self.total_price),
            "discount_amount": str(self.discount_amount or Decimal("0.00")),
            "amount_due": str(self.amount_due),
            "status": self.status,
            "payment_reference": self.payment_reference,
            "payment_in_doubt": bool(self.payment_in_doubt),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
