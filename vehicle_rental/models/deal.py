from .db import db, utcnow
from ..utils.constants import DiscountType


class Deal(db.Model):
    """
    Promo code. Only the SHA-256 of the normalized code is stored; `code_hint`
    keeps the last characters so admins can tell deals apart.
    """
    __tablename__ = "deals"

    id = db.Column(db.Integer, primary_key=True)
    code_hash = db.Column(db.String(64), unique=True, nullable=False)
    code_hint = db.Column(db.String(8), nullable=False, default="")
    description = db.Column(db.String(255))
    discount_type = db.Column(db.String(16), nullable=False, default=DiscountType.PERCENT)
    discount_value = db.Column(db.Numeric(10, 2), nullable=False)
    min_purchase = db.Column(db.Numeric(10, 2))
    usage_limit = db.Column(db.Integer)
    usage_count = db.Column(db.Integer, nullable=False, default=0)
    valid_from = db.Column(db.DateTime, nullable=False)
    valid_until = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_public_dict(self):
        """Shape shown to customers: no code, no hash."""
        return {
            "id": self.id,
            "description": self.description,
            "discount_type": self.discount_type,
            "discount_value": str(self.discount_value),
            "min_purchase": str(self.min_purchase) if self.min_purchase is not None else None,
            "valid_from": self.valid_from.isoformat(),
            "valid_until": self.valid_until.isoformat(),
        }
