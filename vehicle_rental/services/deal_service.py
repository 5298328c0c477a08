from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..exceptions import (
    ConflictError,
    DealInactiveError,
    DealLimitReachedError,
    DealNotFoundError,
    DealOutOfWindowError,
    InvalidInputError,
    InvalidStateError,
)
from ..models.booking import Booking
from ..models.deal import Deal
from ..utils.constants import DiscountType
from ..utils.permissions import Capability, Principal, authorize
from ..utils.security import code_hint, hash_promo_code, normalize_code
from .common import Clock, as_bool, as_datetime, money, system_clock, to_decimal_safe, to_int_safe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DealTerms:
    """What a valid promo code grants. Never carries the stored hash."""
    deal_id: int
    discount_type: str
    discount_value: Decimal
    min_purchase: Optional[Decimal]

    def discount_for(self, total: Decimal) -> Decimal:
        if self.discount_type == DiscountType.PERCENT:
            return min(total, money(total * self.discount_value / 100))
        return min(total, money(self.discount_value))


class DealService:
    """Promo code validation plus deal administration."""

    def __init__(self, session, clock: Clock = system_clock):
        self.session = session
        self.clock = clock

    # --------------- Validation ---------------
    def validate(self, code: str) -> DealTerms:
        if not normalize_code(code):
            raise InvalidInputError("Promo code is required")

        deal = self.session.query(Deal).filter_by(code_hash=hash_promo_code(code)).first()
        if deal is None:
            raise DealNotFoundError()
        if not deal.is_active:
            raise DealInactiveError()
        now = self.clock()
        if not (deal.valid_from <= now <= deal.valid_until):
            raise DealOutOfWindowError()
        if deal.usage_limit is not None and deal.usage_count >= deal.usage_limit:
            raise DealLimitReachedError()

        return DealTerms(
            deal_id=deal.id,
            discount_type=deal.discount_type,
            discount_value=Decimal(deal.discount_value),
            min_purchase=Decimal(deal.min_purchase) if deal.min_purchase is not None else None,
        )

    def redeem(self, deal_id: int) -> None:
        """Count one use of the deal; called once a payment has gone through."""
        self.session.query(Deal).filter(Deal.id == deal_id).update(
            {Deal.usage_count: Deal.usage_count + 1}, synchronize_session=False)

    # --------------- Queries ---------------
    def active_deals(self):
        now = self.clock()
        return (self.session.query(Deal)
                .filter(Deal.is_active.is_(True), Deal.valid_until >= now)
                .order_by(Deal.valid_until.asc())
                .all())

    def all_deals(self, actor: Principal):
        authorize(actor, Capability.ADMIN)
        return self.session.query(Deal).order_by(Deal.valid_until.desc()).all()

    def get(self, deal_id: int) -> Deal:
        did = to_int_safe(deal_id)
        deal = self.session.get(Deal, did) if did is not None else None
        if deal is None:
            raise DealNotFoundError("Error: deal not found")
        return deal

    # --------------- Admin ---------------
    def _apply_fields(self, deal: Deal, data: dict, require_code: bool) -> None:
        code = normalize_code(data.get("code"))
        if require_code and not code:
            raise InvalidInputError("Promo code is required")

        dtype = (data.get("discount_type") or DiscountType.PERCENT).strip().upper()
        if dtype not in DiscountType.ALL:
            raise InvalidInputError("Discount type must be PERCENT or FIXED")
        value = to_decimal_safe(data.get("discount") if data.get("discount") is not None
                                else data.get("discount_value"))
        if value is None or value <= 0:
            raise InvalidInputError("Discount must be a positive number")
        if dtype == DiscountType.PERCENT and value > 100:
            raise InvalidInputError("Percentage discount cannot exceed 100")

        valid_from = as_datetime(data.get("valid_from"), "valid from date")
        valid_until = as_datetime(data.get("valid_until"), "valid until date")
        if valid_until < valid_from:
            raise InvalidInputError("Valid until must not be before valid from")

        min_purchase = to_decimal_safe(data.get("min_purchase"))
        if min_purchase is not None and min_purchase < 0:
            raise InvalidInputError("Minimum purchase cannot be negative")
        usage_limit = to_int_safe(data.get("usage_limit")) if data.get("usage_limit") not in (None, "") else None
        if usage_limit is not None and usage_limit < 0:
            raise InvalidInputError("Usage limit cannot be negative")

        if code:
            code_hash = hash_promo_code(code)
            clash = self.session.query(Deal).filter(Deal.code_hash == code_hash, Deal.id != deal.id).first()
            if clash is not None:
                raise ConflictError("A deal with this code already exists")
            deal.code_hash = code_hash
            deal.code_hint = code_hint(code)

        deal.description = (data.get("description") or "").strip() or None
        deal.discount_type = dtype
        deal.discount_value = money(value)
        deal.min_purchase = money(min_purchase) if min_purchase is not None else None
        deal.usage_limit = usage_limit
        deal.valid_from = valid_from
        deal.valid_until = valid_until
        deal.is_active = as_bool(data.get("is_active"))

    def create(self, actor: Principal, data: dict) -> Deal:
        authorize(actor, Capability.ADMIN)
        deal = Deal(usage_count=0)
        self._apply_fields(deal, data, require_code=True)
        self.session.add(deal)
        self.session.commit()
        logger.info("Deal %s created by user %s", deal.id, actor.user_id)
        return deal

    def update(self, actor: Principal, deal_id: int, data: dict) -> Deal:
        authorize(actor, Capability.ADMIN)
        deal = self.get(deal_id)
        self._apply_fields(deal, data, require_code=False)
        self.session.commit()
        logger.info("Deal %s updated by user %s", deal.id, actor.user_id)
        return deal

    def delete(self, actor: Principal, deal_id: int) -> None:
        authorize(actor, Capability.ADMIN)
        deal = self.get(deal_id)
        if self.session.query(Booking.id).filter(Booking.deal_id == deal.id).first() is not None:
            raise InvalidStateError("Deal has been applied to bookings; deactivate it instead")
        self.session.delete(deal)
        self.session.commit()
        logger.info("Deal %s deleted by user %s", deal_id, actor.user_id)
