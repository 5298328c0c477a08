from flask import Blueprint, jsonify, request

from ..models.db import db
from ..services.deal_service import DealService
from ..utils.decorators import login_required

bp = Blueprint("deals", __name__, url_prefix="/api/deals")


@bp.get("")
def active_deals():
    deals = DealService(db.session).active_deals()
    return jsonify(success=True, deals=[d.to_public_dict() for d in deals])


@bp.post("/validate")
@login_required
def validate_promo():
    data = request.get_json(silent=True) or request.form
    terms = DealService(db.session).validate(data.get("code"))
    return jsonify(
        success=True,
        deal={
            "deal_id": terms.deal_id,
            "discount_type": terms.discount_type,
            "discount_value": str(terms.discount_value),
            "min_purchase": str(terms.min_purchase) if terms.min_purchase is not None else None,
        },
    )
