from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import InvalidInputError, VehicleRequestNotFoundError
from ..models.vehicle_request import VehicleRequest
from ..utils.constants import RequestStatus
from ..utils.permissions import Capability, Principal, authorize
from .common import Clock, system_clock, to_int_safe

logger = logging.getLogger(__name__)


class VehicleRequestService:
    """
    Customers ask for a make/model the fleet does not carry; admins approve
    or reject. Approval does not create a vehicle, that stays a manual step.
    """

    def __init__(self, session, clock: Clock = system_clock):
        self.session = session
        self.clock = clock

    def submit(self, actor: Principal, data: dict) -> VehicleRequest:
        make = (data.get("make") or "").strip()
        model = (data.get("model") or "").strip()
        if not make or not model:
            raise InvalidInputError("Make and model are required")
        if len(make) > 60 or len(model) > 60:
            raise InvalidInputError("Make and model must be at most 60 characters")

        year = None
        if data.get("year") not in (None, ""):
            year = to_int_safe(data.get("year"))
            if year is None or not 1980 <= year <= self.clock().year + 1:
                raise InvalidInputError("Year is not valid")

        message = (data.get("message") or "").strip()
        if len(message) > 1000:
            raise InvalidInputError("Message cannot exceed 1000 characters")

        req = VehicleRequest(
            user_id=actor.user_id,
            make=make,
            model=model,
            year=year,
            vehicle_type=(data.get("vehicle_type") or "").strip() or None,
            message=message or None,
            status=RequestStatus.PENDING,
        )
        self.session.add(req)
        self.session.commit()
        logger.info("Vehicle request %s submitted by user %s", req.id, actor.user_id)
        return req

    def for_user(self, actor: Principal):
        return (self.session.query(VehicleRequest)
                .filter(VehicleRequest.user_id == actor.user_id)
                .order_by(VehicleRequest.created_at.desc(), VehicleRequest.id.desc())
                .all())

    # --------------- Admin ---------------
    def all_requests(self, actor: Principal, status: Optional[str] = None):
        authorize(actor, Capability.ADMIN)
        q = self.session.query(VehicleRequest)
        status = (status or "").strip().upper()
        if status:
            q = q.filter(VehicleRequest.status == status)
        return q.order_by(VehicleRequest.created_at.desc(), VehicleRequest.id.desc()).all()

    def update_status(self, actor: Principal, request_id, status: str) -> VehicleRequest:
        authorize(actor, Capability.ADMIN)
        status = (status or "").strip().upper()
        if status not in RequestStatus.ALL:
            raise InvalidInputError("Invalid status")
        rid = to_int_safe(request_id)
        req = self.session.get(VehicleRequest, rid) if rid is not None else None
        if req is None:
            raise VehicleRequestNotFoundError()

        old = req.status
        req.status = status
        self.session.commit()
        logger.info("Vehicle request %s moved %s -> %s by admin %s", req.id, old, status, actor.user_id)
        return req
