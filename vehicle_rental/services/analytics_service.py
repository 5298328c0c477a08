from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from ..models.booking import Booking
from ..models.deal import Deal
from ..models.review import Review
from ..models.user import User
from ..models.vehicle import Vehicle
from ..models.vehicle_request import VehicleRequest
from ..utils.constants import BookingStatus, RequestStatus, Role
from .common import Clock, money, system_clock


def _month_start(dt: datetime) -> datetime:
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _shift_month(dt: datetime, months: int) -> datetime:
    """First day of the month `months` away from dt's month."""
    idx = dt.year * 12 + (dt.month - 1) + months
    return datetime(idx // 12, idx % 12 + 1, 1)


class AnalyticsService:
    """Aggregations for the admin dashboard and stats pages. Read-only."""

    def __init__(self, session, clock: Clock = system_clock):
        self.session = session
        self.clock = clock

    def _revenue(self, since: datetime | None = None, until: datetime | None = None) -> Decimal:
        q = self.session.query(
            func.coalesce(func.sum(Booking.total_price - Booking.discount_amount), 0)
        ).filter(Booking.status == BookingStatus.CONFIRMED)
        if since is not None:
            q = q.filter(Booking.created_at >= since)
        if until is not None:
            q = q.filter(Booking.created_at < until)
        return money(str(q.scalar() or 0))

    def _counts(self):
        now = self.clock()
        this_month = _month_start(now)
        last_month = _shift_month(now, -1)

        total_users = self.session.query(func.count(User.id)).filter(User.role == Role.USER).scalar()
        new_users = (self.session.query(func.count(User.id))
                     .filter(User.role == Role.USER, User.created_at >= this_month)
                     .scalar())

        vehicles_by_type = Counter(dict(
            self.session.query(Vehicle.type, func.count(Vehicle.id)).group_by(Vehicle.type).all()))
        bookings_by_status = {s: 0 for s in BookingStatus.ALL}
        bookings_by_status.update(dict(
            self.session.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()))
        requests_by_status = {s: 0 for s in RequestStatus.ALL}
        requests_by_status.update(dict(
            self.session.query(VehicleRequest.status, func.count(VehicleRequest.id))
            .group_by(VehicleRequest.status).all()))

        revenue_this_month = self._revenue(since=this_month)
        revenue_last_month = self._revenue(since=last_month, until=this_month)
        if revenue_last_month > 0:
            growth = round(float((revenue_this_month - revenue_last_month) / revenue_last_month * 100), 1)
        else:
            growth = 100.0 if revenue_this_month > 0 else 0.0

        return {
            "total_users": total_users or 0,
            "new_users_this_month": new_users or 0,
            "total_vehicles": sum(vehicles_by_type.values()),
            "vehicles_by_type": dict(vehicles_by_type),
            "bookings_by_status": bookings_by_status,
            "total_bookings": sum(bookings_by_status.values()),
            "vehicle_requests_by_status": requests_by_status,
            "total_revenue": self._revenue(),
            "revenue_this_month": revenue_this_month,
            "revenue_last_month": revenue_last_month,
            "revenue_growth": growth,
        }

    def dashboard(self):
        data = self._counts()

        data["recent_bookings"] = (self.session.query(Booking)
                                   .order_by(Booking.created_at.desc(), Booking.id.desc())
                                   .limit(5)
                                   .all())

        # Bookings per vehicle, most booked first
        rows = (self.session.query(Vehicle, func.count(Booking.id).label("n"))
                .join(Booking, Booking.vehicle_id == Vehicle.id)
                .group_by(Vehicle.id)
                .order_by(func.count(Booking.id).desc(), Vehicle.id.asc())
                .limit(5)
                .all())
        data["top_vehicles"] = [
            {"vehicle_id": v.id, "label": v.name, "count": n} for v, n in rows
        ]
        data["recent_vehicle_requests"] = (self.session.query(VehicleRequest)
                                           .order_by(VehicleRequest.created_at.desc(), VehicleRequest.id.desc())
                                           .limit(5)
                                           .all())
        return data

    def stats(self):
        data = self._counts()
        now = self.clock()

        data["total_reviews"] = self.session.query(func.count(Review.id)).scalar() or 0
        data["total_deals"] = self.session.query(func.count(Deal.id)).scalar() or 0
        data["active_deals"] = (self.session.query(func.count(Deal.id))
                                .filter(Deal.is_active.is_(True),
                                        Deal.valid_from <= now,
                                        Deal.valid_until >= now)
                                .scalar() or 0)

        # Revenue by month (booking month), oldest first, zero-filled
        since = _shift_month(now, -11)
        rev_by_month = defaultdict(Decimal)
        rows = (self.session.query(Booking.created_at, Booking.total_price, Booking.discount_amount)
                .filter(Booking.status == BookingStatus.CONFIRMED, Booking.created_at >= since)
                .all())
        for created_at, total, discount in rows:
            rev_by_month[created_at.strftime("%Y-%m")] += Decimal(total) - Decimal(discount or 0)

        months = [_shift_month(now, -i).strftime("%Y-%m") for i in range(11, -1, -1)]
        data["revenue_by_month"] = [{"month": m, "total": money(rev_by_month[m])} for m in months]
        return data
