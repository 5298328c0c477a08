from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import InvalidInputError
from ..models.broadcast import Broadcast
from ..utils.constants import Audience
from ..utils.permissions import Capability, Principal, authorize
from .common import Clock, system_clock
from .notifications import BroadcastHub

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Admin Broadcast"


class BroadcastService:
    """Admin announcements: persisted first, then pushed to live sessions."""

    def __init__(self, session, hub: Optional[BroadcastHub] = None, clock: Clock = system_clock):
        self.session = session
        self.hub = hub
        self.clock = clock

    def create(self, actor: Principal, title: str = "", message: str = "",
               target: str = Audience.ALL) -> Broadcast:
        authorize(actor, Capability.ADMIN)
        title = (title or "").strip()
        message = (message or "").strip()
        if not title and not message:
            raise InvalidInputError("Title or message is required")
        target = (target or Audience.ALL).strip().upper()
        if target not in Audience.CHOICES:
            raise InvalidInputError(f"Target must be one of {', '.join(Audience.CHOICES)}")

        broadcast = Broadcast(
            title=title or DEFAULT_TITLE,
            message=message or title,
            target=target,
            created_at=self.clock(),
        )
        self.session.add(broadcast)
        self.session.commit()

        delivered = self.hub.publish(broadcast.to_event()) if self.hub is not None else 0
        logger.info("Broadcast %s published to %s (%d live subscribers)",
                    broadcast.id, target, delivered)
        return broadcast

    def recent(self, limit: int = 20, audience: Optional[str] = None):
        """Newest first; with an audience, only what that audience was sent."""
        limit = max(1, min(limit, 100))
        q = self.session.query(Broadcast)
        if audience:
            q = q.filter(Broadcast.target.in_((Audience.ALL, audience)))
        return (q
                .order_by(Broadcast.created_at.desc(), Broadcast.id.desc())
                .limit(limit)
                .all())
