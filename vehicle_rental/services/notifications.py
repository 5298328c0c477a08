"""In-process fan-out of broadcast events to connected clients (SSE streams)."""
from __future__ import annotations

import logging
import queue
from threading import RLock
from typing import Dict, List

from ..utils.constants import Audience, Role

logger = logging.getLogger(__name__)


def audience_for(role: str) -> str:
    return Audience.ADMINS if role == Role.ADMIN else Audience.USERS


class Subscription:
    """One connected client: its audience plus a bounded event queue."""

    def __init__(self, sub_id: int, audience: str, maxsize: int):
        self.id = sub_id
        self.audience = audience
        self.events: queue.Queue = queue.Queue(maxsize=maxsize)

    def get(self, timeout: float | None = None):
        """Next event, or None if nothing arrived within `timeout` seconds."""
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None


class BroadcastHub:
    """
    Fire-and-forget publisher. Delivery is best effort: a subscriber whose
    queue is full simply misses the event.
    """

    def __init__(self, queue_size: int = 50):
        self.queue_size = queue_size
        self._subscribers: Dict[int, Subscription] = {}
        self._next_id = 1
        self._lock = RLock()

    def subscribe(self, audience: str) -> Subscription:
        with self._lock:
            sub = Subscription(self._next_id, audience, self.queue_size)
            self._subscribers[sub.id] = sub
            self._next_id += 1
        logger.debug("Subscriber %s joined (%s)", sub.id, audience)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subscribers.pop(sub.id, None)
        logger.debug("Subscriber %s left", sub.id)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: dict) -> int:
        """Deliver to every matching subscriber; returns how many received it."""
        target = event.get("target") or Audience.ALL
        with self._lock:
            targets: List[Subscription] = [
                s for s in self._subscribers.values()
                if target == Audience.ALL or s.audience == target
            ]

        delivered = 0
        for sub in targets:
            try:
                sub.events.put_nowait(event)
                delivered += 1
            except queue.Full:
                logger.debug("Dropped event %s for subscriber %s (queue full)", event.get("id"), sub.id)
        return delivered
