"""Position feed - subscription abstraction over a location provider.

A platform location API (browser geolocation, background-location plugin,
recorded ride) publishes PositionFix values into a PositionFeed. Consumers
subscribe with a handler and get back an unsubscribe callable.

Publishing is serialized: fixes are delivered one at a time, in arrival
order, even when the provider calls publish() from several threads or a
handler publishes a follow-up fix.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from trail_tracer.model.geo_point import GeoPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionFix:
    """A single location reading.

    Attributes:
        lat: Latitude in decimal degrees
        lon: Longitude in decimal degrees
        timestamp: Seconds on the provider's clock
    """

    lat: float
    lon: float
    timestamp: float

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)


PositionHandler = Callable[[PositionFix], None]


class PositionFeed:
    """Fan-out of position fixes to subscribed handlers.

    Fixes published while a dispatch is running (from a handler, or from
    another thread) are queued and delivered by the dispatching call once the
    current fix has reached every handler. Handlers never run concurrently
    and never see fixes out of arrival order. A publish() that lands during
    another dispatch returns before its fix is delivered.
    """

    def __init__(self) -> None:
        self._handlers: list[PositionHandler] = []
        self._lock = threading.Lock()
        self._pending: deque[PositionFix] = deque()
        self._dispatching = False

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    @property
    def pending_count(self) -> int:
        """Fixes queued behind the running dispatch."""
        with self._lock:
            return len(self._pending)

    def subscribe(self, handler: PositionHandler) -> Callable[[], None]:
        """Register a handler.

        Returns:
            Callable that removes the handler. Calling it twice is harmless.
        """
        with self._lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def publish(self, fix: PositionFix) -> None:
        """Deliver a fix to every handler in subscription order."""
        with self._lock:
            self._pending.append(fix)
            if self._dispatching:
                return
            self._dispatching = True

        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._dispatching = False
                        return
                    current = self._pending.popleft()
                    handlers = list(self._handlers)
                for handler in handlers:
                    handler(current)
        except BaseException:
            with self._lock:
                self._dispatching = False
            raise

    def replay(self, fixes: Iterable[PositionFix]) -> int:
        """Publish a recorded sequence of fixes.

        Returns:
            Number of fixes published.
        """
        count = 0
        for fix in fixes:
            self.publish(fix)
            count += 1
        logger.info(f"Replayed {count} position fixes to {self.subscriber_count} subscriber(s)")
        return count
