"""
Per-user calendar gateway cache for the HTTP layer.
"""

import logging
import threading

from services.calendar import CalendarGateway

logger = logging.getLogger(__name__)


class GatewayCache:
    """
    Bounded map of user id -> gateway.

    get/put/remove are single dict operations and need no lock; only
    trimming the oldest entries when the cache is full is serialized.
    """

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._gateways: dict[str, CalendarGateway] = {}
        self._evict_lock = threading.Lock()

    def get(self, user_id: str) -> CalendarGateway | None:
        return self._gateways.get(user_id)

    def put(self, user_id: str, gateway: CalendarGateway) -> None:
        # Re-inserting moves the entry to the newest position
        self._gateways.pop(user_id, None)
        self._gateways[user_id] = gateway
        if len(self._gateways) > self.max_size:
            self._evict()

    def remove(self, user_id: str) -> CalendarGateway | None:
        return self._gateways.pop(user_id, None)

    def clear(self) -> None:
        self._gateways.clear()

    def _evict(self) -> None:
        with self._evict_lock:
            while len(self._gateways) > self.max_size:
                oldest = next(iter(list(self._gateways)), None)
                if oldest is None:
                    return
                self._gateways.pop(oldest, None)
                logger.info("Evicted cached calendar gateway for %s", oldest)

    def __len__(self) -> int:
        return len(self._gateways)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._gateways
