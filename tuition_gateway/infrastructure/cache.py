"""Time-boxed cache for the admin application list"""

import threading
import time
from typing import Any, Callable, Dict, List, Optional
from tuition_gateway.config import settings


class ApplicationListCache:
    """Holds one denormalized application list for a fixed TTL (default one hour)"""

    def __init__(self, ttl_seconds: int | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.admin_cache_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Optional[List[Dict[str, Any]]] = None
        self._stored_at = 0.0

    def get(self) -> Optional[List[Dict[str, Any]]]:
        with self._lock:
            if self._items is None:
                return None
            if self._clock() - self._stored_at >= self.ttl_seconds:
                self._items = None
                return None
            return list(self._items)

    def put(self, items: List[Dict[str, Any]]) -> None:
        with self._lock:
            self._items = list(items)
            self._stored_at = self._clock()

    def invalidate(self) -> None:
        with self._lock:
            self._items = None
