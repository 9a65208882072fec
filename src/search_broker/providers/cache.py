"""Short-lived read cache of described instances.

Entries are never expired individually. A janitor thread clears the whole
cache on a fixed interval, so an instance deleted through the provider can
still be served from the cache until the next clear.
"""

import threading
from typing import Dict, Optional, Tuple

from search_broker.utils.logging import get_logger
from .base import Instance

logger = get_logger(__name__)

CacheKey = Tuple[str, str]


class InstanceCache:
    """Thread-safe map of ``(name, plan id)`` to Instance."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[CacheKey, Instance] = {}

    def get(self, name: str, plan_id: str) -> Optional[Instance]:
        with self._lock:
            return self._entries.get((name, plan_id))

    def put(self, instance: Instance) -> None:
        with self._lock:
            self._entries[(instance.name, instance.plan.id)] = instance

    def clear_all(self) -> None:
        """Drop every entry by swapping in a new backing dict."""
        with self._lock:
            self._entries = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CacheJanitor:
    """Background thread that clears an InstanceCache every ``interval`` seconds."""

    def __init__(self, cache: InstanceCache, interval: float, name: str = "instance-cache-janitor"):
        """Initialize cache janitor.

        Args:
            cache: Cache to clear
            interval: Seconds between clears
            name: Thread name
        """
        self.cache = cache
        self.interval = interval
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> "CacheJanitor":
        self._thread.start()
        logger.debug(f"Started cache janitor with {self.interval}s interval")
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the janitor and wait for its thread to exit."""
        self._stopped.set()
        if self._thread.is_alive():
            self._thread.join(timeout)
        logger.debug("Stopped cache janitor")

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._stopped.is_set()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            self.cache.clear_all()
