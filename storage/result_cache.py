import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60


@dataclass(frozen=True)
class CacheEntry:
    result: Any
    timestamp: float


class TrajectoryCache:
    """
    In-memory result cache keyed by a canonical request string.

    Entries live for ``ttl`` seconds and are evicted lazily: a ``get`` past
    expiry drops the entry and reports a miss. There is no size bound and
    no background sweep.
    """

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config, section="Cache"):
        return cls(ttl=config.getfloat(section, "ttl_seconds", fallback=DEFAULT_TTL_SECONDS))

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp > self.ttl:
                del self._entries[key]
                logger.debug("cache entry expired: %s", key[:80])
                return None
            return entry.result

    def set(self, key: str, result: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(result=result, timestamp=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        return self.get(key) is not None
