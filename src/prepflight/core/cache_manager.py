"""TTL cache for per-user analytics results."""
import json
import logging
import time
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union

from prepflight.config import settings
from prepflight.core.storage import KeyValueStore
from prepflight.errors import InvalidCacheTypeError
from prepflight.monitoring import cache_evictions

logger = logging.getLogger(__name__)


class CacheType(str, Enum):
    """Metrics that can be cached per user."""
    BASIC_STATS = "basicStats"
    MONTHLY_PROGRESS = "monthlyProgress"
    RECENT_STUDY_TIME = "recentStudyTime"
    USER_PROGRESS = "userProgress"


KEY_PREFIXES = {
    CacheType.BASIC_STATS: "basic-stats",
    CacheType.MONTHLY_PROGRESS: "monthly-progress",
    CacheType.RECENT_STUDY_TIME: "recent-study-time",
    CacheType.USER_PROGRESS: "user-progress",
}


class CacheManager:
    """Cache entries stored as ``{"timestamp": ms, "data": ...}`` JSON.

    Expiry is lazy: a stale entry is removed by the read that finds it.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttl_ms = (ttl_seconds if ttl_seconds is not None else settings.cache.ttl_seconds) * 1000
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def get(self, key: str) -> Any:
        """Return the cached payload, or None when missing, expired or unreadable.

        A store that fails to answer reads as a miss.
        """
        try:
            raw = self.store.get(key)
        except Exception as e:
            logger.error(f"Cache store read failed for {key}: {type(e).__name__}: {e}")
            return None
        if raw is None:
            return None

        try:
            entry = json.loads(raw)
            timestamp = entry["timestamp"]
            data = entry["data"]
            if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
                raise TypeError(f"timestamp is {type(timestamp).__name__}")
            fresh = self._now_ms() - timestamp < self.ttl_ms
        except (TypeError, ValueError, KeyError) as e:
            logger.error(f"Cache read error for {key}: {e}")
            self._evict(key)
            return None

        if fresh:
            return data

        logger.debug(f"Cache entry {key} expired")
        self._evict(key)
        return None

    def _evict(self, key: str) -> None:
        try:
            self.store.remove(key)
        except Exception as e:
            logger.error(f"Cache store remove failed for {key}: {type(e).__name__}: {e}")
            return
        cache_evictions.inc()

    def set(self, key: str, data: Any) -> None:
        """Store ``data`` under ``key``, replacing any previous entry.

        A failed write is logged and skipped; the caller keeps its data.
        """
        try:
            self.store.set(key, json.dumps({"timestamp": self._now_ms(), "data": data}))
        except Exception as e:
            logger.error(f"Cache store write failed for {key}: {type(e).__name__}: {e}")

    @staticmethod
    def generate_key(user_id: str, cache_type: Union[CacheType, str]) -> str:
        """Build the cache key for one user's metric."""
        try:
            cache_type = CacheType(cache_type)
        except ValueError:
            raise InvalidCacheTypeError(cache_type) from None
        return f"{KEY_PREFIXES[cache_type]}-{user_id}"

    def invalidate(
        self,
        user_id: str,
        types: Union[CacheType, str, Iterable[Union[CacheType, str]]],
    ) -> None:
        """Drop one or more cached metrics for a user."""
        if isinstance(types, (str, CacheType)):
            types = [types]
        for cache_type in types:
            key = self.generate_key(user_id, cache_type)
            self.store.remove(key)
            logger.debug(f"Invalidated cache entry {key}")
