"""Shared plumbing for analytics services: auth, cache-aside reads, fallbacks."""
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from prepflight.auth import AuthProvider, AuthUser
from prepflight.core.cache_manager import CacheManager, CacheType
from prepflight.core.firestore_adapter import FirestoreAdapter
from prepflight.errors import AuthenticationError
from prepflight.monitoring import analytics_fallbacks, cache_hits, cache_misses, transform_duration

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseAnalyticsService:
    """Base class for services that read analytics for the signed-in user."""

    def __init__(self, adapter: FirestoreAdapter, cache: CacheManager, auth: AuthProvider):
        """Initialize the service with its collaborators."""
        self.adapter = adapter
        self.cache = cache
        self.auth = auth

    def ensure_authenticated(self) -> AuthUser:
        """Return the signed-in user or raise AuthenticationError."""
        user = self.auth.current_user()
        if not user:
            raise AuthenticationError()
        return user

    async def get_with_cache(
        self,
        user_id: str,
        cache_type: Union[CacheType, str],
        fetch_fn: Callable[[], Awaitable[T]],
    ) -> T:
        """Serve from the cache, or compute with ``fetch_fn`` and store the result.

        Concurrent cold reads each call ``fetch_fn``; the last write wins.
        """
        cache_key = self.cache.generate_key(user_id, cache_type)
        cache_type = CacheType(cache_type)
        cached = self.cache.get(cache_key)
        if cached is not None:
            cache_hits.labels(metric_type=cache_type.value).inc()
            return cached

        cache_misses.labels(metric_type=cache_type.value).inc()
        return await self._compute_and_store(cache_key, cache_type, fetch_fn)

    async def refresh_cache(
        self,
        user_id: str,
        cache_type: Union[CacheType, str],
        fetch_fn: Callable[[], Awaitable[T]],
    ) -> T:
        """Recompute with ``fetch_fn`` and overwrite the cached value."""
        cache_key = self.cache.generate_key(user_id, cache_type)
        cache_type = CacheType(cache_type)
        return await self._compute_and_store(cache_key, cache_type, fetch_fn)

    async def _compute_and_store(
        self,
        cache_key: str,
        cache_type: CacheType,
        fetch_fn: Callable[[], Awaitable[T]],
    ) -> T:
        started = time.perf_counter()
        fresh = await fetch_fn()
        transform_duration.labels(metric_type=cache_type.value).observe(time.perf_counter() - started)
        self.cache.set(cache_key, fresh)
        return fresh

    def create_error_response(self, operation: str, default_value: Any, error: Optional[Exception] = None) -> Any:
        """Log a failed operation and hand back its safe default."""
        analytics_fallbacks.labels(operation=operation).inc()
        if error is not None:
            logger.error(f"Error {operation}: {type(error).__name__}: {error}")
        else:
            logger.error(f"Error {operation}")
        return default_value
