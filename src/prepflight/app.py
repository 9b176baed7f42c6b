"""Wiring of the analytics services for a host application."""
import logging
from dataclasses import dataclass
from typing import Optional

from prepflight.auth import AuthProvider
from prepflight.config import settings
from prepflight.core.cache_manager import CacheManager
from prepflight.core.firestore_adapter import FirestoreAdapter, create_client
from prepflight.core.storage import KeyValueStore, SqlStore
from prepflight.monitoring import start_monitoring
from prepflight.services.analytics_service import AnalyticsService
from prepflight.services.progress_service import ProgressService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Services sharing one adapter, cache and auth provider."""
    analytics: AnalyticsService
    progress: ProgressService
    adapter: FirestoreAdapter
    cache: CacheManager


def create_services(
    auth: AuthProvider,
    client=None,
    store: Optional[KeyValueStore] = None,
    ttl_seconds: Optional[int] = None,
) -> Services:
    """Build the services.

    Without ``client`` the default Firebase app is initialized from settings;
    without ``store`` cache entries go to the SQL cache database.
    """
    adapter = FirestoreAdapter(client if client is not None else create_client())
    cache = CacheManager(store if store is not None else SqlStore(), ttl_seconds)

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)
        logger.info(f"Metrics exporter listening on port {settings.monitoring.port}")

    return Services(
        analytics=AnalyticsService(adapter, cache, auth),
        progress=ProgressService(adapter, cache, auth),
        adapter=adapter,
        cache=cache,
    )
