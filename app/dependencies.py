"""
Dependency Injection Configuration

Builds the cache components once per application and hands them to request
handlers. Components live on ``app.state`` rather than in module globals, so
tests can build an application around their own store and stream source.
"""
import logging
from dataclasses import dataclass

from fastapi import Request

from app.services.bucket_store import DateBucketStore
from app.services.epg_cache_service import EPGCacheService
from app.services.epg_client import AiringStreamSource, EPGClient


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContainer:
    """The cache components shared by every request."""
    store: DateBucketStore
    source: AiringStreamSource
    cache_service: EPGCacheService

    async def aclose(self) -> None:
        """Release the provider connection pool if the source owns one."""
        if isinstance(self.source, EPGClient):
            await self.source.aclose()
            logger.debug("EPG client closed")


def build_container(settings, source: AiringStreamSource | None = None) -> ServiceContainer:
    """
    Create the store, stream source and cache service.

    Args:
        settings: Application settings
        source: Stream source to use instead of an EPGClient (mainly for testing)

    Returns:
        A ready ServiceContainer
    """
    store = DateBucketStore()
    if source is None:
        source = EPGClient.from_settings(settings)
    cache_service = EPGCacheService(
        store,
        source,
        max_concurrency=settings.epg_fetch_concurrency,
    )
    logger.debug(
        "Built cache service (source=%s, concurrency=%s)",
        type(source).__name__,
        settings.epg_fetch_concurrency,
    )
    return ServiceContainer(store=store, source=source, cache_service=cache_service)


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the application's ServiceContainer."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Services not initialized. Build them during startup.")
    return container


def get_cache_service(request: Request) -> EPGCacheService:
    """FastAPI dependency returning the application's EPGCacheService."""
    return get_container(request).cache_service
