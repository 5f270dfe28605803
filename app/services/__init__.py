"""
Services package for the TV Program Frequency Service

This package contains the day-bucket cache, the occurrence aggregation and the
EPG provider client.
"""
from app.services.bucket_store import DateBucketStore
from app.services.epg_cache_service import EPGCacheService
from app.services.epg_client import EPGClient
from app.services.errors import (
    CacheError,
    ErrorKind,
    InvalidArgumentError,
    NotFoundError,
    StoreError,
    UpstreamProtocolError,
    UpstreamUnavailableError,
)
from app.services.scheduler_service import EPGScheduler, prefetch_days

__all__ = [
    'DateBucketStore',
    'EPGCacheService',
    'EPGClient',
    'EPGScheduler',
    'prefetch_days',
    'CacheError',
    'ErrorKind',
    'InvalidArgumentError',
    'NotFoundError',
    'StoreError',
    'UpstreamProtocolError',
    'UpstreamUnavailableError',
]
