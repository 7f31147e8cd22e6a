"""
Dashboard caching package.

Short-lived, explicitly invalidated response caching for the dashboard's
API gateway. The store is constructed by the caller and injected.
"""

from .ttl_cache import CacheEntry, CacheStore, TTLCache, TTLPolicy, DEFAULT_TTL, METRICS_TTL

__all__ = [
    "CacheEntry",
    "CacheStore",
    "TTLCache",
    "TTLPolicy",
    "DEFAULT_TTL",
    "METRICS_TTL",
]
