"""
Dashboard API gateway package for worker-manager.

Every dashboard view talks to the edge router through this package:
- app.api_client: one coroutine per resource action, uniform envelopes
- app.caching: injected TTL response cache and per-resource TTL policy
- app.config: pydantic-settings configuration
"""

from .api_client import DashboardApiClient
from .caching import TTLCache, TTLPolicy

__all__ = [
    "DashboardApiClient",
    "TTLCache",
    "TTLPolicy",
]
