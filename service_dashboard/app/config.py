"""
Dashboard gateway configuration.
"""

from pydantic import Field

from shared.config import BaseConfig
from .caching import DEFAULT_TTL, METRICS_TTL


class DashboardConfig(BaseConfig):
    """Settings for the dashboard's API gateway."""

    api_base_url: str = Field(default="http://localhost:8787/api")
    request_timeout: float = Field(default=30.0)
    default_ttl_seconds: float = Field(default=DEFAULT_TTL)
    metrics_ttl_seconds: float = Field(default=METRICS_TTL)


def get_config() -> DashboardConfig:
    return DashboardConfig()
