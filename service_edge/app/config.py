"""
Edge router configuration.

Built once at startup and handed to the router, which threads it into every
handler through the request context.
"""

from typing import List

from pydantic import Field

from shared.config import BaseConfig


class EdgeConfig(BaseConfig):
    """Settings for the edge request router."""

    # Vendor account
    account_id: str = Field(default="")
    api_token: str = Field(default="")
    api_base_url: str = Field(default="https://api.cloudflare.com/client/v4")
    graphql_url: str = Field(default="https://api.cloudflare.com/client/v4/graphql")
    upstream_timeout: float = Field(default=30.0)

    # Access layer
    team_domain: str = Field(default="")
    policy_aud: str = Field(default="")
    local_hostnames: List[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1"])
    preview_suffix: str = Field(default=".workers.dev")

    # Local metadata
    postgres_dsn: str = Field(default="postgresql://localhost:5432/worker_manager")
    redis_url: str = Field(default="redis://localhost:6379/0")
    backup_key_prefix: str = Field(default="backups")

    # Listings
    hidden_workers: List[str] = Field(default_factory=lambda: ["worker-manager"])
    hidden_pages: List[str] = Field(default_factory=list)

    # Script handling
    default_compatibility_date: str = Field(default="2024-12-01")
    max_script_bytes: int = Field(default=10 * 1024 * 1024)


def get_config() -> EdgeConfig:
    """Load configuration from the environment / .env file."""
    return EdgeConfig()
