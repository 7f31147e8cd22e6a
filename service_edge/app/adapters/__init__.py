"""
Adapters for the edge router's collaborators: the vendor API, the metadata
database and the backup object store.
"""

from .backup_bucket import BackupBucket
from .cloudflare_client import CloudflareApiClient, UpstreamResponse
from .metadata_store import MetadataStore

__all__ = [
    "BackupBucket",
    "CloudflareApiClient",
    "MetadataStore",
    "UpstreamResponse",
]
