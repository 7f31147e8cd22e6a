"""
Object store for backup payloads, kept in Redis.

Each object is a binary value under its key plus a metadata hash under
``<key>:meta``.
"""

from typing import Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.errors import StoreError
from shared.logging import get_logger


class BackupBucket:
    """Key/value object storage for backup snapshots."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.logger = get_logger("edge.backup_bucket")
        self.redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        return self.redis

    async def close(self):
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None

    @staticmethod
    def _meta_key(key: str) -> str:
        return f"{key}:meta"

    async def put(self, key: str, content: bytes, metadata: Optional[Dict[str, str]] = None) -> int:
        """Store ``content`` under ``key``; returns the stored size in bytes."""
        client = await self._get_redis()
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(key, content)
                pipe.delete(self._meta_key(key))
                if metadata:
                    pipe.hset(self._meta_key(key), mapping={k: str(v) for k, v in metadata.items()})
                await pipe.execute()
        except (RedisError, OSError) as e:
            self.logger.error("Failed to store backup object", key=key, error=str(e))
            raise StoreError(f"Failed to store backup object: {e}")
        self.logger.info("Backup object stored", key=key, size_bytes=len(content))
        return len(content)

    async def get(self, key: str) -> Optional[bytes]:
        client = await self._get_redis()
        try:
            return await client.get(key)
        except (RedisError, OSError) as e:
            self.logger.error("Failed to read backup object", key=key, error=str(e))
            raise StoreError(f"Failed to read backup object: {e}")

    async def metadata(self, key: str) -> Dict[str, str]:
        client = await self._get_redis()
        try:
            raw = await client.hgetall(self._meta_key(key))
        except (RedisError, OSError) as e:
            raise StoreError(f"Failed to read backup metadata: {e}")
        return {k.decode() if isinstance(k, bytes) else k: v.decode() if isinstance(v, bytes) else v
                for k, v in raw.items()}
