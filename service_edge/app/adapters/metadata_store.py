"""
PostgreSQL persistence for job records, webhook subscriptions and backup records.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import asyncpg

from shared.errors import StoreError
from shared.logging import get_logger

JOB_STATUSES = ("running", "success", "failed")
WEBHOOK_FIELDS = ("name", "url", "events", "secret", "enabled")
# Signing secrets are write-only
WEBHOOK_LIST_COLUMNS = ("id", "name", "url", "events", "enabled", "created_at", "updated_at")


def _row_to_dict(row: asyncpg.Record) -> Dict[str, Any]:
    data = dict(row)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
    return data


class MetadataStore:
    """Relational store for the router's local records."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.logger = get_logger("edge.metadata_store")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Open the pool and create tables."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=1,
                max_size=10,
                command_timeout=30
            )
            await self._create_tables()
            self.logger.info("Metadata store started")
        except (asyncpg.PostgresError, OSError) as e:
            self.logger.error("Failed to start metadata store", error=str(e))
            raise StoreError(f"Failed to start metadata store: {e}")

    async def stop(self):
        """Close the pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("Metadata store stopped")

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    id VARCHAR(64) PRIMARY KEY,
                    operation_type VARCHAR(64) NOT NULL,
                    entity_type VARCHAR(32) NOT NULL,
                    entity_name VARCHAR(255) NOT NULL,
                    status VARCHAR(16) NOT NULL DEFAULT 'running',
                    error_message TEXT,
                    user_email VARCHAR(255),
                    started_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    completed_at TIMESTAMP WITH TIME ZONE
                );
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_jobs_started ON jobs(started_at DESC);
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS webhooks (
                    id VARCHAR(64) PRIMARY KEY,
                    name VARCHAR(255) NOT NULL,
                    url TEXT NOT NULL,
                    events TEXT NOT NULL DEFAULT '[]',
                    secret TEXT,
                    enabled BOOLEAN NOT NULL DEFAULT TRUE,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS backups (
                    id VARCHAR(64) PRIMARY KEY,
                    entity_type VARCHAR(32) NOT NULL,
                    entity_name VARCHAR(255) NOT NULL,
                    backup_type VARCHAR(32) NOT NULL DEFAULT 'manual',
                    object_key TEXT NOT NULL,
                    size_bytes BIGINT NOT NULL DEFAULT 0,
                    created_by VARCHAR(255),
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)

    def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise StoreError("Metadata store unavailable")
        return self.pool

    async def _fetch(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(query, *args)
        except (asyncpg.PostgresError, OSError) as e:
            self.logger.error("Metadata query failed", error=str(e))
            raise StoreError(str(e))
        return [_row_to_dict(row) for row in rows]

    async def _fetchrow(self, query: str, *args: Any) -> Optional[Dict[str, Any]]:
        rows = await self._fetch(query, *args)
        return rows[0] if rows else None

    async def _execute(self, query: str, *args: Any) -> str:
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                return await conn.execute(query, *args)
        except (asyncpg.PostgresError, OSError) as e:
            self.logger.error("Metadata statement failed", error=str(e))
            raise StoreError(str(e))

    @staticmethod
    def _affected(status: str) -> int:
        # asyncpg returns command tags such as "UPDATE 1" / "DELETE 0"
        try:
            return int(status.rsplit(" ", 1)[-1])
        except ValueError:
            return 0

    # Jobs

    async def list_jobs(self, limit: int = 100) -> List[Dict[str, Any]]:
        return await self._fetch("SELECT * FROM jobs ORDER BY started_at DESC LIMIT $1", limit)

    async def start_job(self, operation_type: str, entity_type: str, entity_name: str,
                        user_email: Optional[str] = None) -> str:
        job_id = str(uuid.uuid4())
        await self._execute("""
            INSERT INTO jobs (id, operation_type, entity_type, entity_name, status, user_email, started_at)
            VALUES ($1, $2, $3, $4, 'running', $5, $6)
        """, job_id, operation_type, entity_type, entity_name, user_email, datetime.now(timezone.utc))
        return job_id

    async def finish_job(self, job_id: str, status: str, error_message: Optional[str] = None) -> None:
        if status not in JOB_STATUSES:
            raise ValueError(f"Unknown job status '{status}'")
        await self._execute("""
            UPDATE jobs SET status = $2, error_message = $3, completed_at = $4 WHERE id = $1
        """, job_id, status, error_message, datetime.now(timezone.utc))

    # Webhooks

    @staticmethod
    def _decode_webhook(row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row["events"] = json.loads(row.get("events") or "[]")
        except ValueError:
            row["events"] = []
        return row

    async def list_webhooks(self) -> List[Dict[str, Any]]:
        rows = await self._fetch(f"SELECT {', '.join(WEBHOOK_LIST_COLUMNS)} FROM webhooks ORDER BY created_at DESC")
        return [self._decode_webhook(row) for row in rows]

    async def create_webhook(self, name: str, url: str, events: Sequence[str],
                             secret: Optional[str] = None) -> Dict[str, Any]:
        webhook_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        await self._execute("""
            INSERT INTO webhooks (id, name, url, events, secret, enabled, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, TRUE, $6, $6)
        """, webhook_id, name, url, json.dumps(list(events)), secret, now)
        return {
            "id": webhook_id,
            "name": name,
            "url": url,
            "events": list(events),
            "enabled": True,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }

    async def update_webhook(self, webhook_id: str, changes: Dict[str, Any]) -> bool:
        """Apply a partial update; returns False when no row matched."""
        fields = [key for key in WEBHOOK_FIELDS if key in changes]
        if not fields:
            raise ValueError("No fields to update")
        assignments = []
        values: List[Any] = [webhook_id]
        for key in fields:
            value = changes[key]
            if key == "events":
                value = json.dumps(list(value))
            elif key == "enabled":
                value = bool(value)
            values.append(value)
            assignments.append(f"{key} = ${len(values)}")
        values.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(values)}")
        status = await self._execute(
            f"UPDATE webhooks SET {', '.join(assignments)} WHERE id = $1", *values
        )
        return self._affected(status) > 0

    async def delete_webhook(self, webhook_id: str) -> bool:
        status = await self._execute("DELETE FROM webhooks WHERE id = $1", webhook_id)
        return self._affected(status) > 0

    # Backups

    async def list_backups(self, limit: int = 100) -> List[Dict[str, Any]]:
        return await self._fetch("SELECT * FROM backups ORDER BY created_at DESC LIMIT $1", limit)

    async def get_backup(self, backup_id: str) -> Optional[Dict[str, Any]]:
        return await self._fetchrow("SELECT * FROM backups WHERE id = $1", backup_id)

    async def insert_backup(self, backup_id: str, entity_type: str, entity_name: str, object_key: str,
                            size_bytes: int, created_by: Optional[str], backup_type: str = "manual") -> None:
        await self._execute("""
            INSERT INTO backups (id, entity_type, entity_name, backup_type, object_key, size_bytes, created_by, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
        """, backup_id, entity_type, entity_name, backup_type, object_key, size_bytes, created_by,
            datetime.now(timezone.utc))
