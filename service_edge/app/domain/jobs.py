"""
Job/audit recording around mutating operations.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from shared.errors import StoreError
from shared.logging import get_logger
from ..adapters.metadata_store import MetadataStore


class JobOutcome:
    """Handle yielded by ``JobRecorder.track``; handlers mark failures on it."""

    def __init__(self, job_id: Optional[str]):
        self.job_id = job_id
        self.failed = False
        self.error: Optional[str] = None

    def fail(self, error: str) -> None:
        self.failed = True
        self.error = error


class JobRecorder:
    """Writes ``running`` rows and their final status; recording never fails a request."""

    def __init__(self, store: MetadataStore):
        self.store = store
        self.logger = get_logger("edge.jobs")

    async def start(self, operation_type: str, entity_type: str, entity_name: str,
                    user_email: Optional[str] = None) -> Optional[str]:
        try:
            return await self.store.start_job(operation_type, entity_type, entity_name, user_email)
        except StoreError as exc:
            self.logger.warning("Failed to record job start", operation=operation_type,
                                entity=entity_name, error=exc.message)
            return None

    async def finish(self, job_id: Optional[str], success: bool, error: Optional[str] = None) -> None:
        if job_id is None:
            return
        try:
            await self.store.finish_job(job_id, "success" if success else "failed", error)
        except StoreError as exc:
            self.logger.warning("Failed to record job completion", job_id=job_id, error=exc.message)

    @asynccontextmanager
    async def track(self, operation_type: str, entity_type: str, entity_name: str,
                    user_email: Optional[str] = None) -> AsyncIterator[JobOutcome]:
        """Record a job around the body; exceptions mark it failed and propagate."""
        outcome = JobOutcome(await self.start(operation_type, entity_type, entity_name, user_email))
        try:
            yield outcome
        except Exception as exc:
            await self.finish(outcome.job_id, False, str(exc))
            raise
        await self.finish(outcome.job_id, not outcome.failed, outcome.error)
