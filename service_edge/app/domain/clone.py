"""
Worker cloning.

A clone copies the source script's main module and compatibility settings
into a new script. Every fetch happens before the single upload, so a failed
clone never leaves a half-created worker behind.
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional

from shared.errors import ValidationError
from shared.logging import get_logger
from ..adapters.cloudflare_client import CloudflareApiClient, UpstreamResponse
from ..config import EdgeConfig
from .multipart import BundlePart, module_upload, parse_bundle, pick_main_module


class CloneError(ValidationError):
    """A clone step failed before anything was written."""


@dataclass
class ClonePlan:
    """What will be uploaded under the new name."""

    main_module: str
    content: bytes
    compatibility_date: str
    compatibility_flags: List[str] = field(default_factory=list)

    def metadata(self) -> bytes:
        return json.dumps({
            "main_module": self.main_module,
            "compatibility_date": self.compatibility_date,
            "compatibility_flags": self.compatibility_flags,
        }).encode("utf-8")


class WorkerCloner:
    """Duplicates a deployed worker under a new name."""

    def __init__(self, upstream: CloudflareApiClient, config: EdgeConfig):
        self.upstream = upstream
        self.config = config
        self.logger = get_logger("edge.clone")

    async def plan(self, source: str) -> ClonePlan:
        """Fetch settings and content of ``source``; raise ``CloneError`` on any failure."""
        settings = await self.upstream.request(
            "GET", self.upstream.script_path(source, "/settings"), operation="clone_settings"
        )
        if not settings.ok:
            self.logger.error("Failed to fetch source worker settings", source=source,
                              status_code=settings.status_code)
            raise CloneError("Failed to fetch source worker settings")
        result = settings.result(default={}) or {}
        compatibility_date = result.get("compatibility_date") or self.config.default_compatibility_date
        compatibility_flags = list(result.get("compatibility_flags") or [])

        script = await self.upstream.request(
            "GET", self.upstream.script_path(source), operation="clone_script"
        )
        if not script.ok:
            self.logger.error("Failed to fetch source worker script", source=source,
                              status_code=script.status_code)
            raise CloneError("Failed to fetch source worker script")

        parts = parse_bundle(script.content, script.content_type, self.config.max_script_bytes)
        self.logger.debug("Source bundle parts", source=source, parts=[part.name for part in parts])

        main: Optional[BundlePart] = pick_main_module(parts)
        if main is None:
            self.logger.error("No script content found in source worker", source=source)
            raise CloneError("No script content found in source worker")

        return ClonePlan(main.module_name, main.content, compatibility_date, compatibility_flags)

    async def clone(self, source: str, new_name: str) -> UpstreamResponse:
        plan = await self.plan(source)
        self.logger.info("Cloning worker", source=source, target=new_name, main_module=plan.main_module)
        return await self.upstream.request(
            "PUT",
            self.upstream.script_path(new_name),
            operation="clone_upload",
            files=module_upload(plan.main_module, plan.content, plan.metadata()),
        )
