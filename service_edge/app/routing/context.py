"""
Per-request context handed to every route handler.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type, TypeVar, TYPE_CHECKING

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from shared.errors import ValidationError
from ..config import EdgeConfig

if TYPE_CHECKING:
    from ..adapters.backup_bucket import BackupBucket
    from ..adapters.cloudflare_client import CloudflareApiClient
    from ..adapters.metadata_store import MetadataStore
    from ..domain.jobs import JobRecorder

M = TypeVar("M", bound=BaseModel)


@dataclass
class RequestContext:
    """Everything a handler may touch; handlers never read the environment."""

    request: Request
    config: EdgeConfig
    params: Dict[str, str]
    upstream: "CloudflareApiClient"
    store: "MetadataStore"
    bucket: "BackupBucket"
    jobs: "JobRecorder"
    user_email: str = "unknown"
    is_local: bool = False
    _body: Optional[Any] = field(default=None, repr=False)

    @property
    def query(self):
        return self.request.query_params

    async def json_body(self) -> Dict[str, Any]:
        """Decode the request body as a JSON object (empty body -> ``{}``)."""
        if self._body is None:
            raw = await self.request.body()
            if not raw.strip():
                self._body = {}
            else:
                try:
                    self._body = json.loads(raw)
                except ValueError:
                    raise ValidationError("Invalid JSON body")
            if not isinstance(self._body, dict):
                raise ValidationError("JSON body must be an object")
        return self._body

    async def parse_body(self, model: Type[M]) -> M:
        """Validate the JSON body against a request model."""
        try:
            return model.model_validate(await self.json_body())
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ())) or "body"
            raise ValidationError(f"Invalid request body: {location}: {first.get('msg')}")
