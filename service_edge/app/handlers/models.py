"""
Request body models for the edge router's write endpoints.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class WorkerCreateRequest(BaseModel):
    name: str = Field(min_length=1)


class WorkerCloneRequest(BaseModel):
    name: str = Field(min_length=1)


class RouteCreateRequest(BaseModel):
    pattern: str = Field(min_length=1)
    zone_id: str = Field(min_length=1)


class SecretRequest(BaseModel):
    name: str = Field(min_length=1)
    value: str


class SchedulesRequest(BaseModel):
    schedules: List[Dict[str, Any]]


class SubdomainRequest(BaseModel):
    enabled: bool


class DomainRequest(BaseModel):
    domain: str = Field(min_length=1)


class RollbackRequest(BaseModel):
    deployment_id: str = Field(min_length=1)


class WebhookCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    events: List[str] = Field(default_factory=list)
    secret: Optional[str] = None


class WebhookUpdateRequest(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    events: Optional[List[str]] = None
    secret: Optional[str] = None
    enabled: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class BackupCreateRequest(BaseModel):
    entity_type: Literal["worker", "page"]
    entity_name: str = Field(min_length=1)
