"""
Uniform response envelope shared by the edge router and the dashboard gateway.

Every response in the system is a JSON object of the shape::

    {"success": bool, "result": ..., "error": "...", "errors": [{"code": 0, "message": "..."}]}

``result`` is meaningful only when ``success`` is true; ``error``/``errors``
only when it is false.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic import ValidationError as PydanticValidationError


class ErrorDetail(BaseModel):
    """Single vendor-style error entry."""

    model_config = ConfigDict(extra="allow")

    code: Optional[int] = None
    message: str = ""


class Envelope(BaseModel):
    """Response envelope; unknown vendor keys (``result_info``, ``messages``) are preserved."""

    model_config = ConfigDict(extra="allow")

    success: bool
    result: Any = None
    error: Optional[str] = None
    errors: Optional[List[ErrorDetail]] = None

    @model_validator(mode="after")
    def _one_side_only(self) -> "Envelope":
        if self.success:
            self.error = None
        else:
            self.result = None
            if not self.error and not self.errors:
                self.error = "Request failed"
        return self

    @classmethod
    def ok(cls, result: Any = None) -> "Envelope":
        return cls(success=True, result=result)

    @classmethod
    def fail(cls, error: str) -> "Envelope":
        return cls(success=False, error=error)

    @classmethod
    def from_payload(cls, payload: Any) -> "Envelope":
        """Build an envelope from a decoded JSON body of unknown shape."""
        if not isinstance(payload, dict) or "success" not in payload:
            return cls.fail("Unexpected response body")
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as exc:
            return cls.fail(f"Malformed response envelope: {exc.error_count()} invalid field(s)")

    @property
    def error_message(self) -> Optional[str]:
        """Human-readable failure text for banners, ``None`` on success."""
        if self.success:
            return None
        if self.error:
            return self.error
        messages = [detail.message for detail in self.errors or [] if detail.message]
        return "; ".join(messages) or "Request failed"

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
