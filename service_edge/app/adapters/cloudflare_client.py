"""
Vendor REST/GraphQL client for the edge router.

Responses are handed back with their status code and decoded body so route
handlers can pass them through unchanged. Only transport failures raise.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from shared.errors import UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..config import EdgeConfig

_MISSING = object()


def segment(value: str) -> str:
    """Percent-encode one path segment for an upstream URL."""
    return quote(str(value), safe="")


@dataclass
class UpstreamResponse:
    """Status, headers and decoded body of one vendor API call."""

    status_code: int
    headers: httpx.Headers
    content: bytes
    payload: Any = _MISSING

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_json(self) -> bool:
        return self.payload is not _MISSING

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "UpstreamResponse":
        try:
            payload = response.json()
        except ValueError:
            payload = _MISSING
        return cls(response.status_code, response.headers, response.content, payload)

    def result(self, default: Any = None) -> Any:
        """``result`` of a successful vendor envelope, else ``default``."""
        if self.ok and isinstance(self.payload, dict) and self.payload.get("success"):
            return self.payload.get("result", default)
        return default


class CloudflareApiClient:
    """Thin async wrapper over the vendor API bound to one account."""

    def __init__(
        self,
        config: EdgeConfig,
        *,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.metrics = metrics
        self.logger = get_logger("edge.upstream")
        self._client = httpx.AsyncClient(
            base_url=config.api_base_url.rstrip("/") + "/",
            timeout=config.upstream_timeout,
            headers={"Authorization": f"Bearer {config.api_token}"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def account_path(self, suffix: str = "") -> str:
        return f"accounts/{segment(self.config.account_id)}{suffix}"

    def script_path(self, name: str, suffix: str = "") -> str:
        return self.account_path(f"/workers/scripts/{segment(name)}{suffix}")

    def project_path(self, name: str, suffix: str = "") -> str:
        return self.account_path(f"/pages/projects/{segment(name)}{suffix}")

    async def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[List[Tuple[str, Tuple[Optional[str], bytes, str]]]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> UpstreamResponse:
        """Issue one vendor call; raise ``UpstreamError`` on transport failure."""
        try:
            response = await self._client.request(
                method,
                path.lstrip("/") if not path.startswith("http") else path,
                json=json,
                params=params,
                files=files,
                content=content,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            self.logger.error("Upstream request failed", operation=operation, method=method, error=str(exc))
            if self.metrics:
                self.metrics.record_upstream_call(operation, 0)
                self.metrics.record_error("upstream_transport")
            raise UpstreamError("cloudflare", str(exc) or type(exc).__name__, details={"operation": operation})

        if self.metrics:
            self.metrics.record_upstream_call(operation, response.status_code)
        if response.status_code >= 400:
            self.logger.warning(
                "Upstream returned error status",
                operation=operation,
                status_code=response.status_code,
            )
        else:
            self.logger.debug("Upstream call", operation=operation, status_code=response.status_code)
        return UpstreamResponse.from_httpx(response)

    async def graphql(self, query: str, variables: Dict[str, Any]) -> UpstreamResponse:
        return await self.request(
            "POST",
            self.config.graphql_url,
            operation="graphql",
            json={"query": query, "variables": variables},
        )
