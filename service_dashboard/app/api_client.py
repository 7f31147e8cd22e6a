"""
API gateway used by dashboard views.

One coroutine per remote resource action. Reads go through the injected
response cache; writes invalidate the affected cache paths before the
network round-trip. No method raises for transport problems: failures come
back as ``Envelope(success=False, error=...)`` so views can render an error
banner without exception handling.
"""

from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx

from shared.envelope import Envelope
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .caching import CacheStore, TTLCache, TTLPolicy
from .config import DashboardConfig


METRIC_RANGES = ("1h", "6h", "24h", "7d", "30d")


def _seg(value: str) -> str:
    """Percent-encode one path segment."""
    return quote(str(value), safe="")


class DashboardApiClient:
    """Typed async access to the edge router's ``/api`` surface."""

    def __init__(
        self,
        base_url: str = "http://localhost:8787/api",
        cache: Optional[CacheStore] = None,
        ttl_policy: Optional[TTLPolicy] = None,
        *,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.cache = cache if cache is not None else TTLCache()
        self.ttl_policy = ttl_policy or TTLPolicy()
        self.metrics = metrics
        self.logger = get_logger("dashboard.api_client")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: DashboardConfig, cache: Optional[CacheStore] = None, **kwargs: Any) -> "DashboardApiClient":
        policy = TTLPolicy(
            default=config.default_ttl_seconds,
            overrides=(("/metrics", config.metrics_ttl_seconds),),
        )
        return cls(config.api_base_url, cache, policy, timeout=config.request_timeout, **kwargs)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DashboardApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Core request plumbing
    # ------------------------------------------------------------------

    @staticmethod
    def cache_key(method: str, endpoint: str) -> str:
        return f"{method.upper()}:{endpoint}"

    def _record(self, event: str) -> None:
        if self.metrics:
            self.metrics.record_cache_event(event)

    async def _read(self, endpoint: str, skip_cache: bool = False) -> Envelope:
        key = self.cache_key("GET", endpoint)
        if not skip_cache:
            cached = self.cache.get(key, self.ttl_policy.ttl_for(endpoint))
            if cached is not None:
                self.logger.debug("Cache hit", key=key)
                self._record("hit")
                return cached
            self._record("miss")

        envelope = await self._request("GET", endpoint)
        if envelope.success:
            self.cache.set(key, envelope)
            self._record("store")
        return envelope

    async def _write(
        self,
        method: str,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None,
        invalidate: Iterable[str] = (),
    ) -> Envelope:
        # Invalidate first so a failed write never leaves optimistic data behind.
        for pattern in invalidate:
            self.cache.invalidate(pattern)
            self._record("invalidate")
        return await self._request(method, endpoint, body)

    async def _request(self, method: str, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Envelope:
        try:
            response = await self._client.request(method, endpoint.lstrip("/"), json=body)
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.error("API request failed", method=method, endpoint=endpoint, error=str(exc))
            return Envelope.fail(str(exc) or "Network error")

        if isinstance(payload, dict) and "success" not in payload and "error" in payload:
            # Router-level failures (401/404/500) use {error, message}
            message = payload.get("message")
            error = str(payload["error"])
            return Envelope.fail(f"{error}: {message}" if message else error)
        return Envelope.from_payload(payload)

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    async def list_workers(self, skip_cache: bool = False) -> Envelope:
        return await self._read("/workers", skip_cache)

    async def get_worker(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/workers/{_seg(name)}", skip_cache)

    async def create_worker(self, name: str, script: Optional[str] = None,
                            compatibility_date: Optional[str] = None) -> Envelope:
        body: Dict[str, Any] = {"name": name}
        if script is not None:
            body["script"] = script
        if compatibility_date is not None:
            body["compatibility_date"] = compatibility_date
        return await self._write("POST", "/workers", body, invalidate=("/workers", "/jobs"))

    async def delete_worker(self, name: str) -> Envelope:
        path = f"/workers/{_seg(name)}"
        return await self._write("DELETE", path, invalidate=("/workers", path, "/jobs"))

    async def clone_worker(self, source_name: str, new_name: str) -> Envelope:
        return await self._write(
            "POST",
            f"/workers/{_seg(source_name)}/clone",
            {"name": new_name},
            invalidate=("/workers", "/jobs"),
        )

    async def get_worker_routes(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/workers/{_seg(name)}/routes", skip_cache)

    async def list_zones(self, skip_cache: bool = False) -> Envelope:
        return await self._read("/zones", skip_cache)

    async def create_worker_route(self, worker_name: str, pattern: str, zone_id: str) -> Envelope:
        path = f"/workers/{_seg(worker_name)}/routes"
        return await self._write("POST", path, {"pattern": pattern, "zone_id": zone_id}, invalidate=(path,))

    async def delete_worker_route(self, worker_name: str, route_id: str, zone_id: str) -> Envelope:
        path = f"/workers/{_seg(worker_name)}/routes"
        return await self._write(
            "DELETE",
            f"{path}/{_seg(route_id)}?zone_id={_seg(zone_id)}",
            invalidate=(path,),
        )

    async def get_worker_secrets(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/workers/{_seg(name)}/secrets", skip_cache)

    async def set_worker_secret(self, worker_name: str, secret_name: str, value: str) -> Envelope:
        path = f"/workers/{_seg(worker_name)}/secrets"
        return await self._write("POST", path, {"name": secret_name, "value": value}, invalidate=(path,))

    async def delete_worker_secret(self, worker_name: str, secret_name: str) -> Envelope:
        path = f"/workers/{_seg(worker_name)}/secrets"
        return await self._write("DELETE", f"{path}/{_seg(secret_name)}", invalidate=(path,))

    async def get_worker_settings(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/workers/{_seg(name)}/settings", skip_cache)

    async def update_worker_settings(self, name: str, settings: Dict[str, Any]) -> Envelope:
        # Compatibility settings also show up on the worker detail view
        item = f"/workers/{_seg(name)}"
        return await self._write("PATCH", f"{item}/settings", settings, invalidate=(item,))

    async def get_worker_schedules(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/workers/{_seg(name)}/schedules", skip_cache)

    async def update_worker_schedules(self, name: str, schedules: List[Dict[str, str]]) -> Envelope:
        path = f"/workers/{_seg(name)}/schedules"
        return await self._write("PUT", path, {"schedules": schedules}, invalidate=(path,))

    async def get_worker_subdomain(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/workers/{_seg(name)}/subdomain", skip_cache)

    async def update_worker_subdomain(self, name: str, enabled: bool) -> Envelope:
        path = f"/workers/{_seg(name)}/subdomain"
        return await self._write("PUT", path, {"enabled": enabled}, invalidate=(path,))

    async def get_account_subdomain(self, skip_cache: bool = False) -> Envelope:
        return await self._read("/workers-subdomain", skip_cache)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def list_pages(self, skip_cache: bool = False) -> Envelope:
        return await self._read("/pages", skip_cache)

    async def get_page(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/pages/{_seg(name)}", skip_cache)

    async def delete_page(self, name: str) -> Envelope:
        path = f"/pages/{_seg(name)}"
        return await self._write("DELETE", path, invalidate=("/pages", path, "/jobs"))

    async def get_page_deployments(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/pages/{_seg(name)}/deployments", skip_cache)

    async def get_page_domains(self, name: str, skip_cache: bool = False) -> Envelope:
        return await self._read(f"/pages/{_seg(name)}/domains", skip_cache)

    async def add_page_domain(self, project_name: str, domain: str) -> Envelope:
        path = f"/pages/{_seg(project_name)}/domains"
        return await self._write("POST", path, {"domain": domain}, invalidate=(path,))

    async def delete_page_domain(self, project_name: str, domain_name: str) -> Envelope:
        path = f"/pages/{_seg(project_name)}/domains"
        return await self._write("DELETE", f"{path}/{_seg(domain_name)}", invalidate=(path,))

    async def rollback_page_deployment(self, project_name: str, deployment_id: str) -> Envelope:
        item = f"/pages/{_seg(project_name)}"
        return await self._write("POST", f"{item}/rollback", {"deployment_id": deployment_id}, invalidate=(item,))

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def get_metrics(self, time_range: str = "24h", skip_cache: bool = False) -> Envelope:
        if time_range not in METRIC_RANGES:
            return Envelope.fail(f"Unsupported time range '{time_range}'")
        return await self._read(f"/metrics?range={time_range}", skip_cache)

    # ------------------------------------------------------------------
    # Local records
    # ------------------------------------------------------------------

    async def list_jobs(self, skip_cache: bool = False) -> Envelope:
        return await self._read("/jobs", skip_cache)

    async def list_webhooks(self, skip_cache: bool = False) -> Envelope:
        return await self._read("/webhooks", skip_cache)

    async def create_webhook(self, name: str, url: str, events: List[str], secret: Optional[str] = None) -> Envelope:
        body: Dict[str, Any] = {"name": name, "url": url, "events": events}
        if secret is not None:
            body["secret"] = secret
        return await self._write("POST", "/webhooks", body, invalidate=("/webhooks",))

    async def update_webhook(self, webhook_id: str, changes: Dict[str, Any]) -> Envelope:
        return await self._write("PUT", f"/webhooks/{_seg(webhook_id)}", changes, invalidate=("/webhooks",))

    async def delete_webhook(self, webhook_id: str) -> Envelope:
        return await self._write("DELETE", f"/webhooks/{_seg(webhook_id)}", invalidate=("/webhooks",))

    async def list_backups(self, skip_cache: bool = False) -> Envelope:
        return await self._read("/backups", skip_cache)

    async def create_backup(self, entity_type: str, entity_name: str) -> Envelope:
        return await self._write(
            "POST",
            "/backups",
            {"entity_type": entity_type, "entity_name": entity_name},
            invalidate=("/backups", "/jobs"),
        )

    async def restore_backup(self, backup_id: str) -> Envelope:
        # A restore re-uploads the worker script
        return await self._write(
            "POST",
            f"/backups/{_seg(backup_id)}/restore",
            invalidate=("/workers", "/jobs"),
        )
