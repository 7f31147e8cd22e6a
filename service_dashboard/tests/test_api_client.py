"""
Unit tests for the dashboard API gateway.
"""

import json

import httpx
import pytest
import respx

from service_dashboard.app.api_client import DashboardApiClient
from service_dashboard.app.caching import TTLCache, TTLPolicy
from service_dashboard.app.config import DashboardConfig
from shared.metrics import MetricsCollector
from shared.test_helpers import test_data_factory

BASE = "http://edge.test/api"


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestDashboardApiClient:
    """Test cases for DashboardApiClient."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return TTLCache(clock=clock)

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("dashboard-test")

    @pytest.fixture
    async def client(self, cache, metrics):
        api = DashboardApiClient(BASE, cache, TTLPolicy(), metrics=metrics)
        yield api
        await api.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_metrics_cached_within_window(self, client, clock, cache):
        """Two reads inside the metrics window make one network call; skip_cache makes another."""
        first_body = test_data_factory.envelope({"requests": 10})
        second_body = test_data_factory.envelope({"requests": 20})
        route = respx.get(f"{BASE}/metrics").mock(
            side_effect=[httpx.Response(200, json=first_body), httpx.Response(200, json=second_body)]
        )

        first = await client.get_metrics("24h")
        clock.advance(60)
        second = await client.get_metrics("24h")

        assert route.call_count == 1
        assert second is first
        assert second.model_dump_json() == first.model_dump_json()
        assert route.calls[0].request.url.params["range"] == "24h"

        third = await client.get_metrics("24h", skip_cache=True)

        assert route.call_count == 2
        assert third.result == {"requests": 20}
        assert cache.get("GET:/metrics?range=24h", 120) is third

    @pytest.mark.asyncio
    @respx.mock
    async def test_metrics_expire_after_two_minutes(self, client, clock):
        """Metrics are refetched once the shorter window has passed."""
        route = respx.get(f"{BASE}/metrics").mock(
            return_value=httpx.Response(200, json=test_data_factory.envelope({"requests": 1}))
        )

        await client.get_metrics("1h")
        clock.advance(121)
        await client.get_metrics("1h")

        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_unsupported_range_fails_without_network(self, client):
        """An unknown range is rejected locally."""
        with respx.mock(assert_all_called=False) as router:
            route = router.get(f"{BASE}/metrics")
            envelope = await client.get_metrics("90d")

        assert envelope.success is False
        assert "90d" in envelope.error
        assert not route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_failed_read_is_not_cached(self, client, cache):
        """Only successful envelopes are stored."""
        respx.get(f"{BASE}/workers").mock(
            return_value=httpx.Response(
                500, json={"success": False, "errors": [{"code": 10000, "message": "boom"}]}
            )
        )

        envelope = await client.list_workers()

        assert envelope.success is False
        assert envelope.result is None
        assert envelope.error_message == "boom"
        assert cache.keys() == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_write_invalidates_collection_and_item(self, client, cache):
        """Deleting a worker drops the list, the item and its sub-resources before the call."""
        cache.set("GET:/workers", "list")
        cache.set("GET:/workers/api-gateway", "item")
        cache.set("GET:/workers/api-gateway/secrets", "secrets")
        cache.set("GET:/jobs", "jobs")
        cache.set("GET:/pages", "pages")

        def respond(request):
            # Entries are already gone when the request goes out
            assert cache.keys() == ["GET:/pages"]
            return httpx.Response(200, json={"success": True, "result": None})

        respx.delete(f"{BASE}/workers/api-gateway").mock(side_effect=respond)

        envelope = await client.delete_worker("api-gateway")

        assert envelope.success is True
        assert cache.keys() == ["GET:/pages"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_write_invalidates_even_on_failure(self, client, cache):
        """A failed write still leaves no stale entries."""
        cache.set("GET:/webhooks", "old")
        respx.post(f"{BASE}/webhooks").mock(return_value=httpx.Response(500, json={"success": False, "error": "db down"}))

        envelope = await client.create_webhook("deploys", "https://hooks.example.com", ["worker.deployed"])

        assert envelope.success is False
        assert envelope.error == "db down"
        assert cache.keys() == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_failure_becomes_envelope(self, client):
        """Connection errors never escape the gateway."""
        respx.get(f"{BASE}/pages").mock(side_effect=httpx.ConnectError("connection refused"))

        envelope = await client.list_pages()

        assert envelope.success is False
        assert "connection refused" in envelope.error

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_body_becomes_envelope(self, client):
        """A body that is not JSON is reported as a failure."""
        respx.get(f"{BASE}/jobs").mock(return_value=httpx.Response(502, text="<html>Bad gateway</html>"))

        envelope = await client.list_jobs()

        assert envelope.success is False
        assert envelope.error

    @pytest.mark.asyncio
    @respx.mock
    async def test_router_error_shape(self, client):
        """Router-level {error, message} bodies are folded into the error string."""
        respx.get(f"{BASE}/workers").mock(
            return_value=httpx.Response(401, json={"error": "Unauthorized", "message": "Token expired"})
        )

        envelope = await client.list_workers()

        assert envelope.success is False
        assert envelope.error == "Unauthorized: Token expired"

    @pytest.mark.asyncio
    @respx.mock
    async def test_path_segments_are_encoded(self, client, cache):
        """Names are percent-encoded in the URL and the cache key alike."""
        route = respx.get(f"{BASE}/workers/team%2Fapi/secrets").mock(
            return_value=httpx.Response(200, json=test_data_factory.envelope([]))
        )

        envelope = await client.get_worker_secrets("team/api")

        assert envelope.success is True
        assert route.called
        assert cache.keys() == ["GET:/workers/team%2Fapi/secrets"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_secret_write_sends_body(self, client):
        """Secret writes post name and value."""
        route = respx.post(f"{BASE}/workers/api-gateway/secrets").mock(
            return_value=httpx.Response(200, json=test_data_factory.envelope(None))
        )

        await client.set_worker_secret("api-gateway", "API_KEY", "s3cr3t")

        assert json.loads(route.calls[0].request.read()) == {"name": "API_KEY", "value": "s3cr3t"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_cache_events_are_counted(self, client, metrics):
        """Hits, misses and stores show up in the cache counter."""
        respx.get(f"{BASE}/zones").mock(
            return_value=httpx.Response(200, json=test_data_factory.envelope(test_data_factory.zones()))
        )

        await client.list_zones()
        await client.list_zones()

        def count(event):
            return metrics.registry.get_sample_value("cache_events_total", {"event": event})

        assert count("miss") == 1
        assert count("hit") == 1
        assert count("store") == 1


class TestFromConfig:
    """Test cases for building the gateway from settings."""

    @pytest.mark.asyncio
    async def test_policy_follows_config(self):
        config = DashboardConfig(api_base_url=BASE, default_ttl_seconds=30, metrics_ttl_seconds=5)
        client = DashboardApiClient.from_config(config)
        try:
            assert client.ttl_policy.ttl_for("/workers") == 30
            assert client.ttl_policy.ttl_for("/metrics?range=1h") == 5
        finally:
            await client.close()
