"""
Shared fixtures for edge router tests.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from service_edge.app.adapters import BackupBucket, MetadataStore
from service_edge.app.config import EdgeConfig
from service_edge.app.main import EdgeRouterService
from shared.metrics import MetricsCollector
from shared.test_helpers import TestUser, mock_token_generator


@pytest.fixture
def config():
    return EdgeConfig(
        account_id="acc-1",
        api_token="cf-token",
        policy_aud="test-policy-aud",
        hidden_workers=["worker-manager"],
        hidden_pages=["internal-docs"],
    )

@pytest.fixture
def store():
    store = AsyncMock(spec=MetadataStore)
    store.pool = None
    store.start_job.return_value = "job-1"
    return store

@pytest.fixture
def bucket():
    return AsyncMock(spec=BackupBucket)

@pytest.fixture
def service(config, store, bucket):
    return EdgeRouterService(config, store=store, bucket=bucket, metrics=MetricsCollector("edge-test"))

@pytest.fixture
def client(service):
    """Client on a non-local host, so the access layer applies."""
    return TestClient(service.app, base_url="https://manager.example.com")

@pytest.fixture
def local_client(service):
    return TestClient(service.app, base_url="http://localhost:8787")

@pytest.fixture
def user():
    return TestUser(email="dev@example.com")

@pytest.fixture
def auth_headers(user):
    return {
        "CF-Access-JWT-Assertion": mock_token_generator.generate(user),
        "CF-Access-Authenticated-User-Email": user.email,
    }
