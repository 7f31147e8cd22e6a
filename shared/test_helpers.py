"""
Test helper functions and factory methods for worker-manager.
"""

from typing import Dict, Any, Optional, List, Union
from datetime import datetime, timedelta, timezone
from dataclasses import dataclass
import jwt


@dataclass
class TestUser:
    """Test user data."""
    __test__ = False

    email: str
    audience: str = "test-policy-aud"


class MockAccessTokenGenerator:
    """Generate access-layer style JWTs for testing.

    Signatures are irrelevant to the router (the access layer verifies them
    upstream), so a shared HMAC secret is enough.
    """

    def __init__(self, issuer: str = "https://team.cloudflareaccess.com", secret: str = "mock-secret"):
        self.issuer = issuer
        self.secret = secret

    def generate(self, user: TestUser, expires_in: int = 3600,
                 audience: Optional[Union[str, List[str]]] = None) -> str:
        """Generate an access token for user; negative ``expires_in`` yields an expired token."""
        now = datetime.now(timezone.utc)
        payload = {
            "iss": self.issuer,
            "sub": f"sub-{user.email}",
            "aud": audience if audience is not None else [user.audience],
            "email": user.email,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
            "type": "app",
        }
        return jwt.encode(payload, self.secret, algorithm="HS256")


class TestDataFactory:
    """Factory for vendor API payloads."""
    __test__ = False


    @staticmethod
    def worker_scripts() -> List[Dict[str, Any]]:
        return [
            {"id": "api-gateway", "etag": "e1", "handlers": ["fetch"],
             "created_on": "2024-01-01T00:00:00Z", "modified_on": "2024-02-01T00:00:00Z"},
            {"id": "worker-manager", "etag": "e2", "handlers": ["fetch"],
             "created_on": "2024-01-01T00:00:00Z", "modified_on": "2024-02-01T00:00:00Z"},
            {"id": "cron-runner", "etag": "e3", "handlers": ["scheduled"],
             "created_on": "2024-01-01T00:00:00Z", "modified_on": "2024-02-01T00:00:00Z"},
        ]

    @staticmethod
    def zones() -> List[Dict[str, Any]]:
        return [
            {"id": "zone-a", "name": "example.com", "status": "active"},
            {"id": "zone-b", "name": "example.org", "status": "active"},
        ]

    @staticmethod
    def envelope(result: Any = None, success: bool = True, errors: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        return {"success": success, "result": result, "errors": errors or [], "messages": []}


test_data_factory = TestDataFactory()
mock_token_generator = MockAccessTokenGenerator()
