"""
Unit tests for access-layer validation.
"""

from typing import Dict, Optional

import pytest
from starlette.requests import Request

from service_edge.app.auth import AccessValidator
from service_edge.app.config import EdgeConfig
from shared.errors import AuthenticationError
from shared.test_helpers import TestUser, mock_token_generator


def make_request(host: str = "manager.example.com", headers: Optional[Dict[str, str]] = None) -> Request:
    raw_headers = [(b"host", host.encode())]
    for name, value in (headers or {}).items():
        raw_headers.append((name.lower().encode(), value.encode()))
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "https",
        "path": "/api/workers",
        "raw_path": b"/api/workers",
        "query_string": b"",
        "headers": raw_headers,
        "server": (host, 443),
    }
    return Request(scope)


class TestAccessValidator:
    """Test cases for AccessValidator."""

    @pytest.fixture
    def validator(self):
        return AccessValidator(EdgeConfig(policy_aud="test-policy-aud"))

    @pytest.fixture
    def user(self):
        return TestUser(email="dev@example.com")

    @pytest.mark.parametrize("host", ["localhost", "127.0.0.1", "manager.acct.workers.dev"])
    def test_local_hosts_bypass(self, validator, host):
        """Local and preview hosts are valid without any token."""
        request = make_request(host)

        assert validator.is_local_dev(request) is True
        assert validator.validate(request).valid is True

    def test_missing_token(self, validator):
        result = validator.validate(make_request())

        assert result.valid is False
        assert result.error == "No access token provided"

    def test_garbage_token(self, validator):
        result = validator.validate(make_request(headers={"CF-Access-JWT-Assertion": "not-a-jwt"}))

        assert result.valid is False
        assert result.error == "Invalid token format"

    def test_header_token(self, validator, user):
        token = mock_token_generator.generate(user)

        result = validator.validate(make_request(headers={"CF-Access-JWT-Assertion": token}))

        assert result.valid is True
        assert result.email == "dev@example.com"

    def test_cookie_token(self, validator, user):
        token = mock_token_generator.generate(user)

        result = validator.validate(make_request(headers={"Cookie": f"CF_Authorization={token}"}))

        assert result.valid is True

    def test_bearer_token(self, validator, user):
        token = mock_token_generator.generate(user)

        result = validator.validate(make_request(headers={"Authorization": f"Bearer {token}"}))

        assert result.valid is True

    def test_string_audience(self, validator, user):
        token = mock_token_generator.generate(user, audience="test-policy-aud")

        assert validator.validate(make_request(headers={"CF-Access-JWT-Assertion": token})).valid is True

    def test_wrong_audience(self, validator, user):
        token = mock_token_generator.generate(user, audience=["someone-else"])

        result = validator.validate(make_request(headers={"CF-Access-JWT-Assertion": token}))

        assert result.valid is False
        assert result.error == "Invalid token audience"

    def test_unconfigured_audience_rejects(self, user):
        validator = AccessValidator(EdgeConfig(policy_aud=""))
        token = mock_token_generator.generate(user)

        assert validator.validate(make_request(headers={"CF-Access-JWT-Assertion": token})).valid is False

    def test_expired_token(self, validator, user):
        token = mock_token_generator.generate(user, expires_in=-60)

        result = validator.validate(make_request(headers={"CF-Access-JWT-Assertion": token}))

        assert result.valid is False
        assert result.error == "Token expired"

    def test_email_header_preferred(self, validator, user):
        token = mock_token_generator.generate(user)
        request = make_request(headers={
            "CF-Access-JWT-Assertion": token,
            "CF-Access-Authenticated-User-Email": "proxy@example.com",
        })

        assert validator.validate(request).email == "proxy@example.com"

    def test_email_unknown_without_sources(self):
        assert AccessValidator.user_email(make_request(), {}) == "unknown"

    def test_authenticate_raises(self, validator):
        with pytest.raises(AuthenticationError) as exc_info:
            validator.authenticate(make_request())

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "No access token provided"
