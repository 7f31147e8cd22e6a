"""
Access-layer authentication for the edge router.

The vendor's access proxy sits in front of the router and verifies token
signatures there. This module only decodes the forwarded assertion and checks
its audience and expiry claims.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from jose import JWTError, jwt

from shared.errors import AuthenticationError
from shared.logging import get_logger
from ..config import EdgeConfig

ASSERTION_HEADER = "CF-Access-JWT-Assertion"
ASSERTION_COOKIE = "CF_Authorization"
EMAIL_HEADER = "CF-Access-Authenticated-User-Email"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of validating one request."""

    valid: bool
    email: Optional[str] = None
    error: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)


class AccessValidator:
    """Validates access-layer assertions against the configured policy audience."""

    def __init__(self, config: EdgeConfig, clock: Callable[[], float] = time.time) -> None:
        self.config = config
        self.clock = clock
        self.logger = get_logger("edge.auth")

    def is_local_dev(self, request: Request) -> bool:
        """Local hosts and preview deployments skip the access layer."""
        hostname = (request.url.hostname or "").lower()
        if hostname in {host.lower() for host in self.config.local_hostnames}:
            return True
        suffix = self.config.preview_suffix
        return bool(suffix) and hostname.endswith(suffix.lower())

    @staticmethod
    def extract_token(request: Request) -> Optional[str]:
        token = request.headers.get(ASSERTION_HEADER)
        if token:
            return token.strip()
        token = request.cookies.get(ASSERTION_COOKIE)
        if token:
            return token.strip()
        authorization = request.headers.get("Authorization", "")
        if authorization.startswith("Bearer "):
            return authorization[7:].strip() or None
        return None

    def validate(self, request: Request) -> AuthResult:
        """Check the request's assertion; never raises."""
        if self.is_local_dev(request):
            return AuthResult(valid=True, email=request.headers.get(EMAIL_HEADER))

        token = self.extract_token(request)
        if not token:
            return AuthResult(valid=False, error="No access token provided")

        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return AuthResult(valid=False, error="Invalid token format")

        audience = claims.get("aud")
        audiences = [audience] if isinstance(audience, str) else list(audience or [])
        if not self.config.policy_aud or self.config.policy_aud not in audiences:
            return AuthResult(valid=False, error="Invalid token audience")

        expires = claims.get("exp")
        if isinstance(expires, (int, float)) and expires < self.clock():
            return AuthResult(valid=False, error="Token expired")

        return AuthResult(valid=True, email=self.user_email(request, claims), claims=claims)

    def authenticate(self, request: Request) -> AuthResult:
        """Validate or raise ``AuthenticationError`` (rendered as 401 by the router)."""
        result = self.validate(request)
        if not result.valid:
            self.logger.warning("Access validation failed", path=request.url.path, error=result.error)
            raise AuthenticationError(result.error or "Authentication failed")
        return result

    @staticmethod
    def user_email(request: Request, claims: Optional[Dict[str, Any]] = None) -> str:
        email = request.headers.get(EMAIL_HEADER)
        if email:
            return email
        if claims and isinstance(claims.get("email"), str):
            return claims["email"]
        return "unknown"
