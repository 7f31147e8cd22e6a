"""
Authentication helpers for the edge router.
"""

from .access import AccessValidator, AuthResult

__all__ = [
    "AccessValidator",
    "AuthResult",
]
