"""Authentication module.

This module provides:
- Token verification (Clerk JWKS verifier)
- Auth middleware for FastAPI
- Request state with viewer identity

Note: Test-only verifiers are in tests/support/mock_verifier.py
"""

from mediavault.auth.middleware import AuthMiddleware, Viewer, get_viewer
from mediavault.auth.verifier import ClerkJwksVerifier, Principal, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "ClerkJwksVerifier",
    "Principal",
    "TokenVerifier",
    "Viewer",
    "get_viewer",
]
