"""Test helpers for authentication and common test operations.

Provides:
- Token minting for test authentication
- Header generation for test requests
- Settings and multipart payload builders
"""

import time
from uuid import uuid4

import jwt

from mediavault.config import Settings
from tests.support.mock_verifier import MockJwtVerifier

# Default test token settings
DEFAULT_ISSUER = "test-issuer"
DEFAULT_EXPIRES_IN = 3600  # 1 hour
DEFAULT_EMAIL = "viewer@example.com"
DEFAULT_NAME = "Test Viewer"

MIB = 1024 * 1024


def make_test_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides (env-style keys)."""
    defaults = {
        "DATABASE_URL": "sqlite+pysqlite://",
        "MEDIAVAULT_ENV": "test",
        "CLOUDINARY_CLOUD_NAME": "demo",
        "CLOUDINARY_API_KEY": "test-key",
        "CLOUDINARY_API_SECRET": "test-secret",
        "CLERK_JWKS_URL": "https://clerk.test/.well-known/jwks.json",
        "CLERK_ISSUER": DEFAULT_ISSUER,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def mint_test_token(
    external_id: str,
    expires_in: int = DEFAULT_EXPIRES_IN,
    issuer: str = DEFAULT_ISSUER,
    **extra_claims,
) -> str:
    """Mint a valid test JWT token.

    Args:
        external_id: The Clerk-style user id to set as the `sub` claim.
        expires_in: Token validity in seconds from now.
        issuer: The `iss` claim value.
        **extra_claims: Additional claims (email, name, azp, ...).
    """
    now = int(time.time())
    payload = {
        "sub": external_id,
        "iss": issuer,
        "iat": now,
        "exp": now + expires_in,
        **extra_claims,
    }
    return jwt.encode(payload, MockJwtVerifier.get_private_key(), algorithm="RS256")


def mint_expired_token(external_id: str, issuer: str = DEFAULT_ISSUER) -> str:
    """Mint a token that expired 1 hour ago."""
    return mint_test_token(external_id, expires_in=-3600, issuer=issuer)


def mint_token_with_bad_signature(external_id: str, issuer: str = DEFAULT_ISSUER) -> str:
    """Mint a token signed with a different key (bad signature)."""
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
        backend=default_backend(),
    )
    private_key_bytes = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )

    now = int(time.time())
    payload = {
        "sub": external_id,
        "iss": issuer,
        "iat": now,
        "exp": now + DEFAULT_EXPIRES_IN,
    }
    return jwt.encode(payload, private_key_bytes, algorithm="RS256")


def auth_headers(
    external_id: str,
    email: str | None = DEFAULT_EMAIL,
    name: str | None = DEFAULT_NAME,
    **token_kwargs,
) -> dict[str, str]:
    """Return headers dict with valid Authorization for the given principal."""
    claims = {}
    if email is not None:
        claims["email"] = email
    if name is not None:
        claims["name"] = name
    token = mint_test_token(external_id, **claims, **token_kwargs)
    return {"Authorization": f"Bearer {token}"}


def create_test_external_id() -> str:
    """Generate a random Clerk-style user id."""
    return f"user_{uuid4().hex[:24]}"


def video_form(
    title: str | None = "Demo",
    size_bytes: int = 3 * MIB,
    content_type: str = "video/mp4",
    filename: str = "demo.mp4",
    **fields: str,
) -> dict:
    """Multipart kwargs (files + data) for POST /api/video-upload."""
    data = {k: v for k, v in {"title": title, **fields}.items() if v is not None}
    return {
        "files": {"file": (filename, b"\0" * size_bytes, content_type)},
        "data": data,
    }
