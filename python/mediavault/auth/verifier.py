"""Token verification implementations.

Provides:
- TokenVerifier: Protocol for token verification
- ClerkJwksVerifier: Verifier for Clerk session tokens via the instance JWKS
- Principal / principal_from_claims: profile data carried by a verified token

Note: Test-only verifiers are in tests/support/mock_verifier.py
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Protocol

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    ImmatureSignatureError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    PyJWKClientError,
)

from mediavault.errors import ApiError, ApiErrorCode

logger = logging.getLogger(__name__)

# Clock skew allowance in seconds
CLOCK_SKEW_SECONDS = 60

DEFAULT_EMAIL = "unknown@example.com"
DEFAULT_NAME = "Anonymous"


class TokenVerifier(Protocol):
    """Protocol for token verification.

    Implementations must verify JWT tokens and return decoded claims.
    """

    def verify(self, token: str) -> dict[str, Any]:
        """Verify token and return decoded claims.

        Raises:
            ApiError(E_UNAUTHENTICATED): Token is invalid, expired, or malformed.
            ApiError(E_AUTH_UNAVAILABLE): Infrastructure failure (JWKS unreachable).
        """
        ...


@dataclass(frozen=True)
class Principal:
    """Identity asserted by a verified session token."""

    external_id: str
    email: str
    name: str


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    """Extract the principal from verified claims.

    Session tokens only carry profile fields when the instance's session
    template adds them; absent fields fall back to placeholders.
    """
    email = claims.get("email") or claims.get("primary_email_address")
    name = claims.get("name")
    if not name:
        parts = [claims.get("first_name"), claims.get("last_name")]
        name = " ".join(p for p in parts if p).strip()

    return Principal(
        external_id=claims["sub"],
        email=email or DEFAULT_EMAIL,
        name=name or DEFAULT_NAME,
    )


class ClerkJwksVerifier:
    """Production token verifier for Clerk session tokens.

    Validates:
    - Signature via JWKS (RS256)
    - exp/nbf with +/-60s clock skew
    - iss matches the instance's frontend API
    - azp, when present, is in the authorized party list (if configured)
    - sub is a non-empty string
    """

    def __init__(
        self,
        jwks_url: str,
        issuer: str,
        authorized_parties: list[str] | None = None,
        cache_ttl: int = 3600,
    ):
        """Initialize the Clerk JWKS verifier.

        Args:
            jwks_url: Full URL to the JWKS endpoint.
            issuer: Expected issuer (trailing slash will be stripped).
            authorized_parties: Allowed azp origins; empty disables the check.
            cache_ttl: How long to cache JWKS keys in seconds.
        """
        self.jwks_url = jwks_url
        self.issuer = issuer.rstrip("/")
        self.authorized_parties = authorized_parties or []
        self.cache_ttl = cache_ttl

        self._jwks_client: PyJWKClient | None = None
        self._jwks_lock = threading.Lock()

    def _get_jwks_client(self) -> PyJWKClient:
        """Get or create the JWKS client with lazy initialization."""
        with self._jwks_lock:
            if self._jwks_client is None:
                self._jwks_client = PyJWKClient(
                    self.jwks_url,
                    cache_keys=True,
                    lifespan=self.cache_ttl,
                )
            return self._jwks_client

    def _refresh_jwks(self) -> None:
        """Drop cached keys so the next lookup refetches (called on kid miss)."""
        with self._jwks_lock:
            self._jwks_client = PyJWKClient(
                self.jwks_url,
                cache_keys=True,
                lifespan=self.cache_ttl,
            )

    def verify(self, token: str) -> dict[str, Any]:
        """Verify a Clerk session token.

        Raises:
            ApiError(E_UNAUTHENTICATED): Token is invalid.
            ApiError(E_AUTH_UNAVAILABLE): JWKS fetch failed.
        """
        try:
            signing_key = self._get_signing_key(token)
        except PyJWKClientError as e:
            logger.warning("auth_failure", extra={"reason": "jwks_unavailable", "error": str(e)})
            raise ApiError(
                ApiErrorCode.E_AUTH_UNAVAILABLE,
                "Authentication service unavailable",
            ) from e

        try:
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                issuer=self.issuer,
                leeway=CLOCK_SKEW_SECONDS,
                options={
                    "require": ["exp", "iss", "sub"],
                    "verify_aud": False,
                },
            )
        except ExpiredSignatureError as e:
            logger.warning("auth_failure", extra={"reason": "expired_token"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Token expired") from e
        except ImmatureSignatureError as e:
            logger.warning("auth_failure", extra={"reason": "token_not_yet_valid"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Token not yet valid") from e
        except InvalidSignatureError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_signature"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token signature") from e
        except InvalidIssuerError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_issuer"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token issuer") from e
        except DecodeError as e:
            logger.warning("auth_failure", extra={"reason": "decode_error", "error": str(e)})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token format") from e
        except InvalidTokenError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_token", "error": str(e)})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token") from e

        azp = payload.get("azp")
        if self.authorized_parties and azp and azp not in self.authorized_parties:
            logger.warning("auth_failure", extra={"reason": "invalid_azp", "azp": azp})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token authorized party")

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub.strip():
            logger.warning("auth_failure", extra={"reason": "missing_sub"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token: missing sub")

        return payload

    def _get_signing_key(self, token: str) -> Any:
        """Get the signing key for the token, with one refresh on kid miss.

        Raises:
            PyJWKClientError: If JWKS fetch fails.
            ApiError(E_UNAUTHENTICATED): If kid not found after refresh, or token is malformed.
        """
        client = self._get_jwks_client()

        try:
            return client.get_signing_key_from_jwt(token)
        except DecodeError as e:
            logger.warning("auth_failure", extra={"reason": "decode_error", "error": str(e)})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token format") from e
        except PyJWKClientError as e:
            if "Unable to find" in str(e) or "kid" in str(e).lower():
                logger.info("Refreshing JWKS due to kid miss")
                self._refresh_jwks()
                client = self._get_jwks_client()

                try:
                    return client.get_signing_key_from_jwt(token)
                except PyJWKClientError as retry_e:
                    logger.warning("auth_failure", extra={"reason": "kid_not_found"})
                    raise ApiError(
                        ApiErrorCode.E_UNAUTHENTICATED,
                        "Invalid token: signing key not found",
                    ) from retry_e
            raise
