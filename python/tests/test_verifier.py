"""Unit tests for token verifiers.

Tests the ClerkJwksVerifier (with the JWKS client mocked), principal
extraction, and the test-only MockJwtVerifier.
"""

import time
from unittest.mock import MagicMock, patch

import jwt
import pytest
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.exceptions import PyJWKClientError

from mediavault.auth.verifier import ClerkJwksVerifier, principal_from_claims
from mediavault.errors import ApiError, ApiErrorCode
from tests.helpers import mint_expired_token, mint_test_token, mint_token_with_bad_signature
from tests.support.mock_verifier import MockJwtVerifier

ISSUER = "https://clerk.example.com"


def _generate_private_key():
    return rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
        backend=default_backend(),
    )


class TestClerkJwksVerifier:
    """Unit tests for ClerkJwksVerifier.

    The JWKS client is patched; no HTTP is performed.
    """

    @pytest.fixture(scope="class")
    def private_key(self):
        return _generate_private_key()

    @pytest.fixture
    def verifier(self):
        return ClerkJwksVerifier(
            jwks_url=f"{ISSUER}/.well-known/jwks.json",
            issuer=f"{ISSUER}/",
            authorized_parties=["https://app.example.com"],
        )

    @pytest.fixture
    def signing_key(self, verifier, private_key):
        """Make the verifier resolve every kid to the test public key."""
        with patch.object(verifier, "_get_jwks_client") as mock_client:
            mock_jwk_client = MagicMock()
            mock_signing_key = MagicMock()
            mock_signing_key.key = private_key.public_key()
            mock_jwk_client.get_signing_key_from_jwt.return_value = mock_signing_key
            mock_client.return_value = mock_jwk_client
            yield mock_jwk_client

    def mint_token(self, private_key, sub="user_abc", **overrides) -> str:
        now = int(time.time())
        payload = {
            "sub": sub,
            "iss": ISSUER,
            "iat": now,
            "exp": now + 3600,
            **overrides,
        }
        private_bytes = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return jwt.encode(payload, private_bytes, algorithm="RS256", headers={"kid": "ins_1"})

    def test_valid_token(self, verifier, private_key, signing_key):
        claims = verifier.verify(self.mint_token(private_key, azp="https://app.example.com"))

        assert claims["sub"] == "user_abc"
        assert claims["iss"] == ISSUER

    def test_token_without_azp_accepted(self, verifier, private_key, signing_key):
        assert verifier.verify(self.mint_token(private_key))["sub"] == "user_abc"

    def test_invalid_signature(self, verifier, signing_key):
        token = self.mint_token(_generate_private_key())

        with pytest.raises(ApiError) as exc_info:
            verifier.verify(token)

        assert exc_info.value.message == "Invalid token signature"

    def test_expired_token(self, verifier, private_key, signing_key):
        token = self.mint_token(private_key, exp=int(time.time()) - 120)

        with pytest.raises(ApiError) as exc_info:
            verifier.verify(token)

        assert exc_info.value.code == ApiErrorCode.E_UNAUTHENTICATED
        assert exc_info.value.message == "Token expired"

    def test_clock_skew_accepted(self, verifier, private_key, signing_key):
        token = self.mint_token(private_key, exp=int(time.time()) - 30)

        assert verifier.verify(token)["sub"] == "user_abc"

    def test_wrong_issuer(self, verifier, private_key, signing_key):
        token = self.mint_token(private_key, iss="https://evil.example.com")

        with pytest.raises(ApiError) as exc_info:
            verifier.verify(token)

        assert exc_info.value.message == "Invalid token issuer"

    def test_unauthorized_party(self, verifier, private_key, signing_key):
        token = self.mint_token(private_key, azp="https://evil.example.com")

        with pytest.raises(ApiError) as exc_info:
            verifier.verify(token)

        assert exc_info.value.message == "Invalid token authorized party"

    def test_blank_sub(self, verifier, private_key, signing_key):
        token = self.mint_token(private_key, sub="  ")

        with pytest.raises(ApiError) as exc_info:
            verifier.verify(token)

        assert exc_info.value.message == "Invalid token: missing sub"

    def test_kid_miss_triggers_refresh(self, verifier, private_key, signing_key):
        found = MagicMock()
        found.key = private_key.public_key()
        signing_key.get_signing_key_from_jwt.side_effect = [
            PyJWKClientError("Unable to find a signing key that matches"),
            found,
        ]

        with patch.object(verifier, "_refresh_jwks") as refresh:
            claims = verifier.verify(self.mint_token(private_key))

        assert claims["sub"] == "user_abc"
        refresh.assert_called_once()

    def test_kid_not_found_after_refresh(self, verifier, private_key, signing_key):
        signing_key.get_signing_key_from_jwt.side_effect = PyJWKClientError(
            "Unable to find a signing key that matches"
        )

        with patch.object(verifier, "_refresh_jwks"):
            with pytest.raises(ApiError) as exc_info:
                verifier.verify(self.mint_token(private_key))

        assert exc_info.value.code == ApiErrorCode.E_UNAUTHENTICATED
        assert "signing key" in exc_info.value.message

    def test_jwks_fetch_failure(self, verifier, signing_key):
        signing_key.get_signing_key_from_jwt.side_effect = PyJWKClientError("Network error")

        with pytest.raises(ApiError) as exc_info:
            verifier.verify("some.fake.token")

        assert exc_info.value.code == ApiErrorCode.E_AUTH_UNAVAILABLE
        assert exc_info.value.status_code == 503

    def test_malformed_token(self, verifier, signing_key):
        signing_key.get_signing_key_from_jwt.side_effect = jwt.DecodeError("Not enough segments")

        with pytest.raises(ApiError) as exc_info:
            verifier.verify("garbage")

        assert exc_info.value.message == "Invalid token format"


class TestPrincipalFromClaims:
    def test_email_and_name(self):
        principal = principal_from_claims(
            {"sub": "user_1", "email": "a@example.com", "name": "Ada"}
        )

        assert (principal.external_id, principal.email, principal.name) == (
            "user_1",
            "a@example.com",
            "Ada",
        )

    def test_alternate_claim_names(self):
        principal = principal_from_claims(
            {"sub": "user_1", "primary_email_address": "b@example.com", "first_name": "Bo"}
        )

        assert principal.email == "b@example.com"
        assert principal.name == "Bo"

    def test_placeholders(self):
        principal = principal_from_claims({"sub": "user_1"})

        assert principal.email == "unknown@example.com"
        assert principal.name == "Anonymous"


class TestMockJwtVerifier:
    """The test verifier enforces the same claims as production."""

    def test_valid_token(self):
        claims = MockJwtVerifier().verify(mint_test_token("user_1"))

        assert claims["sub"] == "user_1"

    def test_expired_token(self):
        with pytest.raises(ApiError, match="Token expired"):
            MockJwtVerifier().verify(mint_expired_token("user_1"))

    def test_bad_signature(self):
        with pytest.raises(ApiError, match="Invalid token signature"):
            MockJwtVerifier().verify(mint_token_with_bad_signature("user_1"))

    def test_wrong_issuer(self):
        with pytest.raises(ApiError, match="Invalid token issuer"):
            MockJwtVerifier().verify(mint_test_token("user_1", issuer="other"))
