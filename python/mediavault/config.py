"""Application settings loaded from environment variables.

Environment Configuration:
    MEDIAVAULT_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: Database connection string (required)

Media Provider Configuration (required in all environments):
    CLOUDINARY_CLOUD_NAME: Cloud name used in upload and delivery URLs
    CLOUDINARY_API_KEY: API key sent with signed upload requests
    CLOUDINARY_API_SECRET: API secret used to sign requests (never sent)
    CLOUDINARY_API_BASE_URL: Upload/admin API base (default https://api.cloudinary.com/v1_1)
    CLOUDINARY_DELIVERY_BASE_URL: Delivery base (default https://res.cloudinary.com)

Auth Configuration:
    CLERK_PUBLISHABLE_KEY: Clerk publishable key; issuer and JWKS URL derive from it
    CLERK_JWKS_URL / CLERK_ISSUER: Explicit overrides (both required if no publishable key)
    CLERK_AUTHORIZED_PARTIES: Comma-separated allow-list for the azp claim (optional)

Upload Limits:
    MAX_IMAGE_BYTES: Server-side image limit (default 50 MiB)
    MAX_VIDEO_BYTES: Server-side video limit (default 500 MiB)
    CLIENT_MAX_VIDEO_BYTES: Advisory client pre-check limit (default 60 MiB)
    UPLOAD_CHUNK_BYTES: Chunk size for large uploads (default 5,000,000)
    MEDIA_UPLOAD_TIMEOUT_S: Provider request timeout in seconds (default 300)
"""

import base64
import binascii
from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

MIB = 1024 * 1024


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


def decode_publishable_key(publishable_key: str) -> str:
    """Return the Clerk frontend API host encoded in a publishable key.

    Keys look like ``pk_test_<base64(host + "$")>``.

    Raises:
        ValueError: If the key is not a well-formed Clerk publishable key.
    """
    parts = publishable_key.strip().split("_", 2)
    if len(parts) != 3 or parts[0] != "pk" or parts[1] not in ("test", "live"):
        raise ValueError("CLERK_PUBLISHABLE_KEY must start with pk_test_ or pk_live_")

    encoded = parts[2]
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError("CLERK_PUBLISHABLE_KEY is not valid base64") from e

    if not decoded.endswith("$") or len(decoded) < 2:
        raise ValueError("CLERK_PUBLISHABLE_KEY does not encode a frontend API host")
    return decoded[:-1]


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - DATABASE_URL is always required
    - All three CLOUDINARY_* credentials are required; every missing name is reported
    - Either CLERK_PUBLISHABLE_KEY or both CLERK_JWKS_URL and CLERK_ISSUER must be set
    """

    mediavault_env: Environment = Field(default=Environment.LOCAL, alias="MEDIAVAULT_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]

    # Cloudinary credentials
    cloudinary_cloud_name: str | None = Field(default=None, alias="CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: str | None = Field(default=None, alias="CLOUDINARY_API_KEY")
    cloudinary_api_secret: str | None = Field(default=None, alias="CLOUDINARY_API_SECRET")
    cloudinary_api_base_url: str = Field(
        default="https://api.cloudinary.com/v1_1", alias="CLOUDINARY_API_BASE_URL"
    )
    cloudinary_delivery_base_url: str = Field(
        default="https://res.cloudinary.com", alias="CLOUDINARY_DELIVERY_BASE_URL"
    )

    # Clerk auth settings
    clerk_publishable_key: str | None = Field(default=None, alias="CLERK_PUBLISHABLE_KEY")
    clerk_jwks_url: str | None = Field(default=None, alias="CLERK_JWKS_URL")
    clerk_issuer: str | None = Field(default=None, alias="CLERK_ISSUER")
    clerk_authorized_parties: str | None = Field(default=None, alias="CLERK_AUTHORIZED_PARTIES")

    # Upload limits
    max_image_bytes: int = Field(default=50 * MIB, alias="MAX_IMAGE_BYTES")
    max_video_bytes: int = Field(default=500 * MIB, alias="MAX_VIDEO_BYTES")
    client_max_video_bytes: int = Field(default=60 * MIB, alias="CLIENT_MAX_VIDEO_BYTES")
    upload_chunk_bytes: int = Field(default=5_000_000, alias="UPLOAD_CHUNK_BYTES", gt=0)
    media_upload_timeout_s: int = Field(default=300, alias="MEDIA_UPLOAD_TIMEOUT_S", gt=0)

    # Provider folders
    video_upload_folder: str = Field(default="video-uploads", alias="VIDEO_UPLOAD_FOLDER")
    image_upload_folder: str = Field(default="professional-uploads", alias="IMAGE_UPLOAD_FOLDER")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Fail fast on missing provider credentials or auth configuration."""
        missing_media = []
        if not self.cloudinary_cloud_name:
            missing_media.append("CLOUDINARY_CLOUD_NAME")
        if not self.cloudinary_api_key:
            missing_media.append("CLOUDINARY_API_KEY")
        if not self.cloudinary_api_secret:
            missing_media.append("CLOUDINARY_API_SECRET")

        if missing_media:
            raise ValueError(
                f"Missing required Cloudinary settings: {', '.join(missing_media)}. "
                "Copy .env.example to .env and fill in your Cloudinary credentials."
            )

        if self.clerk_publishable_key:
            decode_publishable_key(self.clerk_publishable_key)
        elif not (self.clerk_jwks_url and self.clerk_issuer):
            raise ValueError(
                "Missing Clerk auth settings: set CLERK_PUBLISHABLE_KEY, "
                "or both CLERK_JWKS_URL and CLERK_ISSUER."
            )

        return self

    @property
    def clerk_frontend_api(self) -> str | None:
        """Frontend API host decoded from the publishable key."""
        if self.clerk_publishable_key:
            return decode_publishable_key(self.clerk_publishable_key)
        return None

    @property
    def effective_clerk_issuer(self) -> str:
        """Issuer expected in session tokens, trailing slash stripped."""
        if self.clerk_issuer:
            return self.clerk_issuer.rstrip("/")
        return f"https://{self.clerk_frontend_api}"

    @property
    def effective_clerk_jwks_url(self) -> str:
        """JWKS endpoint, derived from the issuer when not set explicitly."""
        if self.clerk_jwks_url:
            return self.clerk_jwks_url
        return f"{self.effective_clerk_issuer}/.well-known/jwks.json"

    @property
    def authorized_party_list(self) -> list[str]:
        """Parse comma-separated authorized parties into a list."""
        if self.clerk_authorized_parties:
            return [p.strip() for p in self.clerk_authorized_parties.split(",") if p.strip()]
        return []


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
