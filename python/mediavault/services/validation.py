"""Upload request validation.

All checks run before any bytes are sent to the media provider; a rejected
upload leaves no trace in the database or at the provider.
"""

import json

from pydantic import ValidationError

from mediavault.errors import ApiErrorCode, InvalidRequestError
from mediavault.schemas.assets import ImageProcessingOptions, VideoProcessingOptions

MIB = 1024 * 1024

DEFAULT_MAX_IMAGE_BYTES = 50 * MIB
DEFAULT_MAX_VIDEO_BYTES = 500 * MIB

ALLOWED_IMAGE_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/svg+xml",
    "image/tiff",
)

VIDEO_CONTENT_TYPE_PREFIX = "video/"

# Advertised to clients; not enforced on decode
MAX_IMAGE_DIMENSIONS = (8000, 8000)


def _format_limit(limit_bytes: int) -> str:
    if limit_bytes % MIB == 0:
        return f"{limit_bytes // MIB}MB"
    return f"{limit_bytes} bytes"


def require_file(present: bool) -> None:
    if not present:
        raise InvalidRequestError(ApiErrorCode.E_FILE_REQUIRED, "File not found")


def validate_image(
    filename: str | None,
    content_type: str | None,
    size_bytes: int,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> None:
    """Validate an image upload by size and MIME type.

    A file of exactly max_bytes is accepted.

    Raises:
        InvalidRequestError: E_FILE_TOO_LARGE or E_INVALID_FILE_TYPE.
    """
    if size_bytes > max_bytes:
        raise InvalidRequestError(
            ApiErrorCode.E_FILE_TOO_LARGE,
            f"File size exceeds {_format_limit(max_bytes)} limit",
        )

    if content_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_FILE_TYPE,
            f"Unsupported file type: {content_type or 'unknown'}",
        )


def validate_video(
    content_type: str | None,
    size_bytes: int,
    title: str | None,
    max_bytes: int = DEFAULT_MAX_VIDEO_BYTES,
) -> str:
    """Validate a video upload; checks run in order type, title, size.

    Returns:
        The trimmed title.

    Raises:
        InvalidRequestError: E_INVALID_FILE_TYPE, E_TITLE_REQUIRED or E_FILE_TOO_LARGE.
    """
    if not content_type or not content_type.startswith(VIDEO_CONTENT_TYPE_PREFIX):
        raise InvalidRequestError(ApiErrorCode.E_INVALID_FILE_TYPE, "File must be a video")

    trimmed = (title or "").strip()
    if not trimmed:
        raise InvalidRequestError(ApiErrorCode.E_TITLE_REQUIRED, "Title is required")

    if size_bytes > max_bytes:
        raise InvalidRequestError(ApiErrorCode.E_FILE_TOO_LARGE, "File too large")

    return trimmed


def _form_flag(value: str | None) -> bool:
    return value == "true"


def parse_video_options(
    enable_enhancement: str | None,
    quality: str | None,
    generate_thumbnail: str | None,
    analyze_content: str | None,
) -> VideoProcessingOptions:
    """Build video options from multipart form strings.

    Boolean flags are true only for the literal string ``"true"``.

    Raises:
        InvalidRequestError: If quality is not one of auto, high, medium, low.
    """
    try:
        return VideoProcessingOptions(
            enable_enhancement=_form_flag(enable_enhancement),
            quality=quality or "auto",
            generate_thumbnail=_form_flag(generate_thumbnail),
            analyze_content=_form_flag(analyze_content),
        )
    except ValidationError as e:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST,
            f"Invalid quality: {quality}. Expected one of auto, high, medium, low",
        ) from e


def parse_image_options(raw: str | None) -> ImageProcessingOptions:
    """Parse the optional JSON ``options`` form field.

    Raises:
        InvalidRequestError: If the field is not a JSON object of valid options.
    """
    if raw is None or not raw.strip():
        return ImageProcessingOptions()

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "Malformed options JSON") from e

    if not isinstance(payload, dict):
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "Options must be a JSON object")

    try:
        return ImageProcessingOptions.model_validate(payload)
    except ValidationError as e:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "Invalid image options") from e
