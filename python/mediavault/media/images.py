"""Image preprocessing before upload.

Pipeline (when optimization is enabled):
1. Decode header and read source dimensions
2. Apply EXIF orientation (always, even without resizing)
3. Shrink into max_width x max_height preserving aspect ratio; never enlarge
4. Re-encode as progressive JPEG at the requested quality

SVG input is passed through untouched; the provider rasterizes it.
"""

import io
import secrets
import time
import warnings
from dataclasses import dataclass

from PIL import Image, ImageOps

from mediavault.errors import ApiErrorCode, InvalidRequestError
from mediavault.logging import get_logger
from mediavault.schemas.assets import ImageProcessingOptions

logger = get_logger(__name__)

# Pixel ceiling for decoding; larger inputs are rejected as decompression bombs
MAX_DECODE_PIXELS = 16384 * 16384

PASSTHROUGH_CONTENT_TYPES = frozenset({"image/svg+xml"})


@dataclass(frozen=True)
class PreprocessedImage:
    """Bytes to upload plus what was learned while decoding."""

    data: bytes
    content_type: str
    width: int | None
    height: int | None
    format: str | None
    resized: bool = False
    reencoded: bool = False


def preprocess_image(
    data: bytes, content_type: str, options: ImageProcessingOptions
) -> PreprocessedImage:
    """Prepare an image for upload.

    With optimization disabled, or for pass-through types, the input bytes are
    returned unchanged.

    Raises:
        InvalidRequestError: If the bytes cannot be decoded as an image.
    """
    if content_type in PASSTHROUGH_CONTENT_TYPES:
        return PreprocessedImage(
            data=data, content_type=content_type, width=None, height=None, format="svg"
        )

    Image.MAX_IMAGE_PIXELS = MAX_DECODE_PIXELS
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            image = Image.open(io.BytesIO(data))
            source_format = (image.format or "").lower() or None
            width, height = image.size

            if not options.enable_optimization:
                return PreprocessedImage(
                    data=data,
                    content_type=content_type,
                    width=width,
                    height=height,
                    format=source_format,
                )

            image = ImageOps.exif_transpose(image)
    except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
        raise InvalidRequestError(
            ApiErrorCode.E_FILE_TOO_LARGE, "Image exceeds dimension limits"
        ) from e
    except OSError as e:
        logger.warning("image_decode_failed", error=str(e))
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_FILE_TYPE, "File is not a valid image"
        ) from e

    resized = False
    if image.width > options.max_width or image.height > options.max_height:
        image.thumbnail((options.max_width, options.max_height), Image.Resampling.LANCZOS)
        resized = True

    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    buffer = io.BytesIO()
    image.save(
        buffer,
        format="JPEG",
        quality=options.quality,
        progressive=True,
        optimize=True,
    )

    logger.debug(
        "image_preprocessed",
        source_width=width,
        source_height=height,
        output_width=image.width,
        output_height=image.height,
        resized=resized,
    )

    return PreprocessedImage(
        data=buffer.getvalue(),
        content_type="image/jpeg",
        width=width,
        height=height,
        format=source_format,
        resized=resized,
        reencoded=True,
    )


def build_image_public_id(external_id: str, now_ms: int | None = None) -> str:
    """Unique provider id for a user's image: ``users/{id}/{id}_{ms}_{hex16}``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"users/{external_id}/{external_id}_{now_ms}_{secrets.token_hex(8)}"


def applied_transformations(options: ImageProcessingOptions) -> list[str]:
    """Human-readable list of what the pipeline and provider apply."""
    labels = [
        "Auto-quality optimization",
        "Progressive loading",
        "Format auto-detection",
        "Responsive sizing",
    ]
    if options.enable_optimization:
        labels.extend(["Smart compression", "EXIF rotation"])
    return labels
