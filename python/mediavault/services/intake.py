"""Media intake pipeline.

Handles video and image uploads end to end:
validate -> (preprocess) -> provider upload -> persist record -> summarize.

Key invariants:
- Validation happens before any bytes are read or sent
- Exactly one provider upload per request; failures are not retried
- The asset row is written only after the provider returned a result
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import BinaryIO
from uuid import UUID

from sqlalchemy.orm import Session

from mediavault.config import Settings
from mediavault.db.models import AssetKind
from mediavault.errors import ApiErrorCode, InvalidRequestError, NotFoundError, UploadFailedError
from mediavault.logging import get_logger
from mediavault.media.client import MediaClientBase, MediaProviderError
from mediavault.media.compression import (
    compression_flag,
    select_compression_policy,
    size_reduction_percent,
)
from mediavault.media.images import (
    applied_transformations,
    build_image_public_id,
    preprocess_image,
)
from mediavault.schemas.assets import (
    AssetMetadata,
    ImageMetadataOut,
    ImageUploadOut,
    ProcessingSummary,
    ProviderMetadata,
    VideoProcessingOptions,
    VideoUploadOut,
)
from mediavault.services import assets as asset_service
from mediavault.services.validation import (
    parse_image_options,
    parse_video_options,
    require_file,
    validate_image,
    validate_video,
)

logger = get_logger(__name__)


@dataclass
class IncomingFile:
    """An uploaded file as received by the route (bytes not yet read)."""

    stream: BinaryIO
    filename: str
    content_type: str | None
    size_bytes: int

    def read(self) -> bytes:
        self.stream.seek(0)
        return self.stream.read()


@dataclass
class VideoUploadForm:
    """Raw multipart fields of a video upload."""

    file: IncomingFile | None
    title: str | None = None
    description: str | None = None
    original_size: str | None = None
    enable_enhancement: str | None = None
    quality: str | None = None
    generate_thumbnail: str | None = None
    analyze_content: str | None = None


def _effective_original_size(raw: str | None, file_size: int) -> int:
    """Client-declared pre-compression size when it is a non-negative integer, else file size."""
    if raw is None:
        return file_size
    try:
        value = int(float(raw.strip()))
    except (ValueError, OverflowError):
        return file_size
    return value if value >= 0 else file_size


def derive_video_metadata(options: VideoProcessingOptions) -> ProviderMetadata:
    """Provider metadata implied by the requested options.

    Content analysis is not performed, so tags stay empty.
    """
    return ProviderMetadata(
        quality=options.quality,
        has_enhancement=options.enable_enhancement,
        has_thumbnail=options.generate_thumbnail,
        has_content_analysis=options.analyze_content,
        tags=[],
    )


def ingest_video(
    db: Session,
    media_client: MediaClientBase,
    settings: Settings,
    *,
    viewer_id: UUID,
    form: VideoUploadForm,
) -> dict:
    """Validate, upload and record a video.

    Returns:
        Dict with the persisted video and a processing summary.

    Raises:
        InvalidRequestError: On a missing file, bad type, blank title, oversize or bad quality.
        UploadFailedError: If the provider rejects the upload.
    """
    require_file(form.file is not None)
    incoming = form.file
    title = validate_video(
        incoming.content_type,
        incoming.size_bytes,
        form.title,
        max_bytes=settings.max_video_bytes,
    )
    options = parse_video_options(
        form.enable_enhancement,
        form.quality,
        form.generate_thumbnail,
        form.analyze_content,
    )

    original_size = _effective_original_size(form.original_size, incoming.size_bytes)
    provider_metadata = derive_video_metadata(options)
    policy = select_compression_policy(incoming.size_bytes)

    data = incoming.read()
    try:
        result = media_client.upload_video(
            data,
            filename=incoming.filename,
            content_type=incoming.content_type,
            folder=settings.video_upload_folder,
            policy=policy,
        )
    except MediaProviderError as e:
        logger.error("video_upload_failed", error=e.message, size_bytes=incoming.size_bytes)
        raise UploadFailedError(e.message) from e

    compression_applied = compression_flag(incoming.size_bytes)
    metadata = AssetMetadata(
        processing_options=options,
        provider_metadata=provider_metadata,
        transformations=result.transformations,
        compression_applied=compression_applied,
    )

    asset = asset_service.create_asset(
        db,
        user_id=viewer_id,
        kind=AssetKind.video,
        title=title,
        description=(form.description or "").strip(),
        public_id=result.public_id,
        original_size=original_size,
        compressed_size=result.bytes,
        duration=result.duration or 0.0,
        metadata=metadata,
    )

    size_reduction = size_reduction_percent(original_size, result.bytes)
    logger.info(
        "video_uploaded",
        asset_id=str(asset.id),
        tier=policy.tier.value,
        original_size=original_size,
        compressed_size=result.bytes,
        size_reduction=size_reduction,
    )

    return VideoUploadOut(
        video=asset_service.asset_to_out(asset, media_client.urls),
        processing=ProcessingSummary(
            ai_enhanced=options.enable_enhancement,
            quality=options.quality,
            thumbnail_generated=options.generate_thumbnail,
            content_analyzed=options.analyze_content,
            compression_applied=compression_applied,
            size_reduction=size_reduction,
        ),
    ).model_dump(mode="json")


def ingest_image(
    db: Session,
    media_client: MediaClientBase,
    settings: Settings,
    *,
    viewer_id: UUID,
    external_id: str,
    file: IncomingFile | None,
    raw_options: str | None = None,
) -> dict:
    """Validate, preprocess, upload and record an image.

    Raises:
        InvalidRequestError: On a missing file, oversize, bad type or bad options.
        UploadFailedError: If the provider rejects the upload.
    """
    require_file(file is not None)
    validate_image(
        file.filename,
        file.content_type,
        file.size_bytes,
        max_bytes=settings.max_image_bytes,
    )
    options = parse_image_options(raw_options)

    processed = preprocess_image(file.read(), file.content_type, options)
    public_id = build_image_public_id(external_id)
    context = {
        "userId": external_id,
        "originalName": file.filename,
        "uploadDate": datetime.now(UTC).isoformat(),
    }

    try:
        result = media_client.upload_image(
            processed.data,
            filename=file.filename,
            content_type=processed.content_type,
            folder=settings.image_upload_folder,
            public_id=public_id,
            context=context,
        )
    except MediaProviderError as e:
        logger.error("image_upload_failed", error=e.message, size_bytes=file.size_bytes)
        raise UploadFailedError(e.message) from e

    urls = media_client.urls.image_urls(result.public_id)
    labels = applied_transformations(options)

    asset = asset_service.create_asset(
        db,
        user_id=viewer_id,
        kind=AssetKind.image,
        title=file.filename,
        public_id=result.public_id,
        original_size=file.size_bytes,
        compressed_size=result.bytes or len(processed.data),
        metadata=AssetMetadata(
            processing_options=options,
            transformations=result.transformations,
            compression_applied=processed.reencoded,
        ),
    )

    logger.info(
        "image_uploaded",
        asset_id=str(asset.id),
        public_id=result.public_id,
        original_size=file.size_bytes,
        processed_size=len(processed.data),
    )

    return ImageUploadOut(
        id=asset.id,
        public_id=result.public_id,
        secure_url=result.secure_url,
        optimized_url=urls["optimized"],
        thumbnail_url=urls["thumbnail"],
        responsive_urls=urls["responsive"],
        metadata=ImageMetadataOut(
            width=result.width or processed.width,
            height=result.height or processed.height,
            format=result.format or processed.format,
            size=result.bytes or file.size_bytes,
            processed_size=len(processed.data),
        ),
        transformations=labels,
    ).model_dump(mode="json")


def get_image_details(
    db: Session,
    media_client: MediaClientBase,
    *,
    viewer_id: UUID,
    public_id: str | None,
) -> dict:
    """Provider metadata and URL set for one of the viewer's images.

    Raises:
        InvalidRequestError: If public_id is missing.
        NotFoundError: If the viewer owns no such image, or the provider lookup fails.
    """
    if not public_id:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "Public ID required")

    asset_service.get_asset_by_public_id_for_viewer(db, viewer_id, public_id)

    try:
        resource = media_client.get_image_resource(public_id)
    except MediaProviderError as e:
        logger.warning("image_metadata_unavailable", public_id=public_id, error=e.message)
        raise NotFoundError(
            ApiErrorCode.E_MEDIA_METADATA_UNAVAILABLE, "Failed to fetch image metadata"
        ) from e

    context = resource.get("context") or {}
    return {
        "public_id": resource.get("public_id", public_id),
        "urls": media_client.urls.image_urls(public_id),
        "metadata": {
            "width": resource.get("width"),
            "height": resource.get("height"),
            "format": resource.get("format"),
            "size": resource.get("bytes"),
            "colors": resource.get("colors") or [],
            "uploaded_at": resource.get("created_at"),
        },
        "context": context.get("custom", context),
    }
