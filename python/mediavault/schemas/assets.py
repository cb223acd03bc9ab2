"""Asset Pydantic schemas.

Contains the processing options accepted by the upload endpoints, the
versioned metadata document stored on each asset, and response models.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

METADATA_VERSION = 1

VideoQuality = Literal["auto", "high", "medium", "low"]


class VideoProcessingOptions(BaseModel):
    """Options the client requests for a video upload."""

    enable_enhancement: bool = False
    quality: VideoQuality = "auto"
    generate_thumbnail: bool = False
    analyze_content: bool = False

    model_config = ConfigDict(extra="forbid")


class ImageProcessingOptions(BaseModel):
    """Options for image preprocessing.

    Accepts camelCase keys from the client (``maxWidth``) as well as
    snake_case.
    """

    quality: int = Field(default=85, ge=1, le=100)
    format: Literal["auto", "webp", "jpg", "jpeg", "png"] = "auto"
    max_width: int = Field(default=2048, gt=0, alias="maxWidth")
    max_height: int = Field(default=2048, gt=0, alias="maxHeight")
    enable_optimization: bool = Field(default=True, alias="enableOptimization")
    generate_thumbnail: bool = Field(default=True, alias="generateThumbnail")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProviderMetadata(BaseModel):
    """What the provider did (or was asked to do) with an upload."""

    quality: str
    has_enhancement: bool = False
    has_thumbnail: bool = False
    has_content_analysis: bool = False
    tags: list[str] = Field(default_factory=list)
    moderation: list[dict[str, Any]] | None = None
    faces: list[list[int]] | None = None


class AssetMetadata(BaseModel):
    """Versioned metadata document stored in ``assets.metadata``."""

    version: Literal[1] = METADATA_VERSION
    processing_options: VideoProcessingOptions | ImageProcessingOptions | None = None
    provider_metadata: ProviderMetadata | None = None
    transformations: list[dict[str, Any]] = Field(default_factory=list)
    compression_applied: bool = False


class VideoUrls(BaseModel):
    thumbnail: str
    preview: str
    playback: str
    download: str


class AssetOut(BaseModel):
    """Response schema for a persisted asset."""

    id: UUID
    kind: str
    title: str
    description: str | None
    public_id: str
    original_size: int
    compressed_size: int
    duration: float
    user_id: UUID
    metadata: AssetMetadata
    urls: VideoUrls | None = None
    created_at: datetime
    updated_at: datetime


class ProcessingSummary(BaseModel):
    """Summary returned alongside a freshly uploaded video."""

    ai_enhanced: bool
    quality: str
    thumbnail_generated: bool
    content_analyzed: bool
    compression_applied: bool
    size_reduction: str


class VideoUploadOut(BaseModel):
    video: AssetOut
    processing: ProcessingSummary


class ImageMetadataOut(BaseModel):
    width: int | None
    height: int | None
    format: str | None
    size: int
    processed_size: int


class ImageUploadOut(BaseModel):
    """Response schema for an image upload."""

    id: UUID
    public_id: str
    secure_url: str
    optimized_url: str
    thumbnail_url: str
    responsive_urls: list[str]
    metadata: ImageMetadataOut
    transformations: list[str]


class UploadLimitsOut(BaseModel):
    """Ceilings clients should check before sending a file."""

    max_image_bytes: int
    max_video_bytes: int
    client_max_video_bytes: int
    chunk_bytes: int
    allowed_image_types: list[str]
    allowed_video_prefix: str
