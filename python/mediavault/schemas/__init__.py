"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from mediavault.schemas.assets import (
    AssetMetadata,
    AssetOut,
    ImageMetadataOut,
    ImageProcessingOptions,
    ImageUploadOut,
    ProcessingSummary,
    ProviderMetadata,
    UploadLimitsOut,
    VideoProcessingOptions,
    VideoUploadOut,
    VideoUrls,
)

__all__ = [
    "AssetMetadata",
    "AssetOut",
    "ImageMetadataOut",
    "ImageProcessingOptions",
    "ImageUploadOut",
    "ProcessingSummary",
    "ProviderMetadata",
    "UploadLimitsOut",
    "VideoProcessingOptions",
    "VideoUploadOut",
    "VideoUrls",
]
