"""Media provider integration.

Provides:
- CloudinaryClient / FakeMediaClient for provider uploads and lookups
- Compression policy selection for videos
- Chunked upload state machine
- Image preprocessing and delivery URL construction
"""

from mediavault.media.client import (
    CloudinaryClient,
    FakeMediaClient,
    MediaClientBase,
    MediaProviderError,
    UploadResult,
)
from mediavault.media.compression import (
    CompressionPolicy,
    CompressionTier,
    select_compression_policy,
)
from mediavault.media.urls import DeliveryUrls

__all__ = [
    "CloudinaryClient",
    "CompressionPolicy",
    "CompressionTier",
    "DeliveryUrls",
    "FakeMediaClient",
    "MediaClientBase",
    "MediaProviderError",
    "UploadResult",
    "select_compression_policy",
]
