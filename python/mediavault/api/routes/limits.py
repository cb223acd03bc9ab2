"""Upload limit discovery for clients."""

from typing import Annotated

from fastapi import APIRouter, Depends

from mediavault.api.deps import get_app_settings
from mediavault.config import Settings
from mediavault.responses import success_response
from mediavault.schemas.assets import UploadLimitsOut
from mediavault.services.validation import ALLOWED_IMAGE_TYPES, VIDEO_CONTENT_TYPE_PREFIX

router = APIRouter()


@router.get("/upload-limits")
def get_upload_limits(settings: Annotated[Settings, Depends(get_app_settings)]) -> dict:
    """Ceilings a client should check before sending a file.

    client_max_video_bytes is the advisory pre-check; the server accepts up
    to max_video_bytes.
    """
    limits = UploadLimitsOut(
        max_image_bytes=settings.max_image_bytes,
        max_video_bytes=settings.max_video_bytes,
        client_max_video_bytes=settings.client_max_video_bytes,
        chunk_bytes=settings.upload_chunk_bytes,
        allowed_image_types=list(ALLOWED_IMAGE_TYPES),
        allowed_video_prefix=VIDEO_CONTENT_TYPE_PREFIX,
    )
    return success_response(limits.model_dump())
