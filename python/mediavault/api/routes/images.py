"""Image upload routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from mediavault.api.deps import get_app_settings, get_db, get_media_client, to_incoming_file
from mediavault.auth.middleware import Viewer, get_viewer
from mediavault.config import Settings
from mediavault.media.client import MediaClientBase
from mediavault.responses import success_response
from mediavault.services import intake as intake_service

router = APIRouter()


@router.post("/image-upload")
def upload_image(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    media_client: Annotated[MediaClientBase, Depends(get_media_client)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    file: Annotated[UploadFile | None, File()] = None,
    options: Annotated[str | None, Form()] = None,
) -> dict:
    """Preprocess and upload an image.

    ``options`` is an optional JSON object (quality, maxWidth, maxHeight,
    enableOptimization, generateThumbnail, format).
    """
    result = intake_service.ingest_image(
        db,
        media_client,
        settings,
        viewer_id=viewer.user_id,
        external_id=viewer.external_id,
        file=to_incoming_file(file),
        raw_options=options,
    )
    return success_response(result)


@router.get("/image-upload")
def get_image(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    media_client: Annotated[MediaClientBase, Depends(get_media_client)],
    public_id: Annotated[str | None, Query(alias="publicId")] = None,
) -> dict:
    """Provider metadata and URL set for one of the viewer's images."""
    result = intake_service.get_image_details(
        db,
        media_client,
        viewer_id=viewer.user_id,
        public_id=public_id,
    )
    return success_response(result)
