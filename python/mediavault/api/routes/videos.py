"""Video routes.

Routes are transport-only:
- Extract the viewer from request.state
- Call exactly one service function
- Return success(...) or raise ApiError

No domain logic or raw DB access in routes.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from mediavault.api.deps import get_app_settings, get_db, get_media_client, to_incoming_file
from mediavault.auth.middleware import Viewer, get_viewer
from mediavault.config import Settings
from mediavault.media.client import MediaClientBase
from mediavault.responses import success_response
from mediavault.services import assets as asset_service
from mediavault.services import intake as intake_service

router = APIRouter()


@router.get("/videos")
def list_videos(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    media_client: Annotated[MediaClientBase, Depends(get_media_client)],
) -> dict:
    """List the viewer's videos, newest first.

    Each video carries derived thumbnail, preview, playback and download URLs.
    """
    result = asset_service.list_videos_for_viewer(db, viewer.user_id, media_client.urls)
    return success_response([video.model_dump(mode="json") for video in result])


@router.delete("/deletevideos/{video_id}")
def delete_video(
    video_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Delete one of the viewer's videos.

    Returns 404 if the video does not exist or belongs to someone else.
    """
    asset_service.delete_video_for_viewer(db, viewer.user_id, video_id)
    return success_response({"success": True})


@router.post("/video-upload")
def upload_video(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    media_client: Annotated[MediaClientBase, Depends(get_media_client)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    file: Annotated[UploadFile | None, File()] = None,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    original_size: Annotated[str | None, Form(alias="originalSize")] = None,
    enable_enhancement: Annotated[str | None, Form(alias="enableEnhancement")] = None,
    quality: Annotated[str | None, Form()] = None,
    generate_thumbnail: Annotated[str | None, Form(alias="generateThumbnail")] = None,
    analyze_content: Annotated[str | None, Form(alias="analyzeContent")] = None,
) -> dict:
    """Upload a video with size-based compression.

    Multipart fields: file, title, description, originalSize, and the
    processing flags enableEnhancement, generateThumbnail, analyzeContent
    ("true" to enable) plus quality (auto | high | medium | low).

    Returns:
        - video: The persisted record with delivery URLs
        - processing: Requested options, compression flag and size reduction
    """
    form = intake_service.VideoUploadForm(
        file=to_incoming_file(file),
        title=title,
        description=description,
        original_size=original_size,
        enable_enhancement=enable_enhancement,
        quality=quality,
        generate_thumbnail=generate_thumbnail,
        analyze_content=analyze_content,
    )
    result = intake_service.ingest_video(
        db,
        media_client,
        settings,
        viewer_id=viewer.user_id,
        form=form,
    )
    return success_response(result)
