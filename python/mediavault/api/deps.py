"""FastAPI dependencies for route handlers.

Shared resources (session factory, media client, settings) are built once by
create_app and read from app.state here.
"""

import os

from fastapi import Request, UploadFile

from mediavault.config import Settings
from mediavault.db.session import get_db
from mediavault.media.client import MediaClientBase
from mediavault.services.intake import IncomingFile

__all__ = ["get_app_settings", "get_db", "get_media_client", "to_incoming_file"]


def get_media_client(request: Request) -> MediaClientBase:
    """Get the shared media provider client from app state."""
    return request.app.state.media_client


def get_app_settings(request: Request) -> Settings:
    """Get the settings the app was built with."""
    return request.app.state.settings


def to_incoming_file(upload: UploadFile | None) -> IncomingFile | None:
    """Adapt a multipart UploadFile for the intake services.

    Empty form fields arrive as None or as an upload with no filename.
    """
    if upload is None or not upload.filename:
        return None

    size = upload.size
    if size is None:
        upload.file.seek(0, os.SEEK_END)
        size = upload.file.tell()
        upload.file.seek(0)

    return IncomingFile(
        stream=upload.file,
        filename=upload.filename,
        content_type=upload.content_type,
        size_bytes=size,
    )
