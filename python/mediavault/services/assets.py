"""Asset persistence, listing and deletion.

Key invariants:
- A row is written only after the provider confirmed the upload
- Listing and deletion are scoped to the viewer
- Deleting a missing (or foreign) asset leaves the table unchanged
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from mediavault.db.models import Asset, AssetKind
from mediavault.db.session import transaction
from mediavault.errors import ApiErrorCode, NotFoundError
from mediavault.logging import get_logger
from mediavault.media.urls import DeliveryUrls
from mediavault.schemas.assets import AssetMetadata, AssetOut, VideoUrls

logger = get_logger(__name__)


def create_asset(
    db: Session,
    *,
    user_id: UUID,
    kind: AssetKind,
    title: str,
    public_id: str,
    original_size: int,
    compressed_size: int,
    metadata: AssetMetadata,
    description: str | None = "",
    duration: float = 0.0,
) -> Asset:
    """Insert one asset row and commit."""
    asset = Asset(
        user_id=user_id,
        kind=kind,
        title=title,
        description=description,
        public_id=public_id,
        original_size=original_size,
        compressed_size=compressed_size,
        duration=duration,
        asset_metadata=metadata.model_dump(mode="json"),
    )
    with transaction(db):
        db.add(asset)

    logger.info(
        "asset_created",
        asset_id=str(asset.id),
        kind=kind.value,
        public_id=public_id,
        original_size=original_size,
        compressed_size=compressed_size,
    )
    return asset


def asset_to_out(asset: Asset, urls: DeliveryUrls | None = None) -> AssetOut:
    """Convert an ORM row to its response schema, attaching delivery URLs for videos."""
    video_urls = None
    if urls is not None and asset.kind == AssetKind.video:
        video_urls = VideoUrls(**urls.video_urls(asset.public_id))

    return AssetOut(
        id=asset.id,
        kind=asset.kind.value,
        title=asset.title,
        description=asset.description,
        public_id=asset.public_id,
        original_size=asset.original_size,
        compressed_size=asset.compressed_size,
        duration=asset.duration,
        user_id=asset.user_id,
        metadata=AssetMetadata.model_validate(asset.asset_metadata or {}),
        urls=video_urls,
        created_at=asset.created_at,
        updated_at=asset.updated_at,
    )


def list_videos_for_viewer(
    db: Session, viewer_id: UUID, urls: DeliveryUrls | None = None
) -> list[AssetOut]:
    """List the viewer's videos, newest first."""
    rows = db.scalars(
        select(Asset)
        .where(Asset.user_id == viewer_id, Asset.kind == AssetKind.video)
        .order_by(Asset.created_at.desc(), Asset.id.desc())
    ).all()
    return [asset_to_out(row, urls) for row in rows]


def get_asset_by_public_id_for_viewer(db: Session, viewer_id: UUID, public_id: str) -> Asset:
    """Fetch one of the viewer's assets by provider id.

    Raises:
        NotFoundError: If the viewer owns no asset with this public id.
    """
    asset = db.scalars(
        select(Asset).where(Asset.user_id == viewer_id, Asset.public_id == public_id)
    ).first()
    if asset is None:
        raise NotFoundError(ApiErrorCode.E_ASSET_NOT_FOUND, "Asset not found")
    return asset


def delete_video_for_viewer(db: Session, viewer_id: UUID, asset_id: UUID) -> None:
    """Delete one of the viewer's videos.

    Another user's video, or an image id, is reported exactly like a missing video.

    Raises:
        NotFoundError: If no matching video exists.
    """
    with transaction(db):
        result = db.execute(
            delete(Asset).where(
                Asset.id == asset_id,
                Asset.user_id == viewer_id,
                Asset.kind == AssetKind.video,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(ApiErrorCode.E_ASSET_NOT_FOUND, "Video not found")

    logger.info("video_deleted", asset_id=str(asset_id))
