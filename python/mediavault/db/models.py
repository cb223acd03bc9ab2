"""SQLAlchemy ORM models for MediaVault.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Column types are portable: PostgreSQL in production (JSONB metadata),
SQLite for the test suite.
"""

from datetime import UTC, datetime
from enum import Enum as PyEnum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Enums
# =============================================================================


class AssetKind(str, PyEnum):
    """Types of media a user can upload."""

    video = "video"
    image = "image"


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """Local user record mirroring a Clerk identity.

    Created lazily on the first authenticated request; clerk_id is the
    session token's sub claim and is unique.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    clerk_id: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    assets: Mapped[list["Asset"]] = relationship(
        "Asset",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (UniqueConstraint("clerk_id", name="uq_users_clerk_id"),)


class Asset(Base):
    """An uploaded video or image.

    Sizes are bytes. compressed_size is what the provider reports after its
    transformation; original_size is what the client says it started from.
    """

    __tablename__ = "assets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    kind: Mapped[AssetKind] = mapped_column(
        Enum(AssetKind, name="asset_kind"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    public_id: Mapped[str] = mapped_column(Text, nullable=False)
    original_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    compressed_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    duration: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # "metadata" is reserved on declarative classes
    asset_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONDocument, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="assets")

    __table_args__ = (
        CheckConstraint("original_size >= 0", name="ck_assets_original_size_nonneg"),
        CheckConstraint("compressed_size >= 0", name="ck_assets_compressed_size_nonneg"),
        CheckConstraint("duration >= 0", name="ck_assets_duration_nonneg"),
        Index("ix_assets_user_id", "user_id"),
        Index("ix_assets_user_id_created_at", "user_id", "created_at"),
    )
