"""Stored upload bookkeeping."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from artverse.db.base import Base


class FileRecord(Base):
    """A blob written by the storage backend on behalf of a gallery.

    Owned by the storage layer; no foreign key to galleries so the record can
    outlive a gallery row until the sweep removes it.
    """

    __tablename__ = "files"
    __table_args__ = (
        UniqueConstraint("gallery_id", "file_name", name="uq_files_gallery_file_name"),
        Index("ix_files_gallery_id", "gallery_id"),
    )

    gallery_id: Mapped[UUID] = mapped_column(nullable=False)
    folder_key: Mapped[str] = mapped_column(String(255), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str] = mapped_column(String(128), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
