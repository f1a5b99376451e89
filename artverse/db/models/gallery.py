"""Gallery model."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from artverse.db.base import Base


class Gallery(Base):
    """A creator's single gallery."""

    __tablename__ = "galleries"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    owner: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Cache of the number of artwork rows; recomputed by the repository only
    artwork_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    total_views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    thumbnail: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    has_adult_content: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
