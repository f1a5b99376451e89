"""User model."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from artverse.db.base import Base


class User(Base):
    """A registered creator or visitor."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    accepted_terms: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Gallery ownership; maintained only through EntityRepository.set_gallery_exists
    has_gallery: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    gallery_id: Mapped[UUID | None] = mapped_column(nullable=True)
