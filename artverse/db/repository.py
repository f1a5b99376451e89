"""Entity repository: the single source of truth for users, galleries, and artworks.

Every public method runs in its own session and commits before returning.
Derived gallery fields (``artwork_count``, ``has_adult_content``) are only ever
recomputed here, from the artwork rows themselves.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artverse.db.models import Artwork, FileRecord, Gallery, User
from artverse.lib.exceptions import NotFoundError, QuotaExceededError, ValidationError
from artverse.schemas import (
    ArtworkSchema,
    DataExport,
    FileRecordSchema,
    GallerySchema,
    UserSchema,
)

MAX_ARTWORKS_PER_GALLERY = 6

USER_EDITABLE_FIELDS = frozenset({"name", "email", "accepted_terms"})
GALLERY_EDITABLE_FIELDS = frozenset({"name", "description", "thumbnail", "is_public", "owner"})
ARTWORK_EDITABLE_FIELDS = frozenset(
    {"title", "artist", "price", "image", "description", "category", "sales", "has_adult_content"}
)


def _check_fields(updates: dict[str, Any], allowed: frozenset[str], entity: str) -> None:
    rejected = sorted(set(updates) - allowed)
    if rejected:
        raise ValidationError(f"Cannot update {entity} field(s): {', '.join(rejected)}")


async def _count_artworks(session: AsyncSession, gallery_id: UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Artwork).where(Artwork.gallery_id == gallery_id)
    )
    return result.scalar() or 0


async def _recount(session: AsyncSession, gallery_id: UUID, touch: bool = True) -> int:
    """Write the authoritative artwork count into the gallery row."""
    count = await _count_artworks(session, gallery_id)
    values: dict[str, Any] = {"artwork_count": count}
    if touch:
        values["updated_at"] = datetime.now(UTC)
    else:
        # Assigning the column to itself keeps the onupdate default from firing
        values["updated_at"] = Gallery.updated_at
    await session.execute(update(Gallery).where(Gallery.id == gallery_id).values(**values))
    return count


async def _refresh_adult_flag(session: AsyncSession, gallery_id: UUID, touch: bool = True) -> bool:
    flagged = await session.scalar(
        select(
            exists().where(
                Artwork.gallery_id == gallery_id,
                Artwork.has_adult_content.is_(True),
            )
        )
    )
    values: dict[str, Any] = {"has_adult_content": bool(flagged)}
    if not touch:
        values["updated_at"] = Gallery.updated_at
    await session.execute(update(Gallery).where(Gallery.id == gallery_id).values(**values))
    return bool(flagged)


class EntityRepository:
    """CRUD over the persisted collections plus derived counters."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        max_artworks_per_gallery: int = MAX_ARTWORKS_PER_GALLERY,
    ) -> None:
        self._session_maker = session_maker
        self.max_artworks_per_gallery = max_artworks_per_gallery

    # -- users --

    async def create_user(self, name: str, email: str, accepted_terms: bool = False) -> User:
        user = User(name=name, email=email, accepted_terms=accepted_terms)
        async with self._session_maker() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise ValidationError(f"A user with email {email!r} already exists") from None
            await session.refresh(user)
        return user

    async def find_user(self, user_id: UUID) -> User | None:
        async with self._session_maker() as session:
            return await session.get(User, user_id)

    async def get_user(self, user_id: UUID) -> User:
        user = await self.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def get_user_by_email(self, email: str) -> User | None:
        async with self._session_maker() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()

    async def update_user(self, user_id: UUID, **updates: Any) -> User:
        """Edit profile fields. Gallery ownership goes through :meth:`set_gallery_exists`."""
        _check_fields(updates, USER_EDITABLE_FIELDS, "user")
        async with self._session_maker() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            for key, value in updates.items():
                setattr(user, key, value)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise ValidationError(f"A user with email {updates.get('email')!r} already exists") from None
            await session.refresh(user)
        return user

    async def set_gallery_exists(
        self,
        user_id: UUID,
        gallery_id: UUID | None,
        only_if: UUID | None = None,
    ) -> User:
        """Set or clear the user's gallery reference in one transaction.

        With ``only_if``, the write happens only while the user still points at
        that gallery, so clearing a deleted gallery never clobbers a newer one.
        """
        async with self._session_maker() as session:
            user = await session.get(User, user_id, with_for_update=True)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            if only_if is not None and user.gallery_id != only_if:
                return user
            user.has_gallery = gallery_id is not None
            user.gallery_id = gallery_id
            await session.commit()
            await session.refresh(user)
        return user

    # -- galleries --

    async def create_gallery(
        self,
        owner_id: UUID,
        name: str,
        description: str = "",
        owner: str = "",
        is_public: bool = True,
        thumbnail: str = "",
    ) -> Gallery:
        gallery = Gallery(
            owner_id=owner_id,
            owner=owner,
            name=name,
            description=description,
            is_public=is_public,
            thumbnail=thumbnail,
            artwork_count=0,
            total_views=0,
            total_likes=0,
            has_adult_content=False,
        )
        async with self._session_maker() as session:
            session.add(gallery)
            await session.commit()
            await session.refresh(gallery)
        return gallery

    async def find_gallery(self, gallery_id: UUID) -> Gallery | None:
        async with self._session_maker() as session:
            return await session.get(Gallery, gallery_id)

    async def get_gallery(self, gallery_id: UUID) -> Gallery:
        gallery = await self.find_gallery(gallery_id)
        if gallery is None:
            raise NotFoundError(f"Gallery {gallery_id} not found")
        return gallery

    async def get_gallery_by_owner(self, owner_id: UUID) -> Gallery | None:
        async with self._session_maker() as session:
            result = await session.execute(select(Gallery).where(Gallery.owner_id == owner_id))
            return result.scalars().first()

    async def list_galleries(self, public_only: bool = True) -> list[Gallery]:
        query = select(Gallery)
        if public_only:
            query = query.where(Gallery.is_public.is_(True))
        query = query.order_by(Gallery.created_at.desc())
        async with self._session_maker() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def update_gallery(self, gallery_id: UUID, **updates: Any) -> Gallery:
        """Apply explicit edits. Derived counters cannot be written here."""
        _check_fields(updates, GALLERY_EDITABLE_FIELDS, "gallery")
        async with self._session_maker() as session:
            gallery = await session.get(Gallery, gallery_id)
            if gallery is None:
                raise NotFoundError(f"Gallery {gallery_id} not found")
            for key, value in updates.items():
                setattr(gallery, key, value)
            gallery.updated_at = datetime.now(UTC)
            await session.commit()
            await session.refresh(gallery)
        return gallery

    async def delete_gallery_row(self, gallery_id: UUID) -> bool:
        async with self._session_maker() as session:
            result = await session.execute(delete(Gallery).where(Gallery.id == gallery_id))
            await session.commit()
        return (result.rowcount or 0) > 0

    async def refresh_adult_flag(self, gallery_id: UUID) -> bool:
        """Recompute ``has_adult_content`` as the OR over the gallery's artworks."""
        async with self._session_maker() as session:
            flagged = await _refresh_adult_flag(session, gallery_id)
            await session.commit()
        return flagged

    # -- artworks --

    async def count_artworks(self, gallery_id: UUID) -> int:
        async with self._session_maker() as session:
            return await _count_artworks(session, gallery_id)

    async def add_artwork(self, gallery_id: UUID, **fields: Any) -> Artwork:
        """Insert an artwork, enforcing the per-gallery quota."""
        async with self._session_maker() as session:
            gallery = await session.get(Gallery, gallery_id, with_for_update=True)
            if gallery is None:
                raise NotFoundError(f"Gallery {gallery_id} not found")

            if await _count_artworks(session, gallery_id) >= self.max_artworks_per_gallery:
                raise QuotaExceededError(
                    f"Gallery {gallery_id} already holds the maximum of "
                    f"{self.max_artworks_per_gallery} artworks"
                )

            artwork = Artwork(gallery_id=gallery_id, **{"likes": 0, "views": 0, "sales": 0, **fields})
            session.add(artwork)
            await session.flush()
            await _recount(session, gallery_id)
            await session.commit()
            await session.refresh(artwork)
        return artwork

    async def remove_artwork(self, artwork_id: UUID) -> Artwork | None:
        """Delete an artwork row and recompute its gallery's count.

        Returns the removed artwork, or None if it was already gone.
        """
        async with self._session_maker() as session:
            artwork = await session.get(Artwork, artwork_id)
            if artwork is None:
                return None
            gallery_id = artwork.gallery_id
            await session.delete(artwork)
            await session.flush()
            await _recount(session, gallery_id)
            await session.commit()
        return artwork

    async def remove_artworks_for_gallery(self, gallery_id: UUID) -> int:
        async with self._session_maker() as session:
            result = await session.execute(delete(Artwork).where(Artwork.gallery_id == gallery_id))
            await _recount(session, gallery_id)
            await session.commit()
        return result.rowcount or 0

    async def find_artwork(self, artwork_id: UUID) -> Artwork | None:
        async with self._session_maker() as session:
            return await session.get(Artwork, artwork_id)

    async def get_artwork(self, artwork_id: UUID) -> Artwork:
        artwork = await self.find_artwork(artwork_id)
        if artwork is None:
            raise NotFoundError(f"Artwork {artwork_id} not found")
        return artwork

    async def list_artworks(self, gallery_id: UUID) -> list[Artwork]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(Artwork)
                .where(Artwork.gallery_id == gallery_id)
                .order_by(Artwork.created_at.asc())
            )
            return list(result.scalars().all())

    async def update_artwork(self, artwork_id: UUID, **updates: Any) -> Artwork:
        _check_fields(updates, ARTWORK_EDITABLE_FIELDS, "artwork")
        async with self._session_maker() as session:
            artwork = await session.get(Artwork, artwork_id)
            if artwork is None:
                raise NotFoundError(f"Artwork {artwork_id} not found")
            for key, value in updates.items():
                setattr(artwork, key, value)
            await session.flush()
            if "has_adult_content" in updates:
                await _refresh_adult_flag(session, artwork.gallery_id)
            await session.commit()
            await session.refresh(artwork)
        return artwork

    async def like_artwork(self, artwork_id: UUID) -> Artwork:
        return await self._bump(artwork_id, Artwork.likes, Gallery.total_likes)

    async def view_artwork(self, artwork_id: UUID) -> Artwork:
        return await self._bump(artwork_id, Artwork.views, Gallery.total_views)

    async def _bump(self, artwork_id: UUID, artwork_column, gallery_column) -> Artwork:
        """Monotonic +1 applied in SQL so concurrent viewers never lose an update."""
        async with self._session_maker() as session:
            artwork = await session.get(Artwork, artwork_id)
            if artwork is None:
                raise NotFoundError(f"Artwork {artwork_id} not found")
            await session.execute(
                update(Artwork)
                .where(Artwork.id == artwork_id)
                .values({artwork_column: artwork_column + 1})
            )
            await session.execute(
                update(Gallery)
                .where(Gallery.id == artwork.gallery_id)
                .values({gallery_column: gallery_column + 1})
            )
            await session.commit()
            await session.refresh(artwork)
        return artwork

    # -- export / import --

    async def export_data(self) -> DataExport:
        async with self._session_maker() as session:
            galleries = (await session.execute(select(Gallery))).scalars().all()
            artworks = (await session.execute(select(Artwork))).scalars().all()
            users = (await session.execute(select(User))).scalars().all()
            files = (await session.execute(select(FileRecord))).scalars().all()

        return DataExport(
            galleries=[GallerySchema.model_validate(g) for g in galleries],
            artworks=[ArtworkSchema.model_validate(a) for a in artworks],
            users=[UserSchema.model_validate(u) for u in users],
            files=[FileRecordSchema.model_validate(f) for f in files],
        )

    async def import_data(self, data: DataExport, replace: bool = True) -> dict[str, int]:
        """Load the four collections; gallery counters are recomputed, not trusted.

        With ``replace=False`` the payload is merged into the existing rows, so
        artworks may target galleries that are already stored. Either way no
        gallery may end up above the artwork quota.
        """
        imported_ids = {g.id for g in data.galleries}
        affected_ids = imported_ids | {a.gallery_id for a in data.artworks}

        async with self._session_maker() as session:
            known_ids = set(imported_ids)
            if not replace:
                known_ids.update((await session.execute(select(Gallery.id))).scalars().all())
            orphans = [a.id for a in data.artworks if a.gallery_id not in known_ids]
            if orphans:
                raise ValidationError(f"Artworks reference unknown galleries: {orphans}")

            if replace:
                for model in (Artwork, FileRecord, Gallery, User):
                    await session.execute(delete(model))

            try:
                session.add_all(User(**_columns(u)) for u in data.users)
                await session.flush()
                session.add_all(Gallery(**_columns(g)) for g in data.galleries)
                await session.flush()
                session.add_all(Artwork(**_columns(a)) for a in data.artworks)
                session.add_all(FileRecord(**_columns(f)) for f in data.files)
                await session.flush()

                for gallery_id in affected_ids:
                    # Galleries carried by the payload keep their recorded updatedAt
                    touch = gallery_id not in imported_ids
                    count = await _recount(session, gallery_id, touch=touch)
                    if count > self.max_artworks_per_gallery:
                        raise QuotaExceededError(
                            f"Import would leave gallery {gallery_id} with {count} artworks; "
                            f"the maximum is {self.max_artworks_per_gallery}"
                        )
                    await _refresh_adult_flag(session, gallery_id, touch=touch)
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ValidationError(f"Import conflicts with existing data: {exc.orig}") from exc

        return {
            "galleries": len(data.galleries),
            "artworks": len(data.artworks),
            "users": len(data.users),
            "files": len(data.files),
        }


def _columns(schema) -> dict[str, Any]:
    """Field-name dump with unset timestamps left to the column defaults."""
    values = schema.model_dump()
    for key in ("created_at", "updated_at"):
        if values.get(key) is None:
            values.pop(key, None)
    return values
