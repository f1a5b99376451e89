"""Gallery lifecycle orchestration.

Composes the entity repository and the storage backend into the multi-step
operations: gallery creation, quota-checked artwork uploads with a
compensating delete, and the cascading gallery delete. Mutations of one
gallery are serialized; different galleries proceed in parallel.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from artverse.config import Settings
from artverse.db.models import Artwork, Gallery, User
from artverse.db.repository import EntityRepository
from artverse.lib import observability
from artverse.lib.exceptions import (
    ArtverseError,
    DuplicateOwnerError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from artverse.lib.keyed_lock import KeyedLock
from artverse.lib.results import GalleryDeletion, OperationResult, PartialCleanupWarning
from artverse.lib.retry import RetryPolicy, call_storage
from artverse.lib.sanitize import gallery_folder_key, generate_file_name
from artverse.lib.storage.base import StorageBackend, StorageStats, UploadedFile
from artverse.lib.validation import AssetPolicy

logger = logging.getLogger(__name__)


@dataclass
class FileUpload:
    data: bytes
    content_type: str
    original_name: str = ""


@dataclass
class ArtworkDraft:
    """What a creator submits for a new artwork: either ``file`` or ``image_url``."""

    title: str
    price: float
    file: FileUpload | None = None
    image_url: str | None = None
    artist: str | None = None
    artist_id: UUID | None = None
    description: str = ""
    category: str = ""
    has_adult_content: bool = False


def folder_key_for(gallery: Gallery) -> str:
    return gallery_folder_key(gallery.name, str(gallery.id))


class LifecycleOrchestrator:
    """Owns the create/add/remove/delete protocols across metadata and files."""

    def __init__(
        self,
        repository: EntityRepository,
        storage: StorageBackend,
        settings: Settings | None = None,
        policy: AssetPolicy | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        settings = settings or Settings()
        self._repository = repository
        self._storage = storage
        self._policy = policy or AssetPolicy.from_config(settings.storage)
        self._retry = retry_policy or RetryPolicy.from_config(settings.storage)
        self._max_price = settings.lifecycle.max_price
        self._delete_concurrency = max(1, settings.lifecycle.delete_concurrency)
        self._gallery_locks = KeyedLock()
        self._owner_locks = KeyedLock()

    @property
    def repository(self) -> EntityRepository:
        return self._repository

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    # -- users --

    async def register_user(self, name: str, email: str, accepted_terms: bool = False) -> User:
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name:
            raise ValidationError("Name is required")
        if "@" not in email:
            raise ValidationError("A valid email is required")
        if await self._repository.get_user_by_email(email) is not None:
            raise ValidationError(f"A user with email {email!r} already exists")
        return await self._repository.create_user(name, email, accepted_terms)

    async def update_user(self, user_id: UUID, **updates) -> User:
        if "name" in updates:
            updates["name"] = (updates["name"] or "").strip()
            if not updates["name"]:
                raise ValidationError("Name is required")
        if "email" in updates:
            updates["email"] = (updates["email"] or "").strip().lower()
            if "@" not in updates["email"]:
                raise ValidationError("A valid email is required")
        return await self._repository.update_user(user_id, **updates)

    # -- galleries --

    async def create_gallery(
        self,
        owner_id: UUID,
        name: str,
        description: str = "",
        *,
        is_public: bool = True,
        thumbnail: str = "",
    ) -> Gallery:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Gallery name is required")

        async with self._owner_locks.hold(str(owner_id)):
            user = await self._repository.get_user(owner_id)
            await self._ensure_no_gallery(user)

            gallery = await self._repository.create_gallery(
                owner_id=owner_id,
                name=name,
                description=description,
                owner=user.name,
                is_public=is_public,
                thumbnail=thumbnail,
            )
            try:
                await self._repository.set_gallery_exists(owner_id, gallery.id)
            except Exception:
                await self._repository.delete_gallery_row(gallery.id)
                raise

        logger.info("Created gallery %s (%s) for user %s", gallery.id, folder_key_for(gallery), owner_id)
        return gallery

    async def _ensure_no_gallery(self, user: User) -> None:
        if await self._repository.get_gallery_by_owner(user.id) is not None:
            raise DuplicateOwnerError(f"User {user.id} already has a gallery")
        if user.has_gallery:
            # Flag left behind by an interrupted delete; the gallery itself is gone
            logger.warning("Clearing stale gallery reference %s on user %s", user.gallery_id, user.id)
            await self._repository.set_gallery_exists(user.id, None)

    async def update_gallery(self, gallery_id: UUID, **updates) -> Gallery:
        if "name" in updates:
            updates["name"] = (updates["name"] or "").strip()
            if not updates["name"]:
                raise ValidationError("Gallery name is required")
        async with self._gallery_locks.hold(str(gallery_id)):
            return await self._repository.update_gallery(gallery_id, **updates)

    async def delete_gallery(self, gallery_id: UUID) -> GalleryDeletion:
        """Cascade: files, residual sweep, artwork rows, gallery row, owner flag.

        Storage failures are collected, never fatal, so metadata cleanup always
        completes. Each step is idempotent; an interrupted delete can be re-run.
        """
        async with self._gallery_locks.hold(str(gallery_id)):
            with observability.gallery_span("delete", gallery_id):
                gallery = await self._repository.get_gallery(gallery_id)
                artworks = await self._repository.list_artworks(gallery_id)

                file_names = [a.file_name for a in artworks if a.file_name]
                failures, warnings = await self._delete_files(gallery_id, file_names)
                removed_files = len(file_names) - len(failures)

                folder_key = folder_key_for(gallery)
                try:
                    report = await call_storage(
                        self._retry,
                        lambda: self._storage.delete_all_for_gallery(gallery_id, folder_key),
                        f"sweep of gallery {gallery_id}",
                    )
                except StorageError as exc:
                    logger.warning("Residual sweep failed for gallery %s: %s", gallery_id, exc.message)
                    warnings.append(PartialCleanupWarning(file_name=folder_key, message=exc.message))
                else:
                    removed_files += report.removed_count
                    for name in report.failures:
                        if name not in failures:
                            failures.append(name)
                            warnings.append(
                                PartialCleanupWarning(file_name=name, message="Residual file could not be removed")
                            )

                removed_artworks = await self._repository.remove_artworks_for_gallery(gallery_id)
                await self._repository.delete_gallery_row(gallery_id)
                try:
                    # The owner may already hold a newer gallery; only clear a reference to this one
                    await self._repository.set_gallery_exists(gallery.owner_id, None, only_if=gallery_id)
                except NotFoundError:
                    logger.warning("Owner %s of deleted gallery %s no longer exists", gallery.owner_id, gallery_id)

        observability.cleanup_failures(gallery_id, failures)
        logger.info(
            "Deleted gallery %s: %d artworks, %d files, %d failures",
            gallery_id,
            removed_artworks,
            removed_files,
            len(failures),
        )
        return GalleryDeletion(
            gallery_id=str(gallery_id),
            success=True,
            file_failures=failures,
            removed_artworks=removed_artworks,
            removed_files=removed_files,
            warnings=warnings,
        )

    async def _delete_files(
        self, gallery_id: UUID, file_names: list[str]
    ) -> tuple[list[str], list[PartialCleanupWarning]]:
        """Delete blobs with bounded parallelism, returning failures instead of raising."""
        semaphore = asyncio.Semaphore(self._delete_concurrency)

        async def delete_one(file_name: str) -> None:
            async with semaphore:
                await call_storage(
                    self._retry,
                    lambda: self._storage.delete_file(gallery_id, file_name),
                    f"delete of {file_name}",
                )

        results = await asyncio.gather(*(delete_one(name) for name in file_names), return_exceptions=True)

        failures: list[str] = []
        warnings: list[PartialCleanupWarning] = []
        for file_name, result in zip(file_names, results):
            if result is None:
                continue
            if not isinstance(result, Exception):
                raise result
            message = result.message if isinstance(result, ArtverseError) else str(result)
            logger.warning("Could not delete %s for gallery %s: %s", file_name, gallery_id, message)
            failures.append(file_name)
            warnings.append(PartialCleanupWarning(file_name=file_name, message=message))
        return failures, warnings

    # -- artworks --

    def _validate_draft(self, draft: ArtworkDraft) -> None:
        if not (draft.title or "").strip():
            raise ValidationError("Title is required")
        try:
            price = float(draft.price)
        except (TypeError, ValueError):
            raise ValidationError("Price must be a number") from None
        if not 0 < price <= self._max_price:
            raise ValidationError(f"Price must be greater than 0 and at most {self._max_price:g}")
        has_file = draft.file is not None
        has_url = bool((draft.image_url or "").strip())
        if has_file == has_url:
            raise ValidationError("Provide either an image file or an image URL")

    async def add_artwork(self, gallery_id: UUID, draft: ArtworkDraft) -> Artwork:
        """Validate, upload (if file-based), insert under quota, then refresh the adult flag."""
        self._validate_draft(draft)
        if draft.file is not None:
            self._policy.validate(draft.file.content_type, len(draft.file.data))

        async with self._gallery_locks.hold(str(gallery_id)):
            gallery = await self._repository.get_gallery(gallery_id)

            uploaded: UploadedFile | None = None
            if draft.file is not None:
                # Name chosen once so a retried upload overwrites rather than duplicates
                file_name = generate_file_name(draft.file.original_name, str(gallery.id))
                try:
                    uploaded = await self._upload(gallery, draft.file, file_name)
                except StorageError:
                    # The blob may have been written before the failure surfaced
                    await self._compensate_upload(gallery_id, file_name)
                    raise

            try:
                artwork = await self._repository.add_artwork(
                    gallery_id,
                    title=draft.title.strip(),
                    artist=draft.artist or gallery.owner,
                    artist_id=draft.artist_id or gallery.owner_id,
                    price=float(draft.price),
                    image=uploaded.path if uploaded else draft.image_url.strip(),
                    description=draft.description,
                    category=draft.category,
                    has_adult_content=draft.has_adult_content,
                    file_name=uploaded.file_name if uploaded else None,
                )
            except Exception:
                if uploaded is not None:
                    await self._compensate_upload(gallery_id, uploaded.file_name)
                raise

            await self._repository.refresh_adult_flag(gallery_id)

        logger.info("Added artwork %s to gallery %s", artwork.id, gallery_id)
        return artwork

    async def _upload(self, gallery: Gallery, upload: FileUpload, file_name: str) -> UploadedFile:
        folder_key = folder_key_for(gallery)
        with observability.artwork_span("upload", gallery.id, file_name=file_name):
            return await call_storage(
                self._retry,
                lambda: self._storage.upload(
                    upload.data,
                    upload.content_type,
                    upload.original_name,
                    folder_key,
                    gallery.id,
                    file_name=file_name,
                ),
                f"upload of {file_name}",
            )

    async def _compensate_upload(self, gallery_id: UUID, file_name: str) -> None:
        try:
            await call_storage(
                self._retry,
                lambda: self._storage.delete_file(gallery_id, file_name),
                f"compensating delete of {file_name}",
            )
        except StorageError:
            logger.warning("Compensating delete of %s failed; blob is orphaned", file_name, exc_info=True)
            observability.cleanup_failures(gallery_id, [file_name])

    async def remove_artwork(self, artwork_id: UUID) -> OperationResult:
        """Non-fatal file delete, then row removal and counter recompute."""
        artwork = await self._repository.get_artwork(artwork_id)
        gallery_id = artwork.gallery_id

        async with self._gallery_locks.hold(str(gallery_id)):
            artwork = await self._repository.get_artwork(artwork_id)

            warnings: list[PartialCleanupWarning] = []
            if artwork.file_name:
                _, warnings = await self._delete_files(gallery_id, [artwork.file_name])

            await self._repository.remove_artwork(artwork_id)
            await self._repository.refresh_adult_flag(gallery_id)

        return OperationResult.ok(
            warnings=warnings,
            artworkId=str(artwork_id),
            galleryId=str(gallery_id),
        )

    async def update_artwork(self, artwork_id: UUID, **updates) -> Artwork:
        """Edit artwork details; the gallery's adult flag follows ``has_adult_content``."""
        if "title" in updates:
            updates["title"] = (updates["title"] or "").strip()
            if not updates["title"]:
                raise ValidationError("Title is required")
        if "price" in updates and not 0 < updates["price"] <= self._max_price:
            raise ValidationError(f"Price must be greater than 0 and at most {self._max_price:g}")
        if updates.get("sales", 0) < 0:
            raise ValidationError("Sales cannot be negative")

        artwork = await self._repository.get_artwork(artwork_id)
        async with self._gallery_locks.hold(str(artwork.gallery_id)):
            return await self._repository.update_artwork(artwork_id, **updates)

    async def like_artwork(self, artwork_id: UUID) -> Artwork:
        return await self._repository.like_artwork(artwork_id)

    async def view_artwork(self, artwork_id: UUID) -> Artwork:
        return await self._repository.view_artwork(artwork_id)

    # -- storage --

    async def storage_stats(self) -> StorageStats:
        return await call_storage(self._retry, self._storage.stats, "storage stats")
