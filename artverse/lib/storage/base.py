"""Storage backend protocol, common types, and the shared upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from artverse.lib.sanitize import generate_file_name
from artverse.lib.validation import AssetPolicy, check_plain_file_name, parse_uuid


@dataclass
class UploadedFile:
    """Where an upload landed."""

    path: str
    file_name: str


@dataclass
class FileInfo:
    """Metadata for a blob tracked by a backend."""

    gallery_id: str
    folder_key: str
    file_name: str
    original_name: str
    size: int
    content_type: str
    path: str
    uploaded_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "galleryId": self.gallery_id,
            "galleryFolder": self.folder_key,
            "fileName": self.file_name,
            "originalName": self.original_name,
            "size": self.size,
            "type": self.content_type,
            "filePath": self.path,
            "uploadedAt": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }


@dataclass
class GalleryPurgeReport:
    """Result of removing every blob for a gallery; failures do not abort the sweep."""

    removed_count: int = 0
    failures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"removedCount": self.removed_count, "failures": list(self.failures)}


@dataclass
class StorageStats:
    total_files: int = 0
    total_size_bytes: int = 0
    gallery_count: int = 0

    def to_dict(self) -> dict:
        return {
            "totalFiles": self.total_files,
            "totalSize": self.total_size_bytes,
            "galleriesCount": self.gallery_count,
        }


@runtime_checkable
class StorageBackend(Protocol):
    """Interface for interchangeable upload storage backends."""

    async def upload(
        self,
        data: bytes,
        content_type: str,
        original_name: str,
        folder_key: str,
        gallery_id: UUID | str,
        file_name: str | None = None,
    ) -> UploadedFile:
        """Validate, name, and persist an upload."""
        ...

    async def delete_file(self, gallery_id: UUID | str, file_name: str) -> None:
        """Remove one blob. Deleting a missing file is not an error."""
        ...

    async def delete_all_for_gallery(
        self, gallery_id: UUID | str, folder_key: str
    ) -> GalleryPurgeReport:
        """Remove every blob belonging to a gallery."""
        ...

    async def list_files(self, gallery_id: UUID | str | None = None) -> list[FileInfo]:
        """List tracked blobs, optionally for one gallery."""
        ...

    async def stats(self) -> StorageStats:
        """Aggregate counts over all tracked blobs."""
        ...

    async def close(self) -> None:
        ...


class BaseStorageBackend:
    """Validation, naming, and path layout shared by every backend.

    Subclasses implement :meth:`_store` and the delete/list/stats operations.
    """

    def __init__(self, base_upload_path: str, policy: AssetPolicy | None = None) -> None:
        self.base_upload_path = base_upload_path.rstrip("/")
        self.policy = policy or AssetPolicy()

    def build_path(self, folder_key: str, file_name: str) -> str:
        return f"{self.base_upload_path}/{folder_key}/{file_name}"

    async def upload(
        self,
        data: bytes,
        content_type: str,
        original_name: str,
        folder_key: str,
        gallery_id: UUID | str,
        file_name: str | None = None,
    ) -> UploadedFile:
        # Validation must run before anything touches storage
        self.policy.validate(content_type, len(data))
        gallery_uuid = parse_uuid(gallery_id, "galleryId")
        check_plain_file_name(folder_key)

        if file_name:
            file_name = check_plain_file_name(file_name)
        else:
            file_name = generate_file_name(original_name, str(gallery_uuid))

        path = self.build_path(folder_key, file_name)
        stored_path = await self._store(
            data=data,
            content_type=content_type,
            original_name=original_name,
            folder_key=folder_key,
            gallery_id=gallery_uuid,
            file_name=file_name,
            path=path,
        )
        return UploadedFile(path=stored_path, file_name=file_name)

    async def _store(
        self,
        *,
        data: bytes,
        content_type: str,
        original_name: str,
        folder_key: str,
        gallery_id: UUID,
        file_name: str,
        path: str,
    ) -> str:
        raise NotImplementedError

    async def close(self) -> None:
        """No persistent resources by default."""
