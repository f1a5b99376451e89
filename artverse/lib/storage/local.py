"""Local filesystem storage backend."""

from __future__ import annotations

import asyncio
import glob
import logging
from pathlib import Path
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artverse.db.services import file_record_service
from artverse.lib.exceptions import StorageError
from artverse.lib.sanitize import belongs_to_gallery
from artverse.lib.storage.base import (
    BaseStorageBackend,
    FileInfo,
    GalleryPurgeReport,
    StorageStats,
)
from artverse.lib.validation import AssetPolicy, check_plain_file_name, parse_uuid

logger = logging.getLogger(__name__)


class LocalStorageBackend(BaseStorageBackend):
    """Store uploads under ``{root}/{folder_key}/{file_name}`` and track them in the ``files`` table."""

    def __init__(
        self,
        root: Path,
        session_maker: async_sessionmaker[AsyncSession],
        base_upload_path: str = "/uploads/galleries",
        policy: AssetPolicy | None = None,
    ) -> None:
        super().__init__(base_upload_path, policy)
        self._root = root
        self._session_maker = session_maker

    @property
    def root(self) -> Path:
        return self._root

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
        target = self._root / folder_key / file_name
        try:
            await asyncio.to_thread(self._write_file, target, data)
        except OSError as exc:
            raise StorageError(f"Failed to write {file_name}: {exc}") from exc

        try:
            async with self._session_maker() as session:
                await file_record_service.add_file_record(
                    session,
                    gallery_id=gallery_id,
                    folder_key=folder_key,
                    file_name=file_name,
                    original_name=original_name,
                    size=len(data),
                    content_type=content_type,
                    path=path,
                )
        except SQLAlchemyError as exc:
            # Do not leave an untracked blob behind
            await asyncio.to_thread(self._unlink, target)
            raise StorageError(f"Failed to record {file_name}: {exc}") from exc

        return path

    async def delete_file(self, gallery_id: UUID | str, file_name: str) -> None:
        gallery_uuid = parse_uuid(gallery_id, "galleryId")
        check_plain_file_name(file_name)

        try:
            async with self._session_maker() as session:
                record = await file_record_service.get_file_record(session, gallery_uuid, file_name)
                if record is not None:
                    await asyncio.to_thread(self._unlink, self._root / record.folder_key / file_name)
                    await file_record_service.delete_file_record(session, gallery_uuid, file_name)
                    return
        except (OSError, SQLAlchemyError) as exc:
            raise StorageError(f"Failed to delete {file_name}: {exc}") from exc

        # Untracked: only touch blobs whose name proves they belong to this gallery
        if belongs_to_gallery(file_name, str(gallery_uuid)):
            try:
                for path in await asyncio.to_thread(self._find, file_name):
                    await asyncio.to_thread(self._unlink, path)
            except OSError as exc:
                raise StorageError(f"Failed to delete {file_name}: {exc}") from exc

    async def delete_all_for_gallery(
        self, gallery_id: UUID | str, folder_key: str
    ) -> GalleryPurgeReport:
        gallery_uuid = parse_uuid(gallery_id, "galleryId")
        report = GalleryPurgeReport()

        try:
            async with self._session_maker() as session:
                records = await file_record_service.list_file_records(session, gallery_uuid)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list files for gallery {gallery_uuid}: {exc}") from exc

        handled: set[str] = set()
        for record in records:
            handled.add(record.file_name)
            try:
                await self.delete_file(gallery_uuid, record.file_name)
            except StorageError:
                logger.warning("Could not delete %s during gallery purge", record.file_name, exc_info=True)
                report.failures.append(record.file_name)
            else:
                report.removed_count += 1

        # Sweep blobs in the folder that carry this gallery's id but have no record.
        # Folders can be shared by galleries whose names slugify alike.
        folder = self._root / check_plain_file_name(folder_key)
        for path in await asyncio.to_thread(self._list_folder, folder):
            if path.name in handled or not belongs_to_gallery(path.name, str(gallery_uuid)):
                continue
            try:
                await asyncio.to_thread(self._unlink, path)
            except OSError:
                logger.warning("Could not sweep %s", path, exc_info=True)
                report.failures.append(path.name)
            else:
                report.removed_count += 1

        try:
            await asyncio.to_thread(self._prune_folder, folder)
        except OSError:
            logger.debug("Folder %s not pruned", folder, exc_info=True)
        return report

    async def list_files(self, gallery_id: UUID | str | None = None) -> list[FileInfo]:
        gallery_uuid = parse_uuid(gallery_id, "galleryId") if gallery_id is not None else None
        async with self._session_maker() as session:
            records = await file_record_service.list_file_records(session, gallery_uuid)
        return [
            FileInfo(
                gallery_id=str(record.gallery_id),
                folder_key=record.folder_key,
                file_name=record.file_name,
                original_name=record.original_name,
                size=record.size,
                content_type=record.content_type,
                path=record.path,
                uploaded_at=record.created_at,
            )
            for record in records
        ]

    async def stats(self) -> StorageStats:
        async with self._session_maker() as session:
            total_files, total_size, gallery_count = await file_record_service.file_stats(session)
        return StorageStats(
            total_files=total_files,
            total_size_bytes=total_size,
            gallery_count=gallery_count,
        )

    # -- internal helpers --

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    @staticmethod
    def _unlink(path: Path) -> None:
        path.unlink(missing_ok=True)

    @staticmethod
    def _list_folder(folder: Path) -> list[Path]:
        if not folder.is_dir():
            return []
        return [p for p in folder.iterdir() if p.is_file()]

    def _find(self, file_name: str) -> list[Path]:
        if not self._root.exists():
            return []
        return [p for p in self._root.glob(f"*/{glob.escape(file_name)}") if p.is_file()]

    @staticmethod
    def _prune_folder(folder: Path) -> None:
        """Remove the gallery folder once nothing is left in it."""
        if folder.is_dir() and not any(folder.iterdir()):
            folder.rmdir()
