"""File record service: bookkeeping for blobs written by the storage backends."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, delete, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from artverse.db.models.file_record import FileRecord


async def add_file_record(
    db_session: AsyncSession,
    gallery_id: UUID,
    folder_key: str,
    file_name: str,
    original_name: str,
    size: int,
    content_type: str,
    path: str,
) -> FileRecord:
    """Insert a record for a freshly written blob."""
    record = FileRecord(
        gallery_id=gallery_id,
        folder_key=folder_key,
        file_name=file_name,
        original_name=original_name,
        size=size,
        content_type=content_type,
        path=path,
    )
    db_session.add(record)
    await db_session.commit()
    await db_session.refresh(record)
    return record


async def get_file_record(
    db_session: AsyncSession,
    gallery_id: UUID,
    file_name: str,
) -> FileRecord | None:
    result = await db_session.execute(
        select(FileRecord).where(
            and_(FileRecord.gallery_id == gallery_id, FileRecord.file_name == file_name)
        )
    )
    return result.scalar_one_or_none()


async def list_file_records(
    db_session: AsyncSession,
    gallery_id: UUID | None = None,
) -> list[FileRecord]:
    """List file records, optionally for a single gallery."""
    query = select(FileRecord)
    if gallery_id is not None:
        query = query.where(FileRecord.gallery_id == gallery_id)
    query = query.order_by(FileRecord.created_at.asc())

    result = await db_session.execute(query)
    return list(result.scalars().all())


async def delete_file_record(
    db_session: AsyncSession,
    gallery_id: UUID,
    file_name: str,
) -> bool:
    """Remove one record. Returns False when it did not exist."""
    result = await db_session.execute(
        delete(FileRecord).where(
            and_(FileRecord.gallery_id == gallery_id, FileRecord.file_name == file_name)
        )
    )
    await db_session.commit()
    return (result.rowcount or 0) > 0


async def file_stats(db_session: AsyncSession) -> tuple[int, int, int]:
    """Return ``(total_files, total_size, gallery_count)`` over all records."""
    result = await db_session.execute(
        select(
            func.count(FileRecord.id),
            func.coalesce(func.sum(FileRecord.size), 0),
            func.count(distinct(FileRecord.gallery_id)),
        )
    )
    total_files, total_size, gallery_count = result.one()
    return int(total_files or 0), int(total_size or 0), int(gallery_count or 0)
