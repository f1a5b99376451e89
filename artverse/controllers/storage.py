"""Storage API: the blob endpoints consumed by remote backends and tooling."""

from __future__ import annotations

import logging
from typing import Annotated

from litestar import Controller, Request, get, post
from litestar.datastructures import UploadFile
from litestar.params import Parameter
from litestar.response import Response

from artverse.controllers.helpers import get_lifecycle
from artverse.lib.exceptions import StorageError, ValidationError
from artverse.lib.sanitize import gallery_folder_key
from artverse.lib.storage.base import StorageStats
from artverse.schemas import DeleteFileRequest, DeleteGalleryFolderRequest

logger = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> Response:
    return Response(
        content={"success": False, "error": message},
        status_code=status_code,
        media_type="application/json",
    )


class StorageController(Controller):
    """Upload, delete, list and stats over the configured storage backend."""

    path = "/"

    @post("/upload")
    async def upload(self, request: Request) -> Response:
        """Multipart upload: ``file``, ``galleryName``, ``galleryId`` and optional ``fileName``."""
        form = await request.form()
        upload = form.get("file")
        gallery_name = form.get("galleryName")
        gallery_id = form.get("galleryId")
        file_name = form.get("fileName") or None

        if not isinstance(upload, UploadFile) or not gallery_name or not gallery_id:
            return _error("Missing required fields", 400)

        storage = get_lifecycle(request).storage
        content = await upload.read()
        try:
            stored = await storage.upload(
                content,
                upload.content_type or "application/octet-stream",
                upload.filename or "untitled",
                gallery_folder_key(gallery_name, gallery_id),
                gallery_id,
                file_name=file_name,
            )
        except ValidationError as exc:
            return _error(exc.message, 400)
        except StorageError as exc:
            logger.error("Upload failed for gallery %s: %s", gallery_id, exc.message)
            return _error("Upload failed", 500)

        return Response(
            content={"success": True, "filePath": stored.path, "fileName": stored.file_name},
            status_code=200,
            media_type="application/json",
        )

    @post("/delete-file", status_code=200)
    async def delete_file(self, request: Request, data: DeleteFileRequest) -> Response:
        storage = get_lifecycle(request).storage
        try:
            await storage.delete_file(data.gallery_id, data.file_name)
        except ValidationError as exc:
            return _error(exc.message, 400)
        except StorageError as exc:
            logger.error("Delete of %s failed: %s", data.file_name, exc.message)
            return _error("Failed to delete file", 500)
        return Response(content={"success": True}, media_type="application/json")

    @post("/delete-gallery", status_code=200)
    async def delete_gallery(self, request: Request, data: DeleteGalleryFolderRequest) -> Response:
        storage = get_lifecycle(request).storage
        try:
            report = await storage.delete_all_for_gallery(
                data.gallery_id,
                gallery_folder_key(data.gallery_name, data.gallery_id),
            )
        except ValidationError as exc:
            return _error(exc.message, 400)
        except StorageError as exc:
            logger.error("Delete of gallery folder %s failed: %s", data.gallery_id, exc.message)
            return _error("Failed to delete gallery", 500)
        return Response(
            content={"success": True, **report.to_dict()},
            media_type="application/json",
        )

    @get("/files")
    async def list_files(
        self,
        request: Request,
        gallery_id: Annotated[str | None, Parameter(query="galleryId")] = None,
    ) -> Response:
        storage = get_lifecycle(request).storage
        try:
            files = await storage.list_files(gallery_id)
        except ValidationError as exc:
            return _error(exc.message, 400)
        return Response(
            content={"success": True, "files": [f.to_dict() for f in files]},
            media_type="application/json",
        )

    @get("/storage-stats")
    async def storage_stats(self, request: Request) -> Response:
        try:
            stats = await get_lifecycle(request).storage_stats()
        except StorageError:
            logger.warning("Storage stats unavailable", exc_info=True)
            stats = StorageStats()
        return Response(content=stats.to_dict(), media_type="application/json")
