"""Storage backend that delegates to another Artverse server's storage API."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import httpx

from artverse.lib.exceptions import StorageError
from artverse.lib.storage.base import (
    BaseStorageBackend,
    FileInfo,
    GalleryPurgeReport,
    StorageStats,
)
from artverse.lib.validation import AssetPolicy, check_plain_file_name, parse_uuid

if TYPE_CHECKING:
    from artverse.config import RemoteStorageConfig


class RemoteStorageBackend(BaseStorageBackend):
    """Talk to ``/upload``, ``/delete-file``, ``/delete-gallery``, ``/files`` and ``/storage-stats``.

    Validation and file naming happen locally before any request is sent; the
    remote side keeps the file records.
    """

    def __init__(
        self,
        config: RemoteStorageConfig,
        base_upload_path: str = "/uploads/galleries",
        policy: AssetPolicy | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_upload_path, policy)
        self._config = config
        headers = {}
        if config.api_token:
            headers["Authorization"] = f"Bearer {config.api_token}"
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise StorageError(f"{method} {url} timed out") from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"{method} {url} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error or payload.get("success") is False:
            message = payload.get("error") or f"{method} {url} returned {response.status_code}"
            # 4xx means the request itself was rejected; retrying will not help
            transient = response.status_code >= 500 or response.status_code == 429
            raise StorageError(message, transient=transient)
        return payload

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
        payload = await self._request(
            "POST",
            "/upload",
            files={"file": (original_name or file_name, data, content_type)},
            data={
                "galleryName": folder_key,
                "galleryId": str(gallery_id),
                "fileName": file_name,
            },
        )
        return payload.get("filePath") or path

    async def delete_file(self, gallery_id: UUID | str, file_name: str) -> None:
        gallery_uuid = parse_uuid(gallery_id, "galleryId")
        await self._request(
            "POST",
            "/delete-file",
            json={"galleryId": str(gallery_uuid), "fileName": check_plain_file_name(file_name)},
        )

    async def delete_all_for_gallery(
        self, gallery_id: UUID | str, folder_key: str
    ) -> GalleryPurgeReport:
        gallery_uuid = parse_uuid(gallery_id, "galleryId")
        payload = await self._request(
            "POST",
            "/delete-gallery",
            json={"galleryId": str(gallery_uuid), "galleryName": folder_key},
        )
        return GalleryPurgeReport(
            removed_count=int(payload.get("removedCount", 0)),
            failures=list(payload.get("failures", [])),
        )

    async def list_files(self, gallery_id: UUID | str | None = None) -> list[FileInfo]:
        params = {}
        if gallery_id is not None:
            params["galleryId"] = str(parse_uuid(gallery_id, "galleryId"))
        payload = await self._request("GET", "/files", params=params)
        return [
            FileInfo(
                gallery_id=item["galleryId"],
                folder_key=item.get("galleryFolder", ""),
                file_name=item["fileName"],
                original_name=item.get("originalName", ""),
                size=int(item.get("size", 0)),
                content_type=item.get("type", ""),
                path=item.get("filePath", ""),
                uploaded_at=datetime.fromisoformat(item["uploadedAt"]) if item.get("uploadedAt") else None,
            )
            for item in payload.get("files", [])
        ]

    async def stats(self) -> StorageStats:
        payload = await self._request("GET", "/storage-stats")
        return StorageStats(
            total_files=int(payload.get("totalFiles", 0)),
            total_size_bytes=int(payload.get("totalSize", 0)),
            gallery_count=int(payload.get("galleriesCount", 0)),
        )

    async def close(self) -> None:
        await self._client.aclose()
