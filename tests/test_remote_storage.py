"""Tests for the HTTP storage backend against a mocked transport."""

import json
from uuid import uuid4

import httpx
import pytest

from artverse.config import RemoteStorageConfig
from artverse.lib.exceptions import StorageError, ValidationError
from artverse.lib.storage.remote import RemoteStorageBackend

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def make_backend(handler, api_token=None):
    return RemoteStorageBackend(
        RemoteStorageConfig(base_url="http://storage.test", api_token=api_token),
        transport=httpx.MockTransport(handler),
    )


class TestRemoteUpload:
    @pytest.mark.asyncio
    async def test_posts_multipart_with_generated_name(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = request.read()
            return httpx.Response(200, json={"success": True, "filePath": "/uploads/galleries/my-art/x.png"})

        backend = make_backend(handler, api_token="s3cret")
        gallery_id = uuid4()
        stored = await backend.upload(PNG, "image/png", "x.png", "my-art", gallery_id)
        await backend.close()

        assert seen["path"] == "/upload"
        assert seen["auth"] == "Bearer s3cret"
        assert b'name="galleryId"' in seen["body"]
        assert str(gallery_id).encode() in seen["body"]
        assert stored.file_name.encode() in seen["body"]
        assert stored.path == "/uploads/galleries/my-art/x.png"

    @pytest.mark.asyncio
    async def test_validation_happens_before_any_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"success": True})

        backend = make_backend(handler)
        with pytest.raises(ValidationError):
            await backend.upload(b"%PDF", "application/pdf", "a.pdf", "my-art", uuid4())
        await backend.close()
        assert calls == []

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        backend = make_backend(lambda request: httpx.Response(503, json={"success": False, "error": "busy"}))
        with pytest.raises(StorageError) as exc_info:
            await backend.upload(PNG, "image/png", "x.png", "my-art", uuid4())
        await backend.close()
        assert exc_info.value.transient is True
        assert exc_info.value.message == "busy"

    @pytest.mark.asyncio
    async def test_client_error_is_permanent(self):
        backend = make_backend(lambda request: httpx.Response(400, json={"success": False, "error": "nope"}))
        with pytest.raises(StorageError) as exc_info:
            await backend.upload(PNG, "image/png", "x.png", "my-art", uuid4())
        await backend.close()
        assert exc_info.value.transient is False

    @pytest.mark.asyncio
    async def test_connection_failure_becomes_storage_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        backend = make_backend(handler)
        with pytest.raises(StorageError):
            await backend.upload(PNG, "image/png", "x.png", "my-art", uuid4())
        await backend.close()


class TestRemoteDeletes:
    @pytest.mark.asyncio
    async def test_delete_file_sends_json(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["json"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        backend = make_backend(handler)
        gallery_id = uuid4()
        await backend.delete_file(gallery_id, "f1.png")
        await backend.close()

        assert seen["path"] == "/delete-file"
        assert seen["json"] == {"galleryId": str(gallery_id), "fileName": "f1.png"}

    @pytest.mark.asyncio
    async def test_delete_all_reads_report(self):
        def handler(request):
            assert request.url.path == "/delete-gallery"
            return httpx.Response(200, json={"success": True, "removedCount": 2, "failures": ["f3.png"]})

        backend = make_backend(handler)
        report = await backend.delete_all_for_gallery(uuid4(), "my-art")
        await backend.close()

        assert report.removed_count == 2
        assert report.failures == ["f3.png"]


class TestRemoteQueries:
    @pytest.mark.asyncio
    async def test_list_files(self):
        gallery_id = str(uuid4())

        def handler(request):
            assert request.url.params["galleryId"] == gallery_id
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "files": [
                        {
                            "galleryId": gallery_id,
                            "galleryFolder": "my-art",
                            "fileName": "a.png",
                            "originalName": "A.png",
                            "size": 12,
                            "type": "image/png",
                            "filePath": "/uploads/galleries/my-art/a.png",
                            "uploadedAt": "2026-01-02T03:04:05+00:00",
                        }
                    ],
                },
            )

        backend = make_backend(handler)
        files = await backend.list_files(gallery_id)
        await backend.close()

        assert len(files) == 1
        assert files[0].file_name == "a.png"
        assert files[0].uploaded_at.year == 2026

    @pytest.mark.asyncio
    async def test_stats(self):
        backend = make_backend(
            lambda request: httpx.Response(200, json={"totalFiles": 4, "totalSize": 400, "galleriesCount": 2})
        )
        stats = await backend.stats()
        await backend.close()

        assert (stats.total_files, stats.total_size_bytes, stats.gallery_count) == (4, 400, 2)
