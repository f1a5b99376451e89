"""Pluggable upload storage."""

from artverse.lib.storage.base import (
    BaseStorageBackend,
    FileInfo,
    GalleryPurgeReport,
    StorageBackend,
    StorageStats,
    UploadedFile,
)
from artverse.lib.storage.factory import create_storage_backend
from artverse.lib.storage.local import LocalStorageBackend

__all__ = [
    "BaseStorageBackend",
    "FileInfo",
    "GalleryPurgeReport",
    "LocalStorageBackend",
    "StorageBackend",
    "StorageStats",
    "UploadedFile",
    "create_storage_backend",
]
