"""Serializable result objects returned across the external boundary."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PartialCleanupWarning:
    """A backing file that could not be removed during a cascade."""

    file_name: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"fileName": self.file_name, "message": self.message}


@dataclass
class OperationResult:
    """``{success, error?, warnings?}`` envelope for orchestrator operations."""

    success: bool
    error: str | None = None
    warnings: list[PartialCleanupWarning] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, warnings: list[PartialCleanupWarning] | None = None, **data: Any) -> OperationResult:
        return cls(success=True, warnings=list(warnings or []), data=data)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, **self.data}
        if self.error is not None:
            payload["error"] = self.error
        if self.warnings:
            payload["warnings"] = [w.to_dict() for w in self.warnings]
        return payload


@dataclass
class GalleryDeletion:
    """Outcome of the cascading gallery delete.

    ``success`` refers to metadata consistency; ``file_failures`` lists blobs
    left behind for later cleanup.
    """

    gallery_id: str
    success: bool = True
    file_failures: list[str] = field(default_factory=list)
    removed_artworks: int = 0
    removed_files: int = 0
    warnings: list[PartialCleanupWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "galleryId": self.gallery_id,
            "fileFailures": list(self.file_failures),
            "removedArtworks": self.removed_artworks,
            "removedFiles": self.removed_files,
        }
        if self.warnings:
            payload["warnings"] = [w.to_dict() for w in self.warnings]
        return payload
