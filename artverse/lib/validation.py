"""Upload admission policy."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from artverse.config import DEFAULT_ALLOWED_TYPES, DEFAULT_MAX_UPLOAD_SIZE, StorageConfig
from artverse.lib.exceptions import ValidationError


@dataclass(frozen=True)
class AssetPolicy:
    """MIME type allow-list and size ceiling applied before anything is stored."""

    allowed_types: frozenset[str] = field(default_factory=lambda: frozenset(DEFAULT_ALLOWED_TYPES))
    max_size: int = DEFAULT_MAX_UPLOAD_SIZE

    @classmethod
    def from_config(cls, config: StorageConfig) -> AssetPolicy:
        return cls(allowed_types=frozenset(config.allowed_types), max_size=config.max_upload_size)

    def validate(self, content_type: str, size: int) -> None:
        """Raise :class:`ValidationError` if the file may not be admitted."""
        if content_type not in self.allowed_types:
            allowed = ", ".join(sorted(self.allowed_types))
            raise ValidationError(
                f"Invalid file type {content_type!r}. Allowed types: {allowed}",
                reason="type",
            )
        if size > self.max_size:
            limit_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                f"File too large. Maximum size: {limit_mb:.1f}MB",
                reason="size",
            )

    def is_acceptable(self, content_type: str, size: int) -> bool:
        try:
            self.validate(content_type, size)
        except ValidationError:
            return False
        return True


def parse_uuid(value: UUID | str, field_name: str = "id") -> UUID:
    """Coerce an identifier from the wire, rejecting malformed values."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field_name}: {value!r}") from None


def check_plain_file_name(file_name: str) -> str:
    """Reject names that could escape the gallery folder."""
    if not file_name or "/" in file_name or "\\" in file_name or file_name in (".", ".."):
        raise ValidationError(f"Invalid file name: {file_name!r}")
    return file_name
