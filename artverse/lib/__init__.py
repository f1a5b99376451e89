from artverse.lib.exceptions import (
    ArtverseError,
    DuplicateOwnerError,
    NotFoundError,
    QuotaExceededError,
    StorageError,
    ValidationError,
)
from artverse.lib.results import GalleryDeletion, OperationResult, PartialCleanupWarning
from artverse.lib.sanitize import generate_file_name, slugify

__all__ = [
    "ArtverseError",
    "DuplicateOwnerError",
    "GalleryDeletion",
    "NotFoundError",
    "OperationResult",
    "PartialCleanupWarning",
    "QuotaExceededError",
    "StorageError",
    "ValidationError",
    "generate_file_name",
    "slugify",
]
