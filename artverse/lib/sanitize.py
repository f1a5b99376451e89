"""Folder keys and upload file names derived from gallery data."""

import re
import secrets
import time
from pathlib import PurePosixPath

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_DASH_RUN = re.compile(r"-+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

DEFAULT_EXTENSION = "jpg"
SUFFIX_LENGTH = 6


def slugify(name: str) -> str:
    """Turn a display name into a filesystem-safe folder key.

    ``"My Art!!"`` becomes ``"my-art"``. The result is not unique: different
    names may share a slug.
    """
    slug = _NON_ALNUM.sub("-", name.lower())
    slug = _DASH_RUN.sub("-", slug)
    return slug.strip("-")


def gallery_folder_key(name: str, gallery_id: str) -> str:
    """Storage folder for a gallery; falls back to the id when the name has no usable characters."""
    return slugify(name) or f"gallery-{gallery_id}"


def _random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def file_extension(original_name: str) -> str:
    suffix = PurePosixPath(original_name.replace("\\", "/")).suffix
    ext = suffix[1:].lower() if suffix else ""
    return ext if ext and ext.isalnum() else DEFAULT_EXTENSION


def generate_file_name(
    original_name: str,
    gallery_id: str,
    *,
    now_ms: int | None = None,
    suffix: str | None = None,
) -> str:
    """Build ``{gallery_id}-{unix_ms}-{suffix}.{ext}``.

    The gallery id prefix keeps names unique across galleries even when two
    galleries share a folder slug.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    if suffix is None:
        suffix = _random_suffix()
    return f"{gallery_id}-{now_ms}-{suffix}.{file_extension(original_name)}"


def belongs_to_gallery(file_name: str, gallery_id: str) -> bool:
    """Whether a generated file name was issued for *gallery_id*."""
    return file_name.startswith(f"{gallery_id}-")
