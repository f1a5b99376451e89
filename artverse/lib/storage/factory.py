"""Storage backend selection from configuration."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import TYPE_CHECKING

from artverse.lib.storage.local import LocalStorageBackend
from artverse.lib.validation import AssetPolicy

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from artverse.config import StorageConfig
    from artverse.lib.storage.base import StorageBackend


def create_storage_backend(
    config: StorageConfig,
    session_maker: async_sessionmaker[AsyncSession],
) -> StorageBackend:
    """Instantiate a storage backend from configuration."""
    backend_type = config.backend
    policy = AssetPolicy.from_config(config)

    if backend_type == "local":
        return LocalStorageBackend(
            root=Path(config.local_path),
            session_maker=session_maker,
            base_upload_path=config.base_upload_path,
            policy=policy,
        )

    if backend_type == "remote":
        from artverse.lib.storage.remote import RemoteStorageBackend

        return RemoteStorageBackend(
            config.remote,
            base_upload_path=config.base_upload_path,
            policy=policy,
            timeout=config.timeout,
        )

    # Dynamic import: "module:ClassName"
    if ":" in backend_type:
        parts = backend_type.split(":")
        if len(parts) != 2:
            raise ValueError(
                f"Invalid backend spec '{backend_type}': must contain exactly one colon"
            )
        module_path, class_name = parts
        module = importlib.import_module(module_path)
        cls = getattr(module, class_name)
        return cls(config=config, session_maker=session_maker)

    raise ValueError(
        f"Unknown storage backend '{backend_type}'. "
        "Use 'local', 'remote', or 'module:ClassName'."
    )
