"""Shared pytest fixtures."""

from pathlib import Path

import pytest
import yaml

from artverse.config import (
    DatabaseConfig,
    LifecycleConfig,
    Settings,
    StorageConfig,
    clear_settings_cache,
)
from artverse.db.repository import EntityRepository
from artverse.db.session import create_engine, create_session_maker, create_tables
from artverse.lib.retry import RetryPolicy
from artverse.lib.storage.local import LocalStorageBackend
from artverse.lib.validation import AssetPolicy
from artverse.lifecycle import FileUpload, LifecycleOrchestrator

# Content is never decoded; only type and size are checked
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def temp_app_yaml(tmp_path):
    """Create a temporary app.yaml file for testing."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        return config_path

    return _create_config


@pytest.fixture(autouse=True)
def clean_settings():
    """Keep cached settings from leaking between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        db=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'artverse.db'}"),
        storage=StorageConfig(
            local_path=str(tmp_path / "uploads"),
            timeout=5,
            retries=1,
            backoff_base=0,
            backoff_max=0,
        ),
        lifecycle=LifecycleConfig(),
    )


@pytest.fixture
async def engine(settings):
    engine = create_engine(settings.db)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest.fixture
def repository(session_maker):
    return EntityRepository(session_maker)


@pytest.fixture
def upload_root(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def storage(session_maker, upload_root):
    return LocalStorageBackend(root=upload_root, session_maker=session_maker)


@pytest.fixture
def retry_policy():
    return RetryPolicy(timeout=5, retries=1, backoff_base=0, backoff_max=0)


@pytest.fixture
def lifecycle(repository, storage, settings, retry_policy):
    return LifecycleOrchestrator(
        repository,
        storage,
        settings=settings,
        policy=AssetPolicy(),
        retry_policy=retry_policy,
    )


@pytest.fixture
async def owner(lifecycle):
    return await lifecycle.register_user("Ada Lovelace", "ada@example.com", accepted_terms=True)


@pytest.fixture
async def gallery(lifecycle, owner):
    return await lifecycle.create_gallery(owner.id, "My Art!!", "Sketches and studies")


@pytest.fixture
def png_upload():
    def _make(name: str = "piece.png") -> FileUpload:
        return FileUpload(data=PNG_BYTES, content_type="image/png", original_name=name)

    return _make
