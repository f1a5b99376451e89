import logging
from pathlib import Path

from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    EngineConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyPlugin,
)
from litestar import Litestar
from litestar.exceptions import HTTPException
from litestar.static_files import create_static_files_router

from artverse.config import Settings, get_settings
from artverse.controllers import (
    ArtworkController,
    DataController,
    GalleryController,
    StorageController,
    UserController,
)
from artverse.db.base import Base
from artverse.db.repository import EntityRepository
from artverse.lib import observability
from artverse.lib.exceptions import (
    ArtverseError,
    artverse_exception_handler,
    http_exception_handler,
    internal_server_error_handler,
)
from artverse.lib.storage import create_storage_backend
from artverse.lifecycle import LifecycleOrchestrator

logger = logging.getLogger(__name__)

EXCEPTION_HANDLERS = {
    ArtverseError: artverse_exception_handler,
    HTTPException: http_exception_handler,
    Exception: internal_server_error_handler,
}


def create_db_config(settings: Settings) -> SQLAlchemyAsyncConfig:
    if "sqlite" in settings.db.url:
        engine_config = EngineConfig(echo=settings.db.echo)
    else:
        engine_config = EngineConfig(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.pool_overflow,
            pool_timeout=settings.db.pool_timeout,
            echo=settings.db.echo,
        )

    import artverse.db.models  # noqa: F401  register all models on Base

    return SQLAlchemyAsyncConfig(
        connection_string=settings.db.url,
        metadata=Base.metadata,
        create_all=True,
        session_config=AsyncSessionConfig(expire_on_commit=False),
        engine_config=engine_config,
    )


def create_app(settings: Settings | None = None) -> Litestar:
    """Create and configure the Litestar application."""
    settings = settings or get_settings()
    logging.getLogger("artverse").setLevel(settings.log_level.upper())

    observability.configure(settings)
    observability.instrument_httpx()

    db_config = create_db_config(settings)

    # Uploaded images are served straight from disk when stored locally
    route_handlers: list = [
        StorageController,
        UserController,
        GalleryController,
        ArtworkController,
        DataController,
    ]
    if settings.storage.backend == "local":
        upload_dir = Path(settings.storage.local_path)
        upload_dir.mkdir(parents=True, exist_ok=True)
        route_handlers.append(
            create_static_files_router(
                path=settings.storage.base_upload_path,
                directories=[upload_dir],
            )
        )

    async def on_startup(app: Litestar) -> None:
        """Build the repository, storage backend and orchestrator."""
        session_maker = db_config.create_session_maker()
        storage = create_storage_backend(settings.storage, session_maker)
        repository = EntityRepository(
            session_maker,
            max_artworks_per_gallery=settings.lifecycle.max_artworks_per_gallery,
        )
        app.state.lifecycle = LifecycleOrchestrator(repository, storage, settings=settings)
        logger.info("Storage backend %r ready", settings.storage.backend)

    async def on_shutdown(app: Litestar) -> None:
        lifecycle = app.state.get("lifecycle")
        if lifecycle is not None:
            await lifecycle.storage.close()

    app = Litestar(
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        route_handlers=route_handlers,
        plugins=[SQLAlchemyPlugin(config=db_config)],
        exception_handlers=EXCEPTION_HANDLERS,
        # Oversized uploads are rejected by AssetPolicy, not the body limit
        request_max_body_size=settings.storage.max_upload_size * 2,
        debug=settings.debug,
    )
    return app


def create_asgi_app():
    """Application wrapped with request instrumentation when enabled."""
    return observability.instrument_app(create_app())
