"""Engine and session maker construction outside the Litestar plugin (CLI, tests)."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from artverse.config import DatabaseConfig
from artverse.db.base import Base


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    if "sqlite" in config.url:
        return create_async_engine(config.url, echo=config.echo)
    return create_async_engine(
        config.url,
        echo=config.echo,
        pool_size=config.pool_size,
        max_overflow=config.pool_overflow,
        pool_timeout=config.pool_timeout,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Entities are handed back to callers after the session closes
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    import artverse.db.models  # noqa: F401  register all models on Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
