"""Async database engine and session factory construction.

Nothing here is created at import time: the process entry point (the FastAPI
lifespan) builds the engine once, hands the session factory to the
repositories, and disposes the engine on shutdown.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from clubbook.core.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine. Pool sizing only applies to server databases."""
    kwargs: dict = {"echo": settings.database_echo, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(pool_size=20, max_overflow=10)
    return create_async_engine(settings.database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
