import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.ext.asyncio.session import async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.config import settings
from rentory.core.helpers.misc import DateTimeEncoder
from rentory.core.logging import get_logger

logger = get_logger(__name__)


def build_engine(url: str | None = None) -> AsyncEngine:
    """
    Create the async engine for ``url`` (defaults to the configured database).

    PostgreSQL gets a sized connection pool; SQLite (used by the test suite)
    gets a single shared connection when in memory since a new connection
    would see an empty database.
    """
    url = url or settings.SQLALCHEMY_DATABASE_URI
    options: dict[str, Any] = {
        "echo": settings.DATABASE_ECHO,
        "json_serializer": lambda obj: json.dumps(obj, cls=DateTimeEncoder),
    }

    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            options["poolclass"] = StaticPool
    else:
        options.update(
            pool_pre_ping=True,
            pool_recycle=settings.DATABASE_POOL_RECYCLE,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
        )

    return create_async_engine(url=url, **options)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine()

SessionLocal = build_sessionmaker(engine)


async def create_all_tables(bind: AsyncEngine | None = None) -> None:
    """Create every inventory table that does not exist yet."""
    import rentory.domain.models  # noqa: F401

    async with (bind or engine).begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    session = SessionLocal()
    try:
        yield session
    finally:
        try:
            await session.close()
        except Exception as e:
            logger.warning("Session unexpectedly closed", exc_info=e)


db_context_manager = asynccontextmanager(get_db_session)
