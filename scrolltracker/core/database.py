import ssl
from collections.abc import AsyncGenerator
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from scrolltracker.config import get_settings
from scrolltracker.core.logging import get_logger

logger = get_logger(__name__)

settings = get_settings()

LOCAL_HOSTS = ("localhost", "127.0.0.1", "db")


def fix_database_url(url: str) -> tuple[str, dict[str, Any]]:
    """
    Normalize a Postgres connection URL for asyncpg.

    Managed Postgres providers hand out URLs with libpq params like sslmode
    and channel_binding that asyncpg doesn't accept. We strip them and
    handle SSL via connect_args.

    - Remote hosts: SSL with default context
    - Local dev (localhost/127.0.0.1/db) and SQLite: no SSL
    """
    if url.startswith("sqlite"):
        return url, {}

    parsed = urlparse(url)
    params = parse_qs(parsed.query)

    for param in ["sslmode", "channel_binding", "options"]:
        params.pop(param, None)

    new_query = urlencode(params, doseq=True)
    clean_url = urlunparse(parsed._replace(query=new_query))

    hostname = parsed.hostname or ""
    if hostname in LOCAL_HOSTS:
        return clean_url, {}
    return clean_url, {"ssl": ssl.create_default_context()}


clean_url, connect_args = fix_database_url(settings.database_url)

engine_kwargs: dict[str, Any] = {"echo": settings.debug, "connect_args": connect_args}
if not clean_url.startswith("sqlite"):
    engine_kwargs.update(
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=280,  # Recycle before managed Postgres' 5min idle timeout
    )

engine = create_async_engine(clean_url, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except HTTPException:
            # Client errors (401/404) are not storage failures
            await session.rollback()
            raise
        except Exception as e:
            logger.bind(error=str(e)).error("database_transaction_rollback")
            await session.rollback()
            raise
