"""Async database session factory and FastAPI dependency.

Supports both PostgreSQL (production) and SQLite (local dev).
"""

from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from nemory.config import get_settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an engine, swapping SQLite URLs onto the aiosqlite driver."""
    db_url = database_url

    # SQLite: swap driver to aiosqlite and ensure the data directory exists
    if db_url.startswith("sqlite:///"):
        db_url = db_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        db_path = db_url.split("///")[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        return create_async_engine(db_url, echo=echo, connect_args={"check_same_thread": False})

    return create_async_engine(db_url, echo=echo, pool_pre_ping=True)


settings = get_settings()

engine = build_engine(settings.database_url, echo=settings.debug)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async database session."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
