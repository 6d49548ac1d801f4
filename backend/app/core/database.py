"""
Database connection and session management.

Sets up the async SQLAlchemy engine and session factory and provides
the request-scoped session dependency.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def _engine_options(url: str) -> dict[str, object]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}


DATABASE_URL = str(settings.DATABASE_URL)

async_engine = create_async_engine(
    DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session for one request.

    Services only flush; the transaction is committed here once the
    endpoint returns and rolled back if it raised.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Create all tables from ORM metadata.

    Development and tests only; production schema is managed by Alembic.
    """
    from app.models import Base

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
