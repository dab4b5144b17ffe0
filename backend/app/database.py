"""Database engine, session factory, and declarative base.

One DeclarativeBase for every table in the receiving schema.

Two ways to get a session:
  - get_db()         → async generator for request-scoped injection
  - session_scope()  → async context manager for scripts and the CLI

Both commit when the block finishes and roll back on any exception, so a
recompute that fails halfway never leaves partial rows behind.  Services
only ever flush().
"""

from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base for every receiving-schema model."""
    pass


# ── Session dependencies ────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a session wrapped in a single transaction."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def session_scope(session_factory=async_session):
    """Same contract as get_db() for code that is not request-driven."""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_all() -> None:
    """Create every table (development and tests; production uses Alembic)."""
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
