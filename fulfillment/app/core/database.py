"""
Declarative base and engine helpers for the reference order repository.

Engines are created on demand (never at import time) so tests can bind the
models to an in-memory SQLite database.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from fulfillment.app.core.settings import get_settings


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def make_engine(url: Optional[str] = None, **kwargs) -> AsyncEngine:
    """Create an async engine for DATABASE_URL (or an explicit url)."""
    return create_async_engine(
        url or get_settings().DATABASE_URL,
        echo=False,
        pool_pre_ping=True,
        **kwargs,
    )


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables registered on Base.metadata."""
    # Register mappers before create_all
    import fulfillment.app.models.order  # noqa: F401
    import fulfillment.app.models.product  # noqa: F401
    import fulfillment.app.models.user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
