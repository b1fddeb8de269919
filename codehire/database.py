"""
CodeHire – Async SQLAlchemy engine, session, and declarative base.
"""

from __future__ import annotations

import asyncio
import functools
import logging

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from codehire.config import settings
from codehire.errors import StoreTimeoutError, TransientStoreError

logger = logging.getLogger(__name__)

# ── Engine ──
engine_kwargs = {
    "echo": settings.DEBUG and settings.LOG_LEVEL.upper() == "DEBUG",
    "future": True,
}

# If using PostgreSQL (Render/Supabase), disable prepared statement caching
# because PgBouncer (transaction mode) does not support it properly.
if "postgresql" in settings.DATABASE_URL:
    engine_kwargs["connect_args"] = {
        "statement_cache_size": 0,
        "timeout": settings.STORE_TIMEOUT_SECONDS,
    }
    engine_kwargs["pool_timeout"] = settings.STORE_TIMEOUT_SECONDS

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_kwargs
)

# ── Session factory ──
async_session = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Declarative base ──
class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ── Dependency for FastAPI routes ──
async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async database session, auto-closed on exit."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── Bounded store calls ──
def store_operation(fn):
    """
    Run a coroutine that talks to the store under ``STORE_TIMEOUT_SECONDS``.

    A timeout surfaces as ``StoreTimeoutError`` and a dropped or refused
    connection as ``TransientStoreError``; both are retryable by the caller.
    Constraint violations are left for the operation itself to interpret.
    """

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        timeout = settings.STORE_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(fn(*args, **kwargs), timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Store operation %s timed out after %ss", fn.__qualname__, timeout)
            raise StoreTimeoutError(timeout=timeout) from exc
        except IntegrityError:
            raise
        except (OperationalError, InterfaceError) as exc:
            logger.error("Store operation %s failed: %s", fn.__qualname__, exc)
            raise TransientStoreError("The data store is temporarily unavailable.") from exc

    return wrapper
