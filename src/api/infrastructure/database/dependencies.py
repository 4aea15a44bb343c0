"""Database engine and session factory for the application database.

The engine is created lazily on first use and disposed on shutdown. The
tenant registry repository opens its own short-lived sessions from the
shared sessionmaker.
"""

from __future__ import annotations

import threading

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_registry_engine
from infrastructure.observability import DefaultDatabaseProbe
from infrastructure.settings import get_database_settings

# Module-level probe for observability
_probe = DefaultDatabaseProbe()

# Module-level engine and sessionmaker (created on first use)
_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None

# Thread lock for safe engine initialization
_engine_lock = threading.Lock()


def get_registry_engine() -> AsyncEngine:
    """Get the application database engine (singleton).

    Uses double-check locking for thread-safe initialization and creates
    the sessionmaker together with the engine.
    """
    global _engine, _sessionmaker
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                settings = get_database_settings()
                _engine = create_registry_engine(settings)
                _sessionmaker = async_sessionmaker(
                    _engine,
                    expire_on_commit=False,
                    class_=AsyncSession,
                )
                _probe.engine_created(
                    host=settings.host,
                    database=settings.database,
                    pool_size=settings.pool_min_connections,
                    max_pool_size=settings.pool_max_connections,
                )
    return _engine


def get_registry_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the sessionmaker bound to the application database engine."""
    get_registry_engine()
    assert _sessionmaker is not None
    return _sessionmaker


async def close_database_connections() -> None:
    """Dispose the engine on application shutdown.

    Also resets the sessionmaker to allow reinitialization.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _probe.engine_disposed()
        _engine = None
        _sessionmaker = None
