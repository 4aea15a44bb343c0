"""Async SQLAlchemy engine for the application database.

The application database hosts the tenant registry. It is only read on
config-cache misses, so the pool keeps ``pool_min_connections`` warm and
bursts up to ``pool_max_connections`` during cold starts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from infrastructure.settings import DatabaseSettings

__all__ = [
    "APPLICATION_NAME",
    "build_async_url",
    "create_registry_engine",
]

APPLICATION_NAME = "crm-tenant-router"

# Recycle before typical managed-Postgres idle timeouts drop the socket.
POOL_RECYCLE_SECONDS = 1800


def create_registry_engine(settings: DatabaseSettings) -> AsyncEngine:
    """Create the engine used for tenant registry reads.

    Args:
        settings: Application database settings

    Returns:
        Async engine on the asyncpg driver
    """
    return create_async_engine(
        build_async_url(settings),
        pool_size=settings.pool_min_connections,
        max_overflow=settings.pool_max_connections - settings.pool_min_connections,
        pool_pre_ping=True,
        pool_recycle=POOL_RECYCLE_SECONDS,
        connect_args={"server_settings": {"application_name": APPLICATION_NAME}},
    )


def build_async_url(settings: DatabaseSettings) -> str:
    """Render the asyncpg URL, percent-encoding the credentials."""
    return URL.create(
        drivername="postgresql+asyncpg",
        username=settings.username,
        password=settings.password.get_secret_value(),
        host=settings.host,
        port=settings.port,
        database=settings.database,
    ).render_as_string(hide_password=False)
