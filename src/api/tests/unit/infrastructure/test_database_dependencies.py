"""Unit tests for the application database engine singleton."""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from infrastructure.database.dependencies import (
    close_database_connections,
    get_registry_engine,
    get_registry_sessionmaker,
)


@pytest.mark.asyncio
async def test_engine_is_a_singleton():
    first = get_registry_engine()
    second = get_registry_engine()

    assert isinstance(first, AsyncEngine)
    assert first is second
    await close_database_connections()


@pytest.mark.asyncio
async def test_sessionmaker_is_bound_to_engine():
    sessionmaker = get_registry_sessionmaker()

    assert isinstance(sessionmaker, async_sessionmaker)
    assert sessionmaker.kw["bind"] is get_registry_engine()
    await close_database_connections()


@pytest.mark.asyncio
async def test_close_allows_reinitialization():
    first = get_registry_engine()

    await close_database_connections()

    assert get_registry_engine() is not first
    await close_database_connections()
