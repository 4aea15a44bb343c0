"""Dependency injection for the datasources bounded context.

Composes infrastructure (registry repository, credential cipher, client
factory) with the application layer into the single process-wide
DataSourceManager, and exposes it to request handlers.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from datasources.application.manager import DataSourceManager
from datasources.application.pool_manager import ConnectionPoolManager
from datasources.application.registry import TenantRegistry
from datasources.domain.value_objects import ConnectionConfig, PoolConfiguration
from datasources.infrastructure.client_factory import RestDataSourceClientFactory
from datasources.infrastructure.encryption import CredentialCipher
from datasources.infrastructure.tenant_registry_repository import (
    TenantRegistryRepository,
)
from infrastructure.settings import DataSourceSettings


def default_connection_config(settings: DataSourceSettings) -> ConnectionConfig | None:
    """Build the shared default data source config, or None if not configured."""
    if not settings.has_default_data_source:
        return None
    assert settings.default_url is not None
    assert settings.default_anon_key is not None
    assert settings.default_service_key is not None
    return ConnectionConfig(
        url=settings.default_url,
        anon_key=settings.default_anon_key,
        service_key=settings.default_service_key,
        region=settings.default_region,
        is_default=True,
    )


def pool_configuration(settings: DataSourceSettings) -> PoolConfiguration:
    return PoolConfiguration(
        max_clients=settings.max_clients,
        enable_metrics=settings.enable_metrics,
        eviction_policy=settings.eviction_policy,
        config_cache_ttl_seconds=settings.config_cache_ttl_seconds,
        client_cache_ttl_seconds=settings.client_cache_ttl_seconds,
        cache_cleanup_interval_seconds=settings.cache_cleanup_interval_seconds,
        resolution_timeout_seconds=settings.resolution_timeout_seconds,
        retired_client_grace_seconds=settings.client_timeout_seconds,
    )


def create_data_source_manager(
    settings: DataSourceSettings,
    session_factory: async_sessionmaker[AsyncSession],
) -> DataSourceManager:
    """Build the process-wide DataSourceManager from settings.

    Args:
        settings: Data-source routing settings
        session_factory: Sessions on the application database holding the
            tenant registry

    Raises:
        ValueError: If the configured encryption key is malformed.
    """
    cipher = None
    if settings.encryption_key is not None:
        cipher = CredentialCipher(settings.encryption_key.get_secret_value())

    default_config = default_connection_config(settings)
    registry = TenantRegistry(
        repository=TenantRegistryRepository(session_factory=session_factory),
        default_config=default_config,
        cipher=cipher,
    )
    client_factory = RestDataSourceClientFactory(
        timeout_seconds=settings.client_timeout_seconds,
    )
    pool = ConnectionPoolManager(
        registry=registry,
        client_factory=client_factory,
        configuration=pool_configuration(settings),
    )
    return DataSourceManager(
        pool=pool,
        client_factory=client_factory,
        default_config=default_config,
        credentials_encrypted=cipher is not None,
    )


def get_data_source_manager(request: Request) -> DataSourceManager:
    """Get the DataSourceManager created during application startup.

    Raises:
        HTTPException 503: If the application has not finished starting.
    """
    manager = getattr(request.app.state, "data_source_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Data source manager is not initialized",
        )
    return manager
