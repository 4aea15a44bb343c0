"""Data-source manager.

The single entry point the rest of the application uses to reach tenant
data sources. It composes the connection pool manager and the client
factory and adds no failure modes of its own: registry, config, capacity
and timeout errors propagate unchanged.
"""

from __future__ import annotations

import time
from typing import Any

from datasources.application.observability import (
    DataSourceManagerProbe,
    DefaultDataSourceManagerProbe,
)
from datasources.application.pool_manager import ConnectionPoolManager
from datasources.domain.value_objects import (
    ClientRole,
    ConnectionConfig,
    ConnectionInfo,
    ConnectionTestResult,
    PoolConfiguration,
    PoolMetrics,
)
from datasources.ports.clients import DataSourceClientFactory
from datasources.ports.exceptions import (
    ConfigNotFoundError,
    DataSourceQueryError,
    DataSourceUnreachableError,
)
from shared_kernel.single_flight import SingleFlight

PUBLIC_CLIENT_KEY = "public"


class DataSourceManager:
    """Façade over tenant data-source resolution and the client cache.

    One instance is built at application startup and shared by every
    request. All per-tenant state lives in the pool manager's caches.
    """

    def __init__(
        self,
        pool: ConnectionPoolManager,
        client_factory: DataSourceClientFactory,
        default_config: ConnectionConfig | None = None,
        credentials_encrypted: bool = True,
        probe: DataSourceManagerProbe | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            pool: Config and client caches
            client_factory: Used for connection tests and the public client
            default_config: Shared default data source, if configured
            credentials_encrypted: Whether stored keys are decrypted on read
            probe: Optional domain probe for observability
        """
        self._pool = pool
        self._factory = client_factory
        self._default_config = default_config
        self._credentials_encrypted = credentials_encrypted
        self._probe = probe or DefaultDataSourceManagerProbe()
        self._public_client: Any | None = None
        self._public_flight: SingleFlight[str, Any] = SingleFlight()

    async def start(self) -> None:
        """Start background cache maintenance."""
        if not self._credentials_encrypted:
            self._probe.plaintext_credentials_in_use()
        if self._default_config is None:
            self._probe.default_data_source_missing()
        self._pool.start_sweeper()
        configuration = self._pool.configuration
        self._probe.manager_started(
            configuration.max_clients, configuration.eviction_policy
        )

    async def close(self) -> None:
        """Stop maintenance and close every client, including the public one."""
        await self._pool.close()
        if self._public_client is not None:
            client, self._public_client = self._public_client, None
            await self._factory.close_client(client)
        self._probe.manager_closed()

    async def get_client_for_tenant(
        self, tenant_id: str, role: ClientRole = ClientRole.SERVICE
    ) -> Any:
        """Return a client bound to the tenant's data source."""
        return await self._pool.get_client(tenant_id, role)

    async def get_local_tenant_id(self, tenant_id: str) -> str:
        """Return the tenant's identifier inside its data source."""
        resolved = await self._pool.get_config(tenant_id)
        return resolved.tenant_id_in_data_source

    async def get_connection_info(self, tenant_id: str) -> ConnectionInfo:
        """Describe where the tenant's data lives. Never includes keys."""
        is_cached = self._pool.is_config_cached(tenant_id)
        resolved = await self._pool.get_config(tenant_id, record_lookup=False)
        config = resolved.config
        return ConnectionInfo(
            url=config.url,
            region=config.region,
            pool_config=config.pool_config,
            is_default=config.is_default,
            is_cached=is_cached,
            cache_expires_in_seconds=self._pool.config_expires_in(tenant_id),
        )

    async def test_connection(self, tenant_id: str) -> ConnectionTestResult:
        """Run a one-row tenant-scoped query and report the outcome.

        Failures are reported in the result rather than raised.
        """
        started = time.perf_counter()
        can_connect = False
        can_query = False
        error: str | None = None
        try:
            client = await self._pool.get_client(tenant_id)
            local_tenant_id = await self.get_local_tenant_id(tenant_id)
            await self._factory.verify_client(client, local_tenant_id)
            can_connect = True
            can_query = True
        except DataSourceQueryError as e:
            can_connect = True
            error = str(e)
        except DataSourceUnreachableError as e:
            error = str(e)
        except Exception as e:
            error = str(e) or type(e).__name__

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        if error is None:
            self._probe.connection_test_succeeded(tenant_id, elapsed_ms)
        else:
            self._probe.connection_test_failed(tenant_id, elapsed_ms, error)
        return ConnectionTestResult(
            success=error is None,
            response_time_ms=elapsed_ms,
            can_connect=can_connect,
            can_query=can_query,
            error=error,
        )

    async def get_public_client(self) -> Any:
        """Return the shared anon-role client for the default data source.

        This client serves unauthenticated public pages. It is held apart
        from the tenant caches and never carries the service key.

        Raises:
            ConfigNotFoundError: If no default data source is configured.
        """
        if self._public_client is not None:
            return self._public_client
        if self._default_config is None:
            raise ConfigNotFoundError("No default data source is configured")
        return await self._public_flight.do(PUBLIC_CLIENT_KEY, self._build_public_client)

    async def invalidate(self, tenant_id: str) -> None:
        await self._pool.invalidate(tenant_id)

    async def clear_all_caches(self) -> None:
        await self._pool.clear()

    def get_metrics(self) -> PoolMetrics:
        return self._pool.get_metrics()

    def reset_metrics(self) -> None:
        self._pool.reset_metrics()

    def get_pool_configuration(self) -> PoolConfiguration:
        return self._pool.configuration

    async def _build_public_client(self) -> Any:
        assert self._default_config is not None
        client = await self._factory.create_client(
            self._default_config, ClientRole.ANON, None
        )
        self._public_client = client
        self._probe.public_client_created(self._default_config.url)
        return client
