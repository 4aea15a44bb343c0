"""HTTP client factory for tenant data sources.

Tenant data sources are hosted Postgres databases exposed through a
PostgREST-compatible REST API. A client is an ``httpx.AsyncClient`` whose
base URL, API key and tenant header are fixed at construction.

This module is internal to the datasources context. Request handlers get
clients only through the tenant context.
"""

from __future__ import annotations

import httpx

from datasources.domain.value_objects import ClientRole, ConnectionConfig
from datasources.infrastructure.observability import (
    ClientFactoryProbe,
    DefaultClientFactoryProbe,
)
from datasources.ports.clients import DataSourceClientFactory
from datasources.ports.exceptions import (
    DataSourceQueryError,
    DataSourceUnreachableError,
)

REST_PATH = "/rest/v1"
VERIFICATION_TABLE = "accounts"


class RestDataSourceClientFactory(DataSourceClientFactory):
    """Builds ``httpx.AsyncClient`` instances bound to a data source."""

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        probe: ClientFactoryProbe | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the factory.

        Args:
            timeout_seconds: Request timeout applied to every client
            probe: Optional domain probe for observability
            transport: Optional transport, used by tests to avoid the network
        """
        self._timeout = timeout_seconds
        self._probe = probe or DefaultClientFactoryProbe()
        self._transport = transport

    async def create_client(
        self,
        config: ConnectionConfig,
        role: ClientRole,
        tenant_id: str | None,
    ) -> httpx.AsyncClient:
        """Construct a client for ``config`` using the key matching ``role``."""
        key = config.key_for(role).get_secret_value()
        limits = httpx.Limits()
        if config.pool_config is not None:
            limits = httpx.Limits(
                max_connections=config.pool_config.max,
                max_keepalive_connections=config.pool_config.min,
            )

        headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept-Profile": "public",
        }
        if tenant_id is not None:
            headers["X-Tenant-ID"] = tenant_id

        client = httpx.AsyncClient(
            base_url=f"{config.url.rstrip('/')}{REST_PATH}",
            headers=headers,
            timeout=self._timeout,
            limits=limits,
            transport=self._transport,
        )
        self._probe.client_created(tenant_id=tenant_id, url=config.url, role=role.value)
        return client

    async def verify_client(
        self, client: httpx.AsyncClient, data_source_tenant_id: str
    ) -> None:
        """Select one row scoped to the tenant.

        Raises:
            DataSourceQueryError: If the data source answers with an error status.
            DataSourceUnreachableError: If the request cannot be completed.
        """
        try:
            response = await client.get(
                f"/{VERIFICATION_TABLE}",
                params={
                    "select": "id",
                    "tenant_id": f"eq.{data_source_tenant_id}",
                    "limit": "1",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._probe.client_verification_failed(url=str(client.base_url), error=e)
            raise DataSourceQueryError(
                f"Data source rejected query with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            self._probe.client_verification_failed(url=str(client.base_url), error=e)
            raise DataSourceUnreachableError(
                f"Data source unreachable: {e}"
            ) from e

    async def close_client(self, client: httpx.AsyncClient) -> None:
        await client.aclose()
        self._probe.client_closed()
