"""Client factory protocol (port) for the data-source routing context."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from datasources.domain.value_objects import ClientRole, ConnectionConfig


@runtime_checkable
class DataSourceClientFactory(Protocol):
    """Builds, checks and closes live data-source clients.

    The pool manager is the only caller. Request handlers receive clients
    through the tenant context and never reach a factory directly.
    """

    async def create_client(
        self,
        config: ConnectionConfig,
        role: ClientRole,
        tenant_id: str | None,
    ) -> Any:
        """Construct a client bound to ``config`` with the key for ``role``.

        ``tenant_id`` is None for the shared public client.
        """
        ...

    async def verify_client(self, client: Any, data_source_tenant_id: str) -> None:
        """Run a minimal tenant-scoped query.

        Raises:
            DataSourceUnreachableError: If the data source cannot be reached.
            DataSourceQueryError: If the data source rejects the query.
        """
        ...

    async def close_client(self, client: Any) -> None:
        """Release the client's network resources."""
        ...
