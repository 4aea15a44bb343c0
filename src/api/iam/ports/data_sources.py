"""Data-source port for tenant context resolution.

The IAM context needs a tenant-scoped client and the tenant's local ID,
not the caching and registry machinery behind them. The datasources
context's manager satisfies this protocol structurally.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ITenantDataSourceProvider(Protocol):
    """Provides tenant-scoped data-source access."""

    async def get_client_for_tenant(self, tenant_id: str) -> Any:
        """Return a client bound to the tenant's data source."""
        ...

    async def get_local_tenant_id(self, tenant_id: str) -> str:
        """Return the tenant's identifier inside its data source."""
        ...
