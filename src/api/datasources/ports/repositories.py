"""Repository protocols (ports) for the data-source routing context."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from datasources.domain.value_objects import TenantRecord


@runtime_checkable
class ITenantRegistryRepository(Protocol):
    """Read access to the durable tenant registry.

    Implementations read from the application database. They perform no
    caching and no validation beyond mapping rows to records.
    """

    async def get_by_id(self, tenant_id: str) -> TenantRecord | None:
        """Retrieve a tenant's registry record.

        Args:
            tenant_id: The application tenant identifier

        Returns:
            The TenantRecord, or None if the tenant is not registered
        """
        ...
