"""Domain-Oriented Observability for data-source infrastructure.

Probes for registry reads and client lifecycle events.
"""

from datasources.infrastructure.observability.client_factory_probe import (
    ClientFactoryProbe,
    DefaultClientFactoryProbe,
)
from datasources.infrastructure.observability.registry_repository_probe import (
    DefaultTenantRegistryRepositoryProbe,
    TenantRegistryRepositoryProbe,
)

__all__ = [
    "ClientFactoryProbe",
    "DefaultClientFactoryProbe",
    "TenantRegistryRepositoryProbe",
    "DefaultTenantRegistryRepositoryProbe",
]
