"""Domain-Oriented Observability for the data-source application layer.

Probes for registry access, connection cache operations and the manager
façade.
"""

from datasources.application.observability.connection_pool_probe import (
    ConnectionPoolProbe,
    DefaultConnectionPoolProbe,
)
from datasources.application.observability.manager_probe import (
    DataSourceManagerProbe,
    DefaultDataSourceManagerProbe,
)
from datasources.application.observability.registry_probe import (
    DefaultTenantRegistryProbe,
    TenantRegistryProbe,
)

__all__ = [
    "ConnectionPoolProbe",
    "DefaultConnectionPoolProbe",
    "DataSourceManagerProbe",
    "DefaultDataSourceManagerProbe",
    "TenantRegistryProbe",
    "DefaultTenantRegistryProbe",
]
