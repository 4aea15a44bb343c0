"""Domain layer for the data-source routing bounded context."""

from datasources.domain.value_objects import (
    ClientRole,
    ConnectionConfig,
    ConnectionInfo,
    ConnectionPoolConfig,
    ConnectionTestResult,
    PoolConfiguration,
    PoolMetrics,
    ResolvedDataSource,
    TenantRecord,
)

__all__ = [
    "ClientRole",
    "ConnectionConfig",
    "ConnectionInfo",
    "ConnectionPoolConfig",
    "ConnectionTestResult",
    "PoolConfiguration",
    "PoolMetrics",
    "ResolvedDataSource",
    "TenantRecord",
]
