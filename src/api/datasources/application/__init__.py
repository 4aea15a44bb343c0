"""Data-source routing application layer.

Contains the tenant registry accessor, the connection cache and the
manager façade that the rest of the application uses to reach tenant
data sources.
"""

from datasources.application.manager import DataSourceManager
from datasources.application.pool_manager import ConnectionPoolManager
from datasources.application.registry import TenantRegistry

__all__ = ["ConnectionPoolManager", "DataSourceManager", "TenantRegistry"]
