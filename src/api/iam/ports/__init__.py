"""Ports (interfaces) for IAM bounded context.

Ports define the contracts the IAM context depends on without specifying
implementation details. This allows for dependency inversion and keeps
tenant context resolution independent of the data-source machinery.
"""

from iam.ports.data_sources import ITenantDataSourceProvider
from iam.ports.exceptions import (
    MissingTenantError,
    ResolutionFailedError,
    TenantContextError,
    UnauthorizedError,
)

__all__ = [
    "ITenantDataSourceProvider",
    "TenantContextError",
    "UnauthorizedError",
    "MissingTenantError",
    "ResolutionFailedError",
]
