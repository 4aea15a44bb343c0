"""Domain-Oriented Observability for IAM application layer.

Probes for authentication and tenant context resolution following
Domain-Oriented Observability patterns.
"""

from iam.application.observability.authentication_probe import (
    AuthenticationProbe,
    DefaultAuthenticationProbe,
)
from iam.application.observability.tenant_context_probe import (
    DefaultTenantContextProbe,
    TenantContextProbe,
)

__all__ = [
    "AuthenticationProbe",
    "DefaultAuthenticationProbe",
    "TenantContextProbe",
    "DefaultTenantContextProbe",
]
