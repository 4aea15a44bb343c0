"""Shared request-scoped value objects.

The tenant context carried from the IAM bounded context into request
handlers of every other context lives here.
"""

from shared_kernel.middleware.tenant_context import CallerIdentity, TenantContext

__all__ = [
    "CallerIdentity",
    "TenantContext",
]
