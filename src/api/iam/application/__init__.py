"""IAM application layer.

Contains the tenant context resolver used by request handlers.
"""

from iam.application.tenant_context_resolver import TenantContextResolver

__all__ = ["TenantContextResolver"]
