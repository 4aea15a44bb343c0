"""FastAPI dependencies of the IAM bounded context."""

from iam.dependencies.authentication import get_current_caller, get_optional_caller
from iam.dependencies.tenant_context import get_tenant_context

__all__ = [
    "get_current_caller",
    "get_optional_caller",
    "get_tenant_context",
]
