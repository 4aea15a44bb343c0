"""Exceptions for tenant context resolution.

Each exception carries the HTTP status the presentation layer should
answer with. Messages are safe to show to the caller; the underlying
error of a resolution failure is kept on ``cause`` for logs only.
"""

from __future__ import annotations


class TenantContextError(Exception):
    """Base class for failures while building a request's tenant context."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(TenantContextError):
    """Raised when the request carries no authenticated session."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized: no valid session") -> None:
        super().__init__(message)


class MissingTenantError(TenantContextError):
    """Raised when the session has no application tenant ID.

    This is a provisioning problem with the user account, not a data-source
    problem, so the data-source layer is never consulted.
    """

    status_code = 400

    def __init__(self, message: str = "No tenant ID in session") -> None:
        super().__init__(message)


class ResolutionFailedError(TenantContextError):
    """Raised when the tenant's data source could not be resolved.

    Covers unknown tenants, missing or unreadable configuration, pool
    exhaustion and timeouts alike. The caller only sees a generic message.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Failed to resolve tenant data source",
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
