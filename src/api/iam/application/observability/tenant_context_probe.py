"""Domain probe for tenant context resolution.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events while a request's session is turned into a
tenant-scoped data-source client.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantContextProbe(Protocol):
    """Domain probe for tenant context resolution operations."""

    def session_missing(self) -> None:
        """Record that a request arrived without an authenticated session."""
        ...

    def tenant_claim_missing(self, user_id: str) -> None:
        """Record that a session carried no application tenant ID."""
        ...

    def tenant_resolution_failed(
        self,
        tenant_id: str,
        user_id: str,
        error: Exception,
    ) -> None:
        """Record that the tenant's data source could not be resolved."""
        ...

    def tenant_id_mapping_differs(
        self,
        application_tenant_id: str,
        data_source_tenant_id: str,
    ) -> None:
        """Record that the tenant is known under another ID in its data source."""
        ...

    def tenant_context_resolved(
        self,
        tenant_id: str,
        data_source_tenant_id: str,
        user_id: str,
    ) -> None:
        """Record that a tenant context was built."""
        ...

    def with_context(self, context: ObservationContext) -> TenantContextProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantContextProbe:
    """Default implementation of TenantContextProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultTenantContextProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantContextProbe(logger=self._logger, context=context)

    def session_missing(self) -> None:
        """Record that a request arrived without an authenticated session."""
        self._logger.info(
            "tenant_context_session_missing",
            **self._get_context_kwargs(),
        )

    def tenant_claim_missing(self, user_id: str) -> None:
        """Record that a session carried no application tenant ID."""
        self._logger.warning(
            "tenant_context_tenant_claim_missing",
            user_id=user_id,
            message="Authenticated user is not provisioned into a tenant",
            **self._get_context_kwargs(),
        )

    def tenant_resolution_failed(
        self,
        tenant_id: str,
        user_id: str,
        error: Exception,
    ) -> None:
        """Record that the tenant's data source could not be resolved."""
        self._logger.error(
            "tenant_context_resolution_failed",
            tenant_id=tenant_id,
            user_id=user_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def tenant_id_mapping_differs(
        self,
        application_tenant_id: str,
        data_source_tenant_id: str,
    ) -> None:
        """Record that the tenant is known under another ID in its data source."""
        self._logger.debug(
            "tenant_context_id_mapped",
            application_tenant_id=application_tenant_id,
            data_source_tenant_id=data_source_tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_context_resolved(
        self,
        tenant_id: str,
        data_source_tenant_id: str,
        user_id: str,
    ) -> None:
        """Record that a tenant context was built."""
        self._logger.debug(
            "tenant_context_resolved",
            tenant_id=tenant_id,
            data_source_tenant_id=data_source_tenant_id,
            user_id=user_id,
            **self._get_context_kwargs(),
        )
