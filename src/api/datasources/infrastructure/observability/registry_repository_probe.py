"""Domain probe for tenant registry repository operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantRegistryRepositoryProbe(Protocol):
    """Domain probe for tenant registry reads."""

    def tenant_record_retrieved(self, tenant_id: str) -> None:
        """Record that a registry record was read."""
        ...

    def tenant_record_not_found(self, tenant_id: str) -> None:
        """Record that no registry record exists for a tenant."""
        ...

    def registry_query_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that the registry query raised."""
        ...

    def with_context(
        self, context: ObservationContext
    ) -> TenantRegistryRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantRegistryRepositoryProbe:
    """Default implementation of TenantRegistryRepositoryProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultTenantRegistryRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantRegistryRepositoryProbe(
            logger=self._logger, context=context
        )

    def tenant_record_retrieved(self, tenant_id: str) -> None:
        self._logger.debug(
            "tenant_registry_record_retrieved",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_record_not_found(self, tenant_id: str) -> None:
        self._logger.debug(
            "tenant_registry_record_not_found",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def registry_query_failed(self, tenant_id: str, error: Exception) -> None:
        self._logger.error(
            "tenant_registry_query_failed",
            tenant_id=tenant_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
