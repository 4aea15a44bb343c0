"""Domain probe for tenant registry access.

Following Domain-Oriented Observability patterns, this probe captures
the domain-significant outcomes of turning a tenant ID into connection
parameters.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantRegistryProbe(Protocol):
    """Domain probe for tenant registry access."""

    def tenant_not_found(self, tenant_id: str) -> None:
        """Record that no registry record exists for a tenant."""
        ...

    def partial_config_detected(
        self, tenant_id: str, configured_fields: list[str]
    ) -> None:
        """Record that a registry record has only some connection fields."""
        ...

    def invalid_pool_config(self, tenant_id: str, error: Exception) -> None:
        """Record that a record's pool override could not be parsed."""
        ...

    def no_data_source_configured(self, tenant_id: str) -> None:
        """Record that neither a dedicated nor a default data source exists."""
        ...

    def credential_decryption_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that a stored key could not be decrypted."""
        ...

    def default_data_source_selected(self, tenant_id: str) -> None:
        """Record that a tenant is served by the shared default data source."""
        ...

    def dedicated_data_source_selected(
        self, tenant_id: str, url: str, region: str | None
    ) -> None:
        """Record that a tenant is served by its own data source."""
        ...

    def with_context(self, context: ObservationContext) -> TenantRegistryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantRegistryProbe:
    """Default implementation of TenantRegistryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantRegistryProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantRegistryProbe(logger=self._logger, context=context)

    def tenant_not_found(self, tenant_id: str) -> None:
        """Record that no registry record exists for a tenant."""
        self._logger.error(
            "tenant_registry_tenant_not_found",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def partial_config_detected(
        self, tenant_id: str, configured_fields: list[str]
    ) -> None:
        """Record that a registry record has only some connection fields."""
        self._logger.error(
            "tenant_registry_partial_config",
            tenant_id=tenant_id,
            configured_fields=configured_fields,
            message="data_source_url, anon key and service key must all be set or all be empty",
            **self._get_context_kwargs(),
        )

    def invalid_pool_config(self, tenant_id: str, error: Exception) -> None:
        """Record that a record's pool override could not be parsed."""
        self._logger.error(
            "tenant_registry_invalid_pool_config",
            tenant_id=tenant_id,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def no_data_source_configured(self, tenant_id: str) -> None:
        """Record that neither a dedicated nor a default data source exists."""
        self._logger.error(
            "tenant_registry_no_data_source",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def credential_decryption_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that a stored key could not be decrypted."""
        self._logger.error(
            "tenant_registry_credential_decryption_failed",
            tenant_id=tenant_id,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def default_data_source_selected(self, tenant_id: str) -> None:
        """Record that a tenant is served by the shared default data source."""
        self._logger.debug(
            "tenant_registry_default_data_source_selected",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def dedicated_data_source_selected(
        self, tenant_id: str, url: str, region: str | None
    ) -> None:
        """Record that a tenant is served by its own data source."""
        self._logger.debug(
            "tenant_registry_dedicated_data_source_selected",
            tenant_id=tenant_id,
            url=url,
            region=region,
            **self._get_context_kwargs(),
        )
