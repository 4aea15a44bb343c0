"""Domain probe for the data-source manager façade."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class DataSourceManagerProbe(Protocol):
    """Domain probe for data-source manager lifecycle and diagnostics."""

    def manager_started(self, max_clients: int, eviction_policy: str) -> None:
        ...

    def manager_closed(self) -> None:
        ...

    def plaintext_credentials_in_use(self) -> None:
        """Record that stored keys will be used without decryption."""
        ...

    def default_data_source_missing(self) -> None:
        """Record that no shared default data source is configured."""
        ...

    def public_client_created(self, url: str) -> None:
        ...

    def connection_test_succeeded(
        self, tenant_id: str, response_time_ms: float
    ) -> None:
        ...

    def connection_test_failed(
        self, tenant_id: str, response_time_ms: float, error: str
    ) -> None:
        ...

    def with_context(self, context: ObservationContext) -> DataSourceManagerProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultDataSourceManagerProbe:
    """Default implementation of DataSourceManagerProbe using structlog."""

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
    ) -> DefaultDataSourceManagerProbe:
        """Create a new probe with observation context bound."""
        return DefaultDataSourceManagerProbe(logger=self._logger, context=context)

    def manager_started(self, max_clients: int, eviction_policy: str) -> None:
        self._logger.info(
            "data_source_manager_started",
            max_clients=max_clients,
            eviction_policy=eviction_policy,
            **self._get_context_kwargs(),
        )

    def manager_closed(self) -> None:
        self._logger.info(
            "data_source_manager_closed",
            **self._get_context_kwargs(),
        )

    def plaintext_credentials_in_use(self) -> None:
        self._logger.warning(
            "data_source_credentials_not_encrypted",
            detail="No encryption key configured; stored keys are used as-is",
            **self._get_context_kwargs(),
        )

    def default_data_source_missing(self) -> None:
        self._logger.info(
            "default_data_source_not_configured",
            **self._get_context_kwargs(),
        )

    def public_client_created(self, url: str) -> None:
        self._logger.info(
            "public_data_source_client_created",
            url=url,
            **self._get_context_kwargs(),
        )

    def connection_test_succeeded(
        self, tenant_id: str, response_time_ms: float
    ) -> None:
        self._logger.info(
            "data_source_connection_test_succeeded",
            tenant_id=tenant_id,
            response_time_ms=response_time_ms,
            **self._get_context_kwargs(),
        )

    def connection_test_failed(
        self, tenant_id: str, response_time_ms: float, error: str
    ) -> None:
        self._logger.warning(
            "data_source_connection_test_failed",
            tenant_id=tenant_id,
            response_time_ms=response_time_ms,
            error=error,
            **self._get_context_kwargs(),
        )
