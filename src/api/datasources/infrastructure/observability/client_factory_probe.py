"""Domain probe for data-source client lifecycle events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ClientFactoryProbe(Protocol):
    """Domain probe for building and closing data-source clients."""

    def client_created(self, tenant_id: str | None, url: str, role: str) -> None:
        """Record that a client was built for a tenant."""
        ...

    def client_closed(self) -> None:
        """Record that a client released its resources."""
        ...

    def client_verification_failed(self, url: str, error: Exception) -> None:
        """Record that a verification query failed."""
        ...

    def with_context(self, context: ObservationContext) -> ClientFactoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultClientFactoryProbe:
    """Default implementation of ClientFactoryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultClientFactoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultClientFactoryProbe(logger=self._logger, context=context)

    def client_created(self, tenant_id: str | None, url: str, role: str) -> None:
        self._logger.info(
            "data_source_client_created",
            tenant_id=tenant_id,
            url=url,
            role=role,
            **self._get_context_kwargs(),
        )

    def client_closed(self) -> None:
        self._logger.debug(
            "data_source_client_closed",
            **self._get_context_kwargs(),
        )

    def client_verification_failed(self, url: str, error: Exception) -> None:
        self._logger.warning(
            "data_source_client_verification_failed",
            url=url,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
