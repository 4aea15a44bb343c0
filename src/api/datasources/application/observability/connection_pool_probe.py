"""Domain probe for the data-source connection cache.

Following Domain-Oriented Observability patterns, this probe captures
cache, eviction and lifecycle events of the tenant client cache without
exposing logging details to the pool manager.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ConnectionPoolProbe(Protocol):
    """Domain probe for connection cache operations."""

    def config_cache_hit(self, tenant_id: str) -> None:
        """Record that a tenant config was served from cache."""
        ...

    def config_cache_miss(self, tenant_id: str) -> None:
        """Record that a tenant config had to be read from the registry."""
        ...

    def client_cache_hit(self, tenant_id: str, role: str) -> None:
        """Record that a client was served from cache."""
        ...

    def client_cache_miss(self, tenant_id: str, role: str) -> None:
        """Record that a client had to be constructed."""
        ...

    def pool_exhausted(
        self, tenant_id: str, active_clients: int, max_clients: int, policy: str
    ) -> None:
        """Record that the client cache reached its ceiling."""
        ...

    def client_evicted(self, tenant_id: str, role: str, reason: str) -> None:
        """Record that a cached client was dropped."""
        ...

    def client_close_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that closing a dropped client raised."""
        ...

    def resolution_timed_out(
        self, tenant_id: str, stage: str, timeout_seconds: float
    ) -> None:
        """Record that a registry read or client construction timed out."""
        ...

    def cache_invalidated(self, tenant_id: str, clients_removed: int) -> None:
        """Record that a tenant's cache entries were dropped."""
        ...

    def caches_cleared(self, configs_removed: int, clients_removed: int) -> None:
        """Record that every cache entry was dropped."""
        ...

    def cache_swept(self, configs_removed: int, clients_removed: int) -> None:
        """Record the outcome of an expired-entry sweep."""
        ...

    def retired_clients_closed(self, count: int) -> None:
        """Record that retired clients were closed after their grace period."""
        ...

    def sweep_failed(self, error: Exception) -> None:
        """Record that a periodic sweep raised."""
        ...

    def sweeper_started(self, interval_seconds: float) -> None:
        """Record that the periodic sweeper started."""
        ...

    def sweeper_stopped(self) -> None:
        """Record that the periodic sweeper stopped."""
        ...

    def metrics_reset(self) -> None:
        """Record that the counters were zeroed."""
        ...

    def with_context(self, context: ObservationContext) -> ConnectionPoolProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConnectionPoolProbe:
    """Default implementation of ConnectionPoolProbe using structlog.

    Supports observation context for including request-scoped metadata
    with all log events.
    """

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

    def with_context(self, context: ObservationContext) -> DefaultConnectionPoolProbe:
        """Create a new probe with observation context bound."""
        return DefaultConnectionPoolProbe(logger=self._logger, context=context)

    def config_cache_hit(self, tenant_id: str) -> None:
        """Record that a tenant config was served from cache."""
        self._logger.debug(
            "data_source_config_cache_hit",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def config_cache_miss(self, tenant_id: str) -> None:
        """Record that a tenant config had to be read from the registry."""
        self._logger.debug(
            "data_source_config_cache_miss",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def client_cache_hit(self, tenant_id: str, role: str) -> None:
        """Record that a client was served from cache."""
        self._logger.debug(
            "data_source_client_cache_hit",
            tenant_id=tenant_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def client_cache_miss(self, tenant_id: str, role: str) -> None:
        """Record that a client had to be constructed."""
        self._logger.debug(
            "data_source_client_cache_miss",
            tenant_id=tenant_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def pool_exhausted(
        self, tenant_id: str, active_clients: int, max_clients: int, policy: str
    ) -> None:
        """Record that the client cache reached its ceiling."""
        self._logger.warning(
            "data_source_pool_exhausted",
            tenant_id=tenant_id,
            active_clients=active_clients,
            max_clients=max_clients,
            policy=policy,
            **self._get_context_kwargs(),
        )

    def client_evicted(self, tenant_id: str, role: str, reason: str) -> None:
        """Record that a cached client was dropped."""
        self._logger.info(
            "data_source_client_evicted",
            tenant_id=tenant_id,
            role=role,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def client_close_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that closing a dropped client raised."""
        self._logger.error(
            "data_source_client_close_failed",
            tenant_id=tenant_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def resolution_timed_out(
        self, tenant_id: str, stage: str, timeout_seconds: float
    ) -> None:
        """Record that a registry read or client construction timed out."""
        self._logger.warning(
            "data_source_resolution_timed_out",
            tenant_id=tenant_id,
            stage=stage,
            timeout_seconds=timeout_seconds,
            **self._get_context_kwargs(),
        )

    def cache_invalidated(self, tenant_id: str, clients_removed: int) -> None:
        """Record that a tenant's cache entries were dropped."""
        self._logger.info(
            "data_source_cache_invalidated",
            tenant_id=tenant_id,
            clients_removed=clients_removed,
            **self._get_context_kwargs(),
        )

    def caches_cleared(self, configs_removed: int, clients_removed: int) -> None:
        """Record that every cache entry was dropped."""
        self._logger.info(
            "data_source_caches_cleared",
            configs_removed=configs_removed,
            clients_removed=clients_removed,
            **self._get_context_kwargs(),
        )

    def cache_swept(self, configs_removed: int, clients_removed: int) -> None:
        """Record the outcome of an expired-entry sweep."""
        self._logger.debug(
            "data_source_cache_swept",
            configs_removed=configs_removed,
            clients_removed=clients_removed,
            **self._get_context_kwargs(),
        )

    def retired_clients_closed(self, count: int) -> None:
        """Record that retired clients were closed after their grace period."""
        self._logger.debug(
            "data_source_retired_clients_closed",
            count=count,
            **self._get_context_kwargs(),
        )

    def sweep_failed(self, error: Exception) -> None:
        """Record that a periodic sweep raised."""
        self._logger.error(
            "data_source_cache_sweep_failed",
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def sweeper_started(self, interval_seconds: float) -> None:
        """Record that the periodic sweeper started."""
        self._logger.info(
            "data_source_cache_sweeper_started",
            interval_seconds=interval_seconds,
            **self._get_context_kwargs(),
        )

    def sweeper_stopped(self) -> None:
        """Record that the periodic sweeper stopped."""
        self._logger.info(
            "data_source_cache_sweeper_stopped",
            **self._get_context_kwargs(),
        )

    def metrics_reset(self) -> None:
        """Record that the counters were zeroed."""
        self._logger.info(
            "data_source_metrics_reset",
            **self._get_context_kwargs(),
        )
