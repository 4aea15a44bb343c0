"""Tenant connection cache.

Two cache-aside layers sit in front of the tenant registry and the client
factory: resolved configs keyed by tenant, and live clients keyed by
``(tenant_id, role)``. Both expire on TTL, are swept in the background and
coalesce concurrent misses so a cold tenant costs one registry read and one
client construction no matter how many requests arrive at once.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from datasources.application.cache import CacheEntry
from datasources.application.observability import (
    ConnectionPoolProbe,
    DefaultConnectionPoolProbe,
)
from datasources.application.registry import TenantRegistry
from datasources.domain.value_objects import (
    ClientRole,
    PoolConfiguration,
    PoolMetrics,
    ResolvedDataSource,
)
from datasources.ports.clients import DataSourceClientFactory
from datasources.ports.exceptions import PoolExhaustedError, ResolutionTimeoutError
from shared_kernel.single_flight import SingleFlight

ClientKey = tuple[str, ClientRole]

EVICTION_POLICY_LRU = "lru"
EVICTION_POLICY_FAIL = "fail"


class ConnectionPoolManager:
    """Caches resolved tenant configs and live data-source clients.

    The client cache is bounded by ``max_clients``. When it is full, a
    pool-exhausted event is counted and the configured policy applies:
    ``lru`` evicts the least recently used client, ``fail`` raises
    PoolExhaustedError.

    A client leaving the cache through eviction, expiry, invalidation or
    ``clear`` may still be serving a request that borrowed it, so it is
    retired rather than closed. Retired clients are closed once
    ``retired_client_grace_seconds`` have passed, by the sweep or the next
    client construction, and all at once by ``close``.

    Cache reads and writes never suspend, so the dictionaries are consistent
    between awaits without a lock. Registry reads and client construction
    are the only suspension points and both run under single-flight.
    """

    def __init__(
        self,
        registry: TenantRegistry,
        client_factory: DataSourceClientFactory,
        configuration: PoolConfiguration,
        probe: ConnectionPoolProbe | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the pool manager.

        Args:
            registry: Tenant registry access layer
            client_factory: Builds and closes data-source clients
            configuration: Cache limits, TTLs and eviction policy
            probe: Optional domain probe for observability
            clock: Monotonic time source, replaceable in tests
        """
        self._registry = registry
        self._factory = client_factory
        self._configuration = configuration
        self._probe = probe or DefaultConnectionPoolProbe()
        self._clock = clock

        self._configs: OrderedDict[str, CacheEntry[ResolvedDataSource]] = OrderedDict()
        self._clients: OrderedDict[ClientKey, CacheEntry[Any]] = OrderedDict()
        self._config_flight: SingleFlight[str, ResolvedDataSource] = SingleFlight()
        self._client_flight: SingleFlight[ClientKey, Any] = SingleFlight()
        self._retired: list[tuple[str, Any, float]] = []

        self._sweeper: asyncio.Task | None = None
        self._reset_counters()

    @property
    def configuration(self) -> PoolConfiguration:
        return self._configuration

    def _reset_counters(self) -> None:
        self._config_hits = 0
        self._config_misses = 0
        self._client_hits = 0
        self._client_misses = 0
        self._clients_created = 0
        self._exhausted = 0
        self._evictions = 0

    async def get_config(
        self, tenant_id: str, record_lookup: bool = True
    ) -> ResolvedDataSource:
        """Return the tenant's resolved data source, reading the registry on miss.

        Diagnostics pass ``record_lookup=False`` so that inspecting the cache
        does not move the hit and miss counters.

        Raises:
            TenantNotFoundError: If the registry has no record for the tenant.
            ConfigNotFoundError: If no usable data source config exists.
            ResolutionTimeoutError: If the registry read times out.
        """
        now = self._clock()
        entry = self._configs.get(tenant_id)
        if entry is not None and not entry.is_expired(now):
            entry.touch(now)
            if record_lookup:
                self._record_config_lookup(tenant_id, hit=True)
            return entry.value

        if entry is not None:
            del self._configs[tenant_id]
        if record_lookup:
            self._record_config_lookup(tenant_id, hit=False)
        return await self._config_flight.do(
            tenant_id, lambda: self._load_config(tenant_id)
        )

    async def get_client(
        self, tenant_id: str, role: ClientRole = ClientRole.SERVICE
    ) -> Any:
        """Return a live client for the tenant, constructing one on miss.

        Raises:
            TenantNotFoundError: If the registry has no record for the tenant.
            ConfigNotFoundError: If no usable data source config exists.
            PoolExhaustedError: If the cache is full under the ``fail`` policy.
            ResolutionTimeoutError: If resolution or construction times out.
        """
        key: ClientKey = (tenant_id, role)
        now = self._clock()
        entry = self._clients.get(key)
        if entry is not None and not entry.is_expired(now):
            entry.touch(now)
            self._clients.move_to_end(key)
            self._record_client_lookup(tenant_id, role, hit=True)
            return entry.value

        self._record_client_lookup(tenant_id, role, hit=False)
        return await self._client_flight.do(
            key, lambda: self._build_client(tenant_id, role)
        )

    async def invalidate(self, tenant_id: str) -> int:
        """Drop the tenant's config and retire every role's client.

        Returns:
            Number of clients removed. Zero when nothing was cached.
        """
        self._configs.pop(tenant_id, None)
        dropped = [
            (key, self._clients.pop(key))
            for key in list(self._clients)
            if key[0] == tenant_id
        ]
        self._probe.cache_invalidated(tenant_id, clients_removed=len(dropped))
        for (_, role), entry in dropped:
            self._probe.client_evicted(tenant_id, role.value, reason="invalidated")
            self._retire(tenant_id, entry.value)
        await self._close_retired()
        return len(dropped)

    async def clear(self) -> None:
        """Drop every cached config and retire every cached client."""
        configs_removed = len(self._configs)
        dropped = list(self._clients.items())
        self._configs.clear()
        self._clients.clear()
        self._probe.caches_cleared(configs_removed, len(dropped))
        for (tenant_id, _), entry in dropped:
            self._retire(tenant_id, entry.value)
        await self._close_retired()

    async def sweep_expired(self) -> int:
        """Remove expired entries from both caches.

        Expired clients are retired, and retired clients whose grace period
        has passed are closed.

        Returns:
            Total number of cache entries removed.
        """
        now = self._clock()
        expired_configs = [k for k, e in self._configs.items() if e.is_expired(now)]
        for tenant_id in expired_configs:
            del self._configs[tenant_id]

        expired_clients = [
            (key, entry) for key, entry in self._clients.items() if entry.is_expired(now)
        ]
        for key, _ in expired_clients:
            del self._clients[key]
        self._evictions += len(expired_clients)

        self._probe.cache_swept(len(expired_configs), len(expired_clients))
        for (tenant_id, role), entry in expired_clients:
            self._probe.client_evicted(tenant_id, role.value, reason="expired")
            self._retire(tenant_id, entry.value)
        await self._close_retired()
        return len(expired_configs) + len(expired_clients)

    def start_sweeper(self) -> None:
        """Start the periodic expiry sweep. Idempotent."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_loop())
        self._probe.sweeper_started(self._configuration.cache_cleanup_interval_seconds)

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
        self._probe.sweeper_stopped()

    async def close(self) -> None:
        """Stop the sweeper and close every cached and retired client."""
        await self.stop_sweeper()
        await self.clear()
        await self._close_retired(force=True)

    def get_metrics(self) -> PoolMetrics:
        return PoolMetrics(
            config_cache_hits=self._config_hits,
            config_cache_misses=self._config_misses,
            client_cache_hits=self._client_hits,
            client_cache_misses=self._client_misses,
            total_clients_created=self._clients_created,
            pool_exhausted_count=self._exhausted,
            evictions=self._evictions,
            active_clients=len(self._clients),
            max_clients=self._configuration.max_clients,
            config_cache_size=len(self._configs),
            client_cache_size=len(self._clients),
        )

    def reset_metrics(self) -> None:
        """Zero the counters. Cached entries are kept."""
        self._reset_counters()
        self._probe.metrics_reset()

    def is_config_cached(self, tenant_id: str) -> bool:
        entry = self._configs.get(tenant_id)
        return entry is not None and not entry.is_expired(self._clock())

    def config_expires_in(self, tenant_id: str) -> float | None:
        """Seconds until the cached config expires, or None when not cached."""
        entry = self._configs.get(tenant_id)
        if entry is None:
            return None
        now = self._clock()
        if entry.is_expired(now):
            return None
        return entry.expires_in(now)

    async def _load_config(self, tenant_id: str) -> ResolvedDataSource:
        timeout = self._configuration.resolution_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                resolved = await self._registry.resolve(tenant_id)
        except TimeoutError as e:
            self._probe.resolution_timed_out(tenant_id, "registry", timeout)
            raise ResolutionTimeoutError(
                f"Registry lookup for tenant {tenant_id} timed out after {timeout}s",
                tenant_id=tenant_id,
            ) from e

        self._configs[tenant_id] = CacheEntry.create(
            resolved, self._clock(), self._configuration.config_cache_ttl_seconds
        )
        return resolved

    async def _build_client(self, tenant_id: str, role: ClientRole) -> Any:
        key: ClientKey = (tenant_id, role)
        entry = self._clients.get(key)
        if entry is not None:
            if not entry.is_expired(self._clock()):
                return entry.value
            del self._clients[key]
            self._evictions += 1
            self._probe.client_evicted(tenant_id, role.value, reason="expired")
            self._retire(tenant_id, entry.value)

        resolved = await self.get_config(tenant_id)

        if self._configuration.eviction_policy == EVICTION_POLICY_FAIL:
            self._check_capacity(tenant_id)

        timeout = self._configuration.resolution_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                client = await self._factory.create_client(
                    resolved.config, role, tenant_id
                )
        except TimeoutError as e:
            self._probe.resolution_timed_out(tenant_id, "client", timeout)
            raise ResolutionTimeoutError(
                f"Client construction for tenant {tenant_id} timed out after {timeout}s",
                tenant_id=tenant_id,
            ) from e
        self._clients_created += 1

        replaced = self._clients.pop(key, None)
        if replaced is not None:
            self._retire(tenant_id, replaced.value)

        # Capacity is re-checked here since other tenants may have filled the
        # cache while this client was being constructed.
        try:
            evicted = self._make_room(tenant_id)
        except PoolExhaustedError:
            await self._close(tenant_id, client)
            raise

        self._clients[key] = CacheEntry.create(
            client, self._clock(), self._configuration.client_cache_ttl_seconds
        )
        for (evicted_tenant, _), evicted_entry in evicted:
            self._retire(evicted_tenant, evicted_entry.value)
        await self._close_retired()
        return client

    def _check_capacity(self, tenant_id: str) -> None:
        active = len(self._clients)
        maximum = self._configuration.max_clients
        if active < maximum:
            return
        self._exhausted += 1
        self._probe.pool_exhausted(
            tenant_id, active, maximum, self._configuration.eviction_policy
        )
        raise PoolExhaustedError(
            f"Client cache is full ({active}/{maximum})",
            tenant_id=tenant_id,
            max_clients=maximum,
        )

    def _make_room(self, tenant_id: str) -> list[tuple[ClientKey, CacheEntry[Any]]]:
        """Free a slot for a new client, returning the evicted entries to retire."""
        if self._configuration.eviction_policy == EVICTION_POLICY_FAIL:
            self._check_capacity(tenant_id)
            return []

        evicted: list[tuple[ClientKey, CacheEntry[Any]]] = []
        maximum = self._configuration.max_clients
        if len(self._clients) >= maximum:
            self._exhausted += 1
            self._probe.pool_exhausted(
                tenant_id, len(self._clients), maximum, EVICTION_POLICY_LRU
            )
        while len(self._clients) >= maximum:
            key, entry = self._clients.popitem(last=False)
            evicted.append((key, entry))
            self._evictions += 1
            self._probe.client_evicted(key[0], key[1].value, reason="lru")
        return evicted

    def _retire(self, tenant_id: str, client: Any) -> None:
        close_after = self._clock() + self._configuration.retired_client_grace_seconds
        self._retired.append((tenant_id, client, close_after))

    async def _close_retired(self, force: bool = False) -> None:
        """Close retired clients past their grace period, or all of them."""
        now = self._clock()
        due = [item for item in self._retired if force or item[2] <= now]
        if not due:
            return
        self._retired = [
            item for item in self._retired if not (force or item[2] <= now)
        ]
        for tenant_id, client, _ in due:
            await self._close(tenant_id, client)
        self._probe.retired_clients_closed(len(due))

    async def _close(self, tenant_id: str, client: Any) -> None:
        try:
            await self._factory.close_client(client)
        except Exception as e:
            self._probe.client_close_failed(tenant_id, e)

    async def _sweep_loop(self) -> None:
        interval = self._configuration.cache_cleanup_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep_expired()
            except Exception as e:
                self._probe.sweep_failed(e)

    def _record_config_lookup(self, tenant_id: str, hit: bool) -> None:
        if hit:
            self._probe.config_cache_hit(tenant_id)
        else:
            self._probe.config_cache_miss(tenant_id)
        if not self._configuration.enable_metrics:
            return
        if hit:
            self._config_hits += 1
        else:
            self._config_misses += 1

    def _record_client_lookup(self, tenant_id: str, role: ClientRole, hit: bool) -> None:
        if hit:
            self._probe.client_cache_hit(tenant_id, role.value)
        else:
            self._probe.client_cache_miss(tenant_id, role.value)
        if not self._configuration.enable_metrics:
            return
        if hit:
            self._client_hits += 1
        else:
            self._client_misses += 1
