"""Unit tests for ConnectionPoolManager.

Covers:
- Config cache: hits within TTL, expiry, invalidation
- Client cache: reuse, per-role clients, expiry, concurrent cold misses
- Capacity: LRU eviction and the fail policy
- Background sweep and shutdown
- Metrics, including disabled metrics and the empty case
- Resolution timeouts and error propagation
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import httpx
import pytest

from datasources.application.pool_manager import ConnectionPoolManager
from datasources.domain.value_objects import ClientRole
from datasources.infrastructure.client_factory import RestDataSourceClientFactory
from datasources.infrastructure.observability import ClientFactoryProbe
from datasources.ports.exceptions import (
    PoolExhaustedError,
    ResolutionTimeoutError,
    TenantNotFoundError,
)


class TestConfigCache:
    """Tests for cached tenant config resolution."""

    @pytest.mark.asyncio
    async def test_second_lookup_within_ttl_skips_registry(self, pool, repository):
        """Should read the registry once for repeated lookups within the TTL."""
        first = await pool.get_config("T1")
        second = await pool.get_config("T1")

        assert first is second
        assert repository.calls == ["T1"]
        metrics = pool.get_metrics()
        assert metrics.config_cache_hits == 1
        assert metrics.config_cache_misses == 1

    @pytest.mark.asyncio
    async def test_resolves_mapping_and_dedicated_config(self, pool):
        """Should carry the dedicated URL and the mapped local tenant ID."""
        resolved = await pool.get_config("T1")

        assert resolved.config.url == "https://dsA"
        assert resolved.tenant_id_in_data_source == "shared-db-tenant-42"

    @pytest.mark.asyncio
    async def test_lookup_after_ttl_reads_registry_again(
        self, pool, repository, clock
    ):
        """Should treat an entry as missing once its TTL has elapsed."""
        await pool.get_config("T1")
        clock.advance(300)

        await pool.get_config("T1")

        assert repository.calls == ["T1", "T1"]

    @pytest.mark.asyncio
    async def test_config_expires_in_reports_remaining_lifetime(self, pool, clock):
        """Should report seconds left for a cached config and None otherwise."""
        await pool.get_config("T1")
        clock.advance(100)

        assert pool.is_config_cached("T1")
        assert pool.config_expires_in("T1") == pytest.approx(200.0)
        assert not pool.is_config_cached("T2")
        assert pool.config_expires_in("T2") is None

    @pytest.mark.asyncio
    async def test_unknown_tenant_is_not_cached(self, pool, repository):
        """Should raise TenantNotFoundError every time without caching it."""
        with pytest.raises(TenantNotFoundError):
            await pool.get_config("ghost")
        with pytest.raises(TenantNotFoundError):
            await pool.get_config("ghost")

        assert repository.calls == ["ghost", "ghost"]
        assert pool.get_metrics().config_cache_size == 0


class TestClientCache:
    """Tests for cached client construction."""

    @pytest.mark.asyncio
    async def test_returns_same_client_for_repeated_requests(
        self, pool, client_factory
    ):
        """Should construct one client and reuse it."""
        first = await pool.get_client("T1")
        second = await pool.get_client("T1")

        assert first is second
        assert len(client_factory.created) == 1
        assert first.config.url == "https://dsA"
        assert first.role is ClientRole.SERVICE
        assert first.tenant_id == "T1"

    @pytest.mark.asyncio
    async def test_each_role_gets_its_own_client(self, pool, client_factory):
        """Should cache service and anon clients separately."""
        service = await pool.get_client("T1", ClientRole.SERVICE)
        anon = await pool.get_client("T1", ClientRole.ANON)

        assert service is not anon
        assert anon.role is ClientRole.ANON
        assert pool.get_metrics().active_clients == 2

    @pytest.mark.asyncio
    async def test_tenant_without_data_source_uses_default(self, pool):
        """Should bind a default-config client for a tenant without its own."""
        client = await pool.get_client("T3")

        assert client.config.is_default
        assert client.config.url == "https://shared.example.com"

    @pytest.mark.asyncio
    async def test_concurrent_cold_requests_build_one_client(
        self, pool, repository, client_factory
    ):
        """Should coalesce concurrent misses into one registry read and one build."""
        client_factory.delay = 0.01

        clients = await asyncio.gather(*(pool.get_client("T1") for _ in range(20)))

        assert len({id(c) for c in clients}) == 1
        assert repository.calls == ["T1"]
        assert len(client_factory.created) == 1
        assert pool.get_metrics().total_clients_created == 1

    @pytest.mark.asyncio
    async def test_expired_client_is_replaced_and_closed_after_grace(
        self, pool, client_factory, clock
    ):
        """Should build a new client once the old one expired and close the old
        one only after the grace period."""
        old = await pool.get_client("T1")
        clock.advance(3600)

        new = await pool.get_client("T1")

        assert new is not old
        assert not old.closed
        assert pool.get_metrics().evictions == 1

        clock.advance(30)
        await pool.sweep_expired()
        assert old.closed

    @pytest.mark.asyncio
    async def test_concurrent_requests_for_expired_client_share_one_build(
        self, pool, client_factory, clock
    ):
        """Should replace an expired client once however many callers race."""
        await pool.get_client("T1")
        clock.advance(3600)
        client_factory.delay = 0.01

        first, second = await asyncio.gather(
            pool.get_client("T1"), pool.get_client("T1")
        )

        assert first is second
        assert len(client_factory.created) == 2
        assert pool.get_metrics().active_clients == 1

        await pool.close()
        assert all(client.closed for client in client_factory.created)


class TestInvalidation:
    """Tests for invalidate() and clear()."""

    @pytest.mark.asyncio
    async def test_invalidate_drops_config_and_all_roles(
        self, pool, repository, client_factory
    ):
        """Should remove every client of the tenant and force a registry read."""
        service = await pool.get_client("T1", ClientRole.SERVICE)
        anon = await pool.get_client("T1", ClientRole.ANON)

        removed = await pool.invalidate("T1")

        assert removed == 2
        assert not service.closed and not anon.closed
        await pool.get_client("T1")
        assert repository.calls == ["T1", "T1"]

    @pytest.mark.asyncio
    async def test_invalidate_leaves_other_tenants(self, pool):
        """Should only touch the named tenant."""
        other = await pool.get_client("T2")
        await pool.get_client("T1")

        await pool.invalidate("T1")

        assert await pool.get_client("T2") is other

    @pytest.mark.asyncio
    async def test_invalidate_unknown_tenant_is_noop(self, pool):
        """Should return zero when nothing was cached."""
        assert await pool.invalidate("nobody") == 0

    @pytest.mark.asyncio
    async def test_clear_closes_every_client_after_grace(
        self, pool, client_factory, clock
    ):
        """Should empty both caches and close all clients once the grace ends."""
        await pool.get_client("T1")
        await pool.get_client("T2")

        await pool.clear()

        metrics = pool.get_metrics()
        assert metrics.client_cache_size == 0
        assert metrics.config_cache_size == 0
        assert client_factory.closed == []

        clock.advance(30)
        await pool.sweep_expired()
        assert len(client_factory.closed) == 2

    @pytest.mark.asyncio
    async def test_close_failure_is_reported_not_raised(
        self, make_pool, client_factory, pool_probe
    ):
        """Should keep going when closing a dropped client fails."""
        pool = make_pool(retired_client_grace_seconds=0)
        await pool.get_client("T1")
        client_factory.close_error = RuntimeError("socket already gone")

        assert await pool.invalidate("T1") == 1

        pool_probe.client_close_failed.assert_called_once()


class TestCapacity:
    """Tests for the client ceiling and eviction policies."""

    @pytest.mark.asyncio
    async def test_lru_evicts_least_recently_used(self, make_pool, client_factory):
        """Should evict the least recently used client when full."""
        pool = make_pool(max_clients=2)
        t1 = await pool.get_client("T1")
        t2 = await pool.get_client("T2")
        await pool.get_client("T1")

        await pool.get_client("T3")

        assert not t2.closed
        assert not t1.closed
        assert await pool.get_client("T1") is t1
        metrics = pool.get_metrics()
        assert metrics.active_clients == 2
        assert metrics.pool_exhausted_count == 1
        assert metrics.evictions == 1

    @pytest.mark.asyncio
    async def test_evicted_client_keeps_serving_borrowed_requests(
        self, make_pool, clock, pool_probe
    ):
        """Should let a request finish on a client evicted under its feet."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json=[{"id": 1}])
        )
        pool = make_pool(
            factory=RestDataSourceClientFactory(
                probe=MagicMock(spec=ClientFactoryProbe), transport=transport
            ),
            max_clients=1,
        )
        borrowed = await pool.get_client("T1")

        await pool.get_client("T2")
        response = await borrowed.get("/accounts")

        assert response.status_code == 200
        assert pool.get_metrics().evictions == 1

        clock.advance(30)
        await pool.sweep_expired()
        assert borrowed.is_closed
        pool_probe.retired_clients_closed.assert_called_with(1)
        await pool.close()

    @pytest.mark.asyncio
    async def test_fail_policy_raises_when_full(self, make_pool, client_factory):
        """Should raise PoolExhaustedError without building a client."""
        pool = make_pool(max_clients=2, eviction_policy="fail")
        await pool.get_client("T1")
        await pool.get_client("T2")

        with pytest.raises(PoolExhaustedError) as exc_info:
            await pool.get_client("T3")

        assert exc_info.value.max_clients == 2
        assert len(client_factory.created) == 2
        assert pool.get_metrics().pool_exhausted_count == 1

    @pytest.mark.asyncio
    async def test_fail_policy_serves_cached_clients_when_full(self, make_pool):
        """Should keep serving tenants that already have a client."""
        pool = make_pool(max_clients=1, eviction_policy="fail")
        client = await pool.get_client("T1")

        assert await pool.get_client("T1") is client


class TestSweep:
    """Tests for expired-entry sweeping and the sweeper task."""

    @pytest.mark.asyncio
    async def test_sweep_removes_expired_entries(self, pool, clock):
        """Should drop expired entries and close clients once the grace ends."""
        client = await pool.get_client("T1")
        clock.advance(3600)

        removed = await pool.sweep_expired()

        assert removed == 2
        assert not client.closed
        assert pool.get_metrics().active_clients == 0

        clock.advance(30)
        assert await pool.sweep_expired() == 0
        assert client.closed

    @pytest.mark.asyncio
    async def test_sweep_keeps_live_entries(self, pool, clock):
        """Should only drop what has expired."""
        await pool.get_client("T1")
        clock.advance(301)

        removed = await pool.sweep_expired()

        assert removed == 1
        assert pool.get_metrics().active_clients == 1

    @pytest.mark.asyncio
    async def test_start_sweeper_is_idempotent(self, pool, pool_probe):
        """Should start a single sweeper task however often it is called."""
        pool.start_sweeper()
        pool.start_sweeper()

        pool_probe.sweeper_started.assert_called_once_with(600.0)
        await pool.close()
        pool_probe.sweeper_stopped.assert_called_once()

    @pytest.mark.asyncio
    async def test_sweeper_runs_periodically(self, make_pool, clock):
        """Should sweep on each interval tick."""
        pool = make_pool(
            cache_cleanup_interval_seconds=0.01, retired_client_grace_seconds=0
        )
        client = await pool.get_client("T1")
        clock.advance(3600)

        pool.start_sweeper()
        await asyncio.sleep(0.05)
        await pool.stop_sweeper()

        assert client.closed

    @pytest.mark.asyncio
    async def test_close_stops_sweeper_and_closes_clients(self, pool, client_factory):
        """Should leave nothing running or open."""
        await pool.get_client("T1")
        pool.start_sweeper()

        await pool.close()

        assert len(client_factory.closed) == 1
        assert pool.get_metrics().active_clients == 0


class TestMetrics:
    """Tests for metrics counters."""

    def test_empty_metrics_report_zero_rates(self, pool):
        """Should report 0% hit rate and utilization before any lookup."""
        metrics = pool.get_metrics()

        assert metrics.cache_hit_rate == 0.0
        assert metrics.pool_utilization == 0.0
        assert metrics.max_clients == 10

    @pytest.mark.asyncio
    async def test_counts_hits_and_misses(self, pool):
        """Should count config and client lookups separately."""
        await pool.get_client("T1")
        await pool.get_client("T1")

        metrics = pool.get_metrics()
        assert metrics.client_cache_misses == 1
        assert metrics.client_cache_hits == 1
        assert metrics.config_cache_misses == 1
        assert metrics.total_clients_created == 1
        assert metrics.pool_utilization == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_disabled_metrics_skip_hit_miss_counters(self, make_pool):
        """Should leave hit/miss counters at zero when metrics are disabled."""
        pool = make_pool(enable_metrics=False)
        await pool.get_client("T1")
        await pool.get_client("T1")

        metrics = pool.get_metrics()
        assert metrics.cache_hits == 0
        assert metrics.cache_misses == 0
        assert metrics.total_clients_created == 1
        assert metrics.active_clients == 1

    @pytest.mark.asyncio
    async def test_reset_keeps_cached_entries(self, pool, client_factory):
        """Should zero counters but keep serving cached clients."""
        client = await pool.get_client("T1")

        pool.reset_metrics()

        metrics = pool.get_metrics()
        assert metrics.cache_hits == 0
        assert metrics.total_clients_created == 0
        assert metrics.active_clients == 1
        assert await pool.get_client("T1") is client
        assert len(client_factory.created) == 1


class TestTimeouts:
    """Tests for bounded registry reads and client construction."""

    @pytest.mark.asyncio
    async def test_slow_registry_times_out_and_is_not_cached(
        self, make_pool, repository
    ):
        """Should raise ResolutionTimeoutError and retry on the next call."""
        pool: ConnectionPoolManager = make_pool(resolution_timeout_seconds=0.05)
        repository.delay = 1.0

        with pytest.raises(ResolutionTimeoutError):
            await pool.get_config("T1")
        assert not pool.is_config_cached("T1")

        repository.delay = 0.0
        resolved = await pool.get_config("T1")
        assert resolved.config.url == "https://dsA"

    @pytest.mark.asyncio
    async def test_slow_client_construction_times_out(
        self, make_pool, client_factory
    ):
        """Should raise ResolutionTimeoutError and cache no client."""
        pool: ConnectionPoolManager = make_pool(resolution_timeout_seconds=0.05)
        client_factory.delay = 1.0

        with pytest.raises(ResolutionTimeoutError):
            await pool.get_client("T1")

        assert client_factory.created == []
        assert pool.get_metrics().active_clients == 0
