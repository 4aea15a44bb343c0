"""End-to-end tenant context resolution through the real DataSourceManager.

Wires TenantContextResolver to a DataSourceManager backed by the
in-memory registry and client factory fakes.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from datasources.application.manager import DataSourceManager
from iam.application.observability import TenantContextProbe
from iam.application.tenant_context_resolver import TenantContextResolver
from iam.ports.exceptions import ResolutionFailedError
from shared_kernel.middleware.tenant_context import CallerIdentity


@pytest.fixture
def manager(pool, client_factory, default_config) -> DataSourceManager:
    return DataSourceManager(
        pool=pool,
        client_factory=client_factory,
        default_config=default_config,
    )


@pytest.fixture
def tenant_probe() -> MagicMock:
    return MagicMock(spec=TenantContextProbe)


@pytest.fixture
def resolver(manager, tenant_probe) -> TenantContextResolver:
    return TenantContextResolver(
        data_sources=manager, probe=tenant_probe, log_tenant_mapping=True
    )


def caller_for(tenant_id: str) -> CallerIdentity:
    return CallerIdentity(user_id="user-1", username="alice", tenant_id=tenant_id)


class TestTenantContextResolution:
    """Tests resolving real tenants through the whole routing stack."""

    @pytest.mark.asyncio
    async def test_mapped_tenant_on_dedicated_source(self, resolver, tenant_probe):
        """Should route T1 to dsA and filter by its mapped tenant ID."""
        context = await resolver.resolve(caller_for("T1"))

        assert context.application_tenant_id == "T1"
        assert context.data_source_tenant_id == "shared-db-tenant-42"
        assert context.scoped_client.config.url == "https://dsA"
        tenant_probe.tenant_id_mapping_differs.assert_called_once()

    @pytest.mark.asyncio
    async def test_repeat_requests_reuse_client_and_registry_read(
        self, resolver, repository, client_factory
    ):
        """Should serve later requests from cache."""
        first = await resolver.resolve(caller_for("T1"))
        second = await resolver.resolve(caller_for("T1"))

        assert first.scoped_client is second.scoped_client
        assert repository.calls == ["T1"]
        assert len(client_factory.created) == 1

    @pytest.mark.asyncio
    async def test_tenants_get_isolated_clients(self, resolver):
        """Should never hand one tenant's client to another."""
        t1 = await resolver.resolve(caller_for("T1"))
        t2 = await resolver.resolve(caller_for("T2"))

        assert t1.scoped_client is not t2.scoped_client
        assert t2.scoped_client.config.url == "https://dsB"
        assert t2.data_source_tenant_id == "T2"

    @pytest.mark.asyncio
    async def test_default_source_tenants_share_url_not_client(self, resolver):
        """Should give default-source tenants separate clients on the shared URL."""
        t3 = await resolver.resolve(caller_for("T3"))
        t4 = await resolver.resolve(caller_for("T4"))

        assert t3.scoped_client.config.url == t4.scoped_client.config.url
        assert t3.scoped_client is not t4.scoped_client
        assert t3.scoped_client.tenant_id == "T3"

    @pytest.mark.asyncio
    async def test_unknown_tenant_fails_without_caching_a_client(
        self, resolver, manager, client_factory
    ):
        """Should fail resolution and leave no client behind."""
        with pytest.raises(ResolutionFailedError):
            await resolver.resolve(caller_for("ghost"))

        assert client_factory.created == []
        assert manager.get_metrics().active_clients == 0
