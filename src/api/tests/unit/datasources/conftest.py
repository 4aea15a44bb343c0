"""Fakes and fixtures for the datasources unit tests.

The registry repository and client factory are replaced by in-memory
fakes that record every call, so tests can assert how many registry reads
and client constructions a sequence of requests cost.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from unittest.mock import MagicMock

import pytest
from pydantic import SecretStr

from datasources.application.observability import (
    ConnectionPoolProbe,
    TenantRegistryProbe,
)
from datasources.application.pool_manager import ConnectionPoolManager
from datasources.application.registry import TenantRegistry
from datasources.domain.value_objects import (
    ClientRole,
    ConnectionConfig,
    PoolConfiguration,
    TenantRecord,
)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryTenantRegistryRepository:
    """Tenant registry backed by a dict. Records every lookup."""

    def __init__(self, records: list[TenantRecord], delay: float = 0.0) -> None:
        self.records = {record.tenant_id: record for record in records}
        self.calls: list[str] = []
        self.delay = delay

    async def get_by_id(self, tenant_id: str) -> TenantRecord | None:
        self.calls.append(tenant_id)
        await asyncio.sleep(self.delay)
        return self.records.get(tenant_id)


@dataclass(eq=False)
class FakeClient:
    config: ConnectionConfig
    role: ClientRole
    tenant_id: str | None
    closed: bool = False


class FakeClientFactory:
    """Client factory producing FakeClient objects."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.created: list[FakeClient] = []
        self.closed: list[FakeClient] = []
        self.verified: list[tuple[FakeClient, str]] = []
        self.verify_error: Exception | None = None
        self.close_error: Exception | None = None

    async def create_client(
        self, config: ConnectionConfig, role: ClientRole, tenant_id: str | None
    ) -> FakeClient:
        await asyncio.sleep(self.delay)
        client = FakeClient(config=config, role=role, tenant_id=tenant_id)
        self.created.append(client)
        return client

    async def verify_client(self, client: FakeClient, data_source_tenant_id: str) -> None:
        self.verified.append((client, data_source_tenant_id))
        if self.verify_error is not None:
            raise self.verify_error

    async def close_client(self, client: FakeClient) -> None:
        if self.close_error is not None:
            raise self.close_error
        client.closed = True
        self.closed.append(client)


TENANT_RECORDS = [
    TenantRecord(
        tenant_id="T1",
        data_source_url="https://dsA",
        data_source_anon_key="anon-a",
        data_source_service_key="service-a",
        data_source_region="us-east-1",
        tenant_id_in_data_source="shared-db-tenant-42",
        connection_pool_config={"min": 1, "max": 5},
    ),
    TenantRecord(
        tenant_id="T2",
        data_source_url="https://dsB",
        data_source_anon_key="anon-b",
        data_source_service_key="service-b",
    ),
    TenantRecord(tenant_id="T3"),
    TenantRecord(tenant_id="T4"),
]


def make_pool_configuration(**overrides: Any) -> PoolConfiguration:
    values: dict[str, Any] = {
        "max_clients": 10,
        "enable_metrics": True,
        "eviction_policy": "lru",
        "config_cache_ttl_seconds": 300.0,
        "client_cache_ttl_seconds": 3600.0,
        "cache_cleanup_interval_seconds": 600.0,
        "resolution_timeout_seconds": 10.0,
    }
    values.update(overrides)
    return PoolConfiguration(**values)


@pytest.fixture
def default_config() -> ConnectionConfig:
    """Shared default data source."""
    return ConnectionConfig(
        url="https://shared.example.com",
        anon_key=SecretStr("shared-anon"),
        service_key=SecretStr("shared-service"),
        region="eu-west-1",
        is_default=True,
    )


@pytest.fixture
def repository() -> InMemoryTenantRegistryRepository:
    return InMemoryTenantRegistryRepository(list(TENANT_RECORDS))


@pytest.fixture
def registry_probe() -> MagicMock:
    return MagicMock(spec=TenantRegistryProbe)


@pytest.fixture
def registry(
    repository: InMemoryTenantRegistryRepository,
    default_config: ConnectionConfig,
    registry_probe: MagicMock,
) -> TenantRegistry:
    """Registry with plain-text keys and a shared default."""
    return TenantRegistry(
        repository=repository,
        default_config=default_config,
        probe=registry_probe,
    )


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pool_probe() -> MagicMock:
    return MagicMock(spec=ConnectionPoolProbe)


@pytest.fixture
def make_pool(
    registry: TenantRegistry,
    client_factory: FakeClientFactory,
    clock: FakeClock,
    pool_probe: MagicMock,
) -> Callable[..., ConnectionPoolManager]:
    """Build a ConnectionPoolManager with configuration overrides.

    ``factory`` replaces the fake client factory, e.g. with a real one over
    a mock transport.
    """

    def _make(factory: Any = None, **overrides: Any) -> ConnectionPoolManager:
        return ConnectionPoolManager(
            registry=registry,
            client_factory=factory or client_factory,
            configuration=make_pool_configuration(**overrides),
            probe=pool_probe,
            clock=clock,
        )

    return _make


@pytest.fixture
def pool(make_pool: Callable[..., ConnectionPoolManager]) -> ConnectionPoolManager:
    return make_pool()
