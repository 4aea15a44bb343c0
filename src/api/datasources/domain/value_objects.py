"""Value objects for the data-source routing domain.

Value objects are immutable descriptors of where a tenant's business data
lives and how the routing layer is performing. Secrets are carried as
``SecretStr`` so they never leak through ``repr`` or logs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import SecretStr


class ClientRole(StrEnum):
    """Privilege level of a data-source client.

    SERVICE clients use the role-scoped service key and are what server-side
    handlers use. ANON clients use the lesser-privileged anon key.
    """

    SERVICE = "service"
    ANON = "anon"


@dataclass(frozen=True)
class ConnectionPoolConfig:
    """Per-tenant pool sizing override for a dedicated data source."""

    min: int = 2
    max: int = 10

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> ConnectionPoolConfig | None:
        """Build from the registry's JSON column.

        Returns None for an absent or empty override.

        Raises:
            ValueError: If the values are not positive integers with min <= max.
        """
        if not raw:
            return None
        minimum = int(raw.get("min", cls.min))
        maximum = int(raw.get("max", cls.max))
        if minimum < 0 or maximum < 1 or minimum > maximum:
            raise ValueError(
                f"Invalid connection pool config: min={minimum}, max={maximum}"
            )
        return cls(min=minimum, max=maximum)

    def as_dict(self) -> dict[str, int]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class TenantRecord:
    """A tenant registry entry as stored in the application database.

    Keys are kept in their stored (possibly encrypted) form. Whether the
    record is usable is decided by the registry access layer, not here.

    Attributes:
        tenant_id: Application tenant identifier.
        data_source_url: URL of the dedicated data source, if any.
        data_source_anon_key: Stored anon key, if any.
        data_source_service_key: Stored service-role key, if any.
        data_source_region: Informational region label.
        tenant_id_in_data_source: Tenant identifier inside the data source.
        connection_pool_config: Raw pool sizing override.
    """

    tenant_id: str
    data_source_url: str | None = None
    data_source_anon_key: str | None = None
    data_source_service_key: str | None = None
    data_source_region: str | None = None
    tenant_id_in_data_source: str | None = None
    connection_pool_config: dict[str, Any] | None = None

    @property
    def configured_connection_fields(self) -> list[str]:
        """Names of the connection fields that carry a value."""
        fields = {
            "data_source_url": self.data_source_url,
            "data_source_anon_key": self.data_source_anon_key,
            "data_source_service_key": self.data_source_service_key,
        }
        return [name for name, value in fields.items() if value]

    @property
    def has_dedicated_data_source(self) -> bool:
        """True when all connection fields are set."""
        return len(self.configured_connection_fields) == 3

    @property
    def is_partially_configured(self) -> bool:
        """True when some, but not all, connection fields are set."""
        return 0 < len(self.configured_connection_fields) < 3


@dataclass(frozen=True)
class ConnectionConfig:
    """Decrypted connection parameters of a data source."""

    url: str
    anon_key: SecretStr
    service_key: SecretStr
    region: str | None = None
    pool_config: ConnectionPoolConfig | None = None
    is_default: bool = False

    def key_for(self, role: ClientRole) -> SecretStr:
        """Return the credential matching ``role``."""
        if role is ClientRole.SERVICE:
            return self.service_key
        return self.anon_key


@dataclass(frozen=True)
class ResolvedDataSource:
    """Connection config plus the tenant's identifier inside that data source."""

    config: ConnectionConfig
    tenant_id_in_data_source: str


@dataclass(frozen=True)
class ConnectionInfo:
    """Diagnostic view of a tenant's data source. Never carries secrets."""

    url: str
    region: str | None
    pool_config: ConnectionPoolConfig | None
    is_default: bool
    is_cached: bool
    cache_expires_in_seconds: float | None = None


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of a tenant connection test."""

    success: bool
    response_time_ms: float
    can_connect: bool
    can_query: bool
    error: str | None = None


@dataclass(frozen=True)
class PoolMetrics:
    """Point-in-time snapshot of the connection cache counters."""

    config_cache_hits: int = 0
    config_cache_misses: int = 0
    client_cache_hits: int = 0
    client_cache_misses: int = 0
    total_clients_created: int = 0
    pool_exhausted_count: int = 0
    evictions: int = 0
    active_clients: int = 0
    max_clients: int = 0
    config_cache_size: int = 0
    client_cache_size: int = 0

    @property
    def cache_hits(self) -> int:
        return self.config_cache_hits + self.client_cache_hits

    @property
    def cache_misses(self) -> int:
        return self.config_cache_misses + self.client_cache_misses

    @property
    def cache_hit_rate(self) -> float:
        """Percentage of lookups served from cache; 0 when nothing was looked up."""
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return 0.0
        return self.cache_hits / total * 100

    @property
    def pool_utilization(self) -> float:
        """Percentage of the client ceiling currently in use."""
        if self.max_clients == 0:
            return 0.0
        return self.active_clients / self.max_clients * 100

    def as_dict(self) -> dict[str, Any]:
        return {
            "config_cache_hits": self.config_cache_hits,
            "config_cache_misses": self.config_cache_misses,
            "client_cache_hits": self.client_cache_hits,
            "client_cache_misses": self.client_cache_misses,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_hit_rate": self.cache_hit_rate,
            "total_clients_created": self.total_clients_created,
            "pool_exhausted_count": self.pool_exhausted_count,
            "evictions": self.evictions,
            "active_clients": self.active_clients,
            "max_clients": self.max_clients,
            "pool_utilization": self.pool_utilization,
            "config_cache_size": self.config_cache_size,
            "client_cache_size": self.client_cache_size,
        }


@dataclass(frozen=True)
class PoolConfiguration:
    """Effective routing configuration, as reported by diagnostics."""

    max_clients: int
    enable_metrics: bool
    eviction_policy: str
    config_cache_ttl_seconds: float
    client_cache_ttl_seconds: float
    cache_cleanup_interval_seconds: float
    resolution_timeout_seconds: float
    retired_client_grace_seconds: float = 30.0
