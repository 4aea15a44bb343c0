"""Tenant registry access.

Read-through accessor over the durable tenant registry. It validates a
record once, at this boundary, and turns it into connection parameters.
Caching is layered on top by the connection pool manager so cache policy
stays in one place.
"""

from __future__ import annotations

from pydantic import SecretStr

from datasources.application.observability import (
    DefaultTenantRegistryProbe,
    TenantRegistryProbe,
)
from datasources.domain.value_objects import (
    ConnectionConfig,
    ConnectionPoolConfig,
    ResolvedDataSource,
    TenantRecord,
)
from datasources.ports.credentials import ICredentialCipher
from datasources.ports.exceptions import (
    ConfigNotFoundError,
    CredentialDecryptionError,
    TenantNotFoundError,
)
from datasources.ports.repositories import ITenantRegistryRepository


class TenantRegistry:
    """Resolves tenant IDs to registry records and connection configs.

    Attributes:
        _repository: Store of tenant registry records
        _default_config: Shared default data source, if configured
        _cipher: Decrypts stored keys; None means keys are stored in plain text
        _probe: Observability probe
    """

    def __init__(
        self,
        repository: ITenantRegistryRepository,
        default_config: ConnectionConfig | None = None,
        cipher: ICredentialCipher | None = None,
        probe: TenantRegistryProbe | None = None,
    ) -> None:
        self._repository = repository
        self._default_config = default_config
        self._cipher = cipher
        self._probe = probe or DefaultTenantRegistryProbe()

    async def lookup(self, tenant_id: str) -> TenantRecord:
        """Fetch and validate a tenant's registry record.

        Raises:
            TenantNotFoundError: If the registry has no record for the tenant.
            ConfigNotFoundError: If the record is only partially configured.
        """
        record = await self._repository.get_by_id(tenant_id)
        if record is None:
            self._probe.tenant_not_found(tenant_id)
            raise TenantNotFoundError(
                f"Tenant {tenant_id} not found in registry", tenant_id=tenant_id
            )

        if record.is_partially_configured:
            self._probe.partial_config_detected(
                tenant_id, record.configured_connection_fields
            )
            raise ConfigNotFoundError(
                f"Tenant {tenant_id} has an incomplete data source configuration",
                tenant_id=tenant_id,
            )

        return record

    async def resolve_local_tenant_id(self, tenant_id: str) -> str:
        """Return the tenant's identifier inside its data source.

        Falls back to ``tenant_id`` itself when the record has no mapping.
        """
        record = await self.lookup(tenant_id)
        return self._local_tenant_id(record)

    async def resolve(self, tenant_id: str) -> ResolvedDataSource:
        """Resolve the connection config and local tenant ID for a tenant.

        Raises:
            TenantNotFoundError: If the registry has no record for the tenant.
            ConfigNotFoundError: If the record is incomplete, its keys cannot be
                decrypted, or it has no data source and no default is configured.
        """
        record = await self.lookup(tenant_id)
        return ResolvedDataSource(
            config=self._build_config(record),
            tenant_id_in_data_source=self._local_tenant_id(record),
        )

    @staticmethod
    def _local_tenant_id(record: TenantRecord) -> str:
        mapped = (record.tenant_id_in_data_source or "").strip()
        return mapped or record.tenant_id

    def _build_config(self, record: TenantRecord) -> ConnectionConfig:
        if not record.has_dedicated_data_source:
            if self._default_config is None:
                self._probe.no_data_source_configured(record.tenant_id)
                raise ConfigNotFoundError(
                    f"Tenant {record.tenant_id} has no data source configured",
                    tenant_id=record.tenant_id,
                )
            self._probe.default_data_source_selected(record.tenant_id)
            return self._default_config

        try:
            pool_config = ConnectionPoolConfig.from_dict(record.connection_pool_config)
        except (TypeError, ValueError) as e:
            self._probe.invalid_pool_config(record.tenant_id, e)
            raise ConfigNotFoundError(
                f"Tenant {record.tenant_id} has an invalid connection pool config",
                tenant_id=record.tenant_id,
            ) from e

        assert record.data_source_url is not None
        config = ConnectionConfig(
            url=record.data_source_url,
            anon_key=self._decrypt(record.tenant_id, record.data_source_anon_key),
            service_key=self._decrypt(record.tenant_id, record.data_source_service_key),
            region=record.data_source_region,
            pool_config=pool_config,
        )
        self._probe.dedicated_data_source_selected(
            record.tenant_id, config.url, config.region
        )
        return config

    def _decrypt(self, tenant_id: str, stored: str | None) -> SecretStr:
        assert stored is not None
        if self._cipher is None:
            return SecretStr(stored)
        try:
            return SecretStr(self._cipher.decrypt(stored))
        except CredentialDecryptionError as e:
            self._probe.credential_decryption_failed(tenant_id, e)
            raise ConfigNotFoundError(
                f"Tenant {tenant_id} has unreadable data source credentials",
                tenant_id=tenant_id,
            ) from e
