"""Unit tests for TenantRegistry.

Covers record validation (missing and partial records), selection of the
dedicated or shared default data source, tenant ID mapping and decryption
of stored keys.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from datasources.application.observability import TenantRegistryProbe
from datasources.application.registry import TenantRegistry
from datasources.domain.value_objects import TenantRecord
from datasources.infrastructure.encryption import CredentialCipher
from datasources.ports.exceptions import ConfigNotFoundError, TenantNotFoundError

TEST_KEY = "0123456789abcdef" * 4
OTHER_KEY = "fedcba9876543210" * 4


class FakeRepository:
    def __init__(self, *records: TenantRecord) -> None:
        self.records = {r.tenant_id: r for r in records}

    async def get_by_id(self, tenant_id: str) -> TenantRecord | None:
        return self.records.get(tenant_id)


class TestLookup:
    """Tests for record lookup and validation."""

    @pytest.mark.asyncio
    async def test_unknown_tenant_raises_not_found(self, registry, registry_probe):
        """Should raise TenantNotFoundError and never fall back to the default."""
        with pytest.raises(TenantNotFoundError) as exc_info:
            await registry.resolve("ghost")

        assert exc_info.value.tenant_id == "ghost"
        registry_probe.tenant_not_found.assert_called_once_with("ghost")

    @pytest.mark.asyncio
    async def test_partial_record_is_rejected(self, registry_probe):
        """Should refuse a record with only some connection fields set."""
        registry = TenantRegistry(
            repository=FakeRepository(
                TenantRecord(tenant_id="T9", data_source_url="https://half")
            ),
            probe=registry_probe,
        )

        with pytest.raises(ConfigNotFoundError):
            await registry.lookup("T9")

        registry_probe.partial_config_detected.assert_called_once_with(
            "T9", ["data_source_url"]
        )


class TestResolve:
    """Tests for data source selection."""

    @pytest.mark.asyncio
    async def test_dedicated_data_source(self, registry):
        """Should build the config from the tenant's own record."""
        resolved = await registry.resolve("T1")

        config = resolved.config
        assert config.url == "https://dsA"
        assert config.service_key.get_secret_value() == "service-a"
        assert config.anon_key.get_secret_value() == "anon-a"
        assert config.region == "us-east-1"
        assert config.pool_config is not None
        assert config.pool_config.max == 5
        assert not config.is_default

    @pytest.mark.asyncio
    async def test_record_without_data_source_uses_default(
        self, registry, default_config
    ):
        """Should hand out the shared default config."""
        resolved = await registry.resolve("T3")

        assert resolved.config is default_config
        assert resolved.tenant_id_in_data_source == "T3"

    @pytest.mark.asyncio
    async def test_no_default_configured_raises(self, repository, registry_probe):
        """Should raise ConfigNotFoundError when neither source exists."""
        registry = TenantRegistry(repository=repository, probe=registry_probe)

        with pytest.raises(ConfigNotFoundError):
            await registry.resolve("T3")

        registry_probe.no_data_source_configured.assert_called_once_with("T3")

    @pytest.mark.asyncio
    async def test_invalid_pool_config_raises(self, registry_probe):
        """Should reject a record whose pool override is inconsistent."""
        registry = TenantRegistry(
            repository=FakeRepository(
                TenantRecord(
                    tenant_id="T9",
                    data_source_url="https://x",
                    data_source_anon_key="a",
                    data_source_service_key="s",
                    connection_pool_config={"min": 10, "max": 2},
                )
            ),
            probe=registry_probe,
        )

        with pytest.raises(ConfigNotFoundError):
            await registry.resolve("T9")

        registry_probe.invalid_pool_config.assert_called_once()


class TestLocalTenantId:
    """Tests for tenant ID mapping."""

    @pytest.mark.asyncio
    async def test_mapping_is_used_when_present(self, registry):
        """Should return the mapped ID."""
        assert await registry.resolve_local_tenant_id("T1") == "shared-db-tenant-42"

    @pytest.mark.asyncio
    async def test_falls_back_to_application_id(self, registry):
        """Should return the tenant ID itself when there is no mapping."""
        assert await registry.resolve_local_tenant_id("T2") == "T2"

    @pytest.mark.asyncio
    async def test_blank_mapping_is_ignored(self):
        """Should treat a whitespace-only mapping as absent."""
        registry = TenantRegistry(
            repository=FakeRepository(
                TenantRecord(tenant_id="T9", tenant_id_in_data_source="   ")
            ),
            probe=MagicMock(spec=TenantRegistryProbe),
        )

        assert await registry.resolve_local_tenant_id("T9") == "T9"


class TestDecryption:
    """Tests for encrypted key handling."""

    @pytest.mark.asyncio
    async def test_decrypts_stored_keys(self, registry_probe):
        """Should decrypt both keys with the cipher."""
        cipher = CredentialCipher(TEST_KEY)
        registry = TenantRegistry(
            repository=FakeRepository(
                TenantRecord(
                    tenant_id="T9",
                    data_source_url="https://x",
                    data_source_anon_key=cipher.encrypt("anon-secret"),
                    data_source_service_key=cipher.encrypt("service-secret"),
                )
            ),
            cipher=cipher,
            probe=registry_probe,
        )

        resolved = await registry.resolve("T9")

        assert resolved.config.anon_key.get_secret_value() == "anon-secret"
        assert resolved.config.service_key.get_secret_value() == "service-secret"

    @pytest.mark.asyncio
    async def test_undecryptable_keys_raise_config_not_found(self, registry_probe):
        """Should surface a wrong key as ConfigNotFoundError."""
        stored = CredentialCipher(OTHER_KEY).encrypt("secret")
        registry = TenantRegistry(
            repository=FakeRepository(
                TenantRecord(
                    tenant_id="T9",
                    data_source_url="https://x",
                    data_source_anon_key=stored,
                    data_source_service_key=stored,
                )
            ),
            cipher=CredentialCipher(TEST_KEY),
            probe=registry_probe,
        )

        with pytest.raises(ConfigNotFoundError):
            await registry.resolve("T9")

        registry_probe.credential_decryption_failed.assert_called_once()
