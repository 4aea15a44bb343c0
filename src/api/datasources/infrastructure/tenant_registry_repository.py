"""PostgreSQL implementation of ITenantRegistryRepository.

Reads tenant registry rows from the application database. The repository
is shared by every request through the process-wide DataSourceManager, so
it opens a short-lived session per read instead of borrowing a
request-scoped one.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from datasources.domain.value_objects import TenantRecord
from datasources.infrastructure.models import TenantRegistryModel
from datasources.infrastructure.observability import (
    DefaultTenantRegistryRepositoryProbe,
    TenantRegistryRepositoryProbe,
)
from datasources.ports.repositories import ITenantRegistryRepository


class TenantRegistryRepository(ITenantRegistryRepository):
    """Repository reading tenant registry records from PostgreSQL."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        probe: TenantRegistryRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: Factory for application database sessions
            probe: Optional domain probe for observability
        """
        self._session_factory = session_factory
        self._probe = probe or DefaultTenantRegistryRepositoryProbe()

    async def get_by_id(self, tenant_id: str) -> TenantRecord | None:
        """Retrieve a tenant's registry record.

        Args:
            tenant_id: The application tenant identifier

        Returns:
            The TenantRecord, or None if the tenant is not registered

        Raises:
            SQLAlchemyError: If the application database cannot be queried
        """
        stmt = select(TenantRegistryModel).where(TenantRegistryModel.id == tenant_id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                model = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._probe.registry_query_failed(tenant_id, e)
            raise

        if model is None:
            self._probe.tenant_record_not_found(tenant_id)
            return None

        self._probe.tenant_record_retrieved(tenant_id)
        return self._to_record(model)

    @staticmethod
    def _to_record(model: TenantRegistryModel) -> TenantRecord:
        return TenantRecord(
            tenant_id=model.id,
            data_source_url=model.data_source_url,
            data_source_anon_key=model.data_source_anon_key,
            data_source_service_key=model.data_source_service_key,
            data_source_region=model.data_source_region,
            tenant_id_in_data_source=model.tenant_id_in_data_source,
            connection_pool_config=model.connection_pool_config,
        )
