"""SQLAlchemy ORM model for the tenant registry.

The registry lives in the application database. Each row maps an
application tenant to the physical data source holding its business data.
"""

from typing import Any

from sqlalchemy import JSON, CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class TenantRegistryModel(Base, TimestampMixin):
    """ORM model for the tenants table.

    Note: data_source_url, data_source_anon_key and data_source_service_key
    are either all set or all NULL. Rows without them are served by the
    shared default data source.
    """

    __tablename__ = "tenants"
    __table_args__ = (
        CheckConstraint(
            "(data_source_url IS NULL AND data_source_anon_key IS NULL "
            "AND data_source_service_key IS NULL) OR "
            "(data_source_url IS NOT NULL AND data_source_anon_key IS NOT NULL "
            "AND data_source_service_key IS NOT NULL)",
            name="ck_tenants_data_source_complete",
        ),
        Index("idx_tenants_name", "name", unique=True),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    data_source_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_source_anon_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_source_service_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_source_region: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tenant_id_in_data_source: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    connection_pool_config: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<TenantRegistryModel(id={self.id}, name={self.name}, "
            f"data_source_url={self.data_source_url})>"
        )
