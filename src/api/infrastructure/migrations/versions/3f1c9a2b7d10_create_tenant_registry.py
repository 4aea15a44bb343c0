"""create tenant registry

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-19 09:12:44.318205

Creates the tenants table mapping each application tenant to the data
source holding its business data. The three connection columns are
all-or-none; rows without them are served by the shared default data
source.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3f1c9a2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tenants table with the data source completeness check."""
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("data_source_url", sa.Text, nullable=True),
        sa.Column("data_source_anon_key", sa.Text, nullable=True),
        sa.Column("data_source_service_key", sa.Text, nullable=True),
        sa.Column("data_source_region", sa.String(64), nullable=True),
        sa.Column("tenant_id_in_data_source", sa.String(64), nullable=True),
        sa.Column("connection_pool_config", sa.JSON, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
        ),
        sa.CheckConstraint(
            "(data_source_url IS NULL AND data_source_anon_key IS NULL "
            "AND data_source_service_key IS NULL) OR "
            "(data_source_url IS NOT NULL AND data_source_anon_key IS NOT NULL "
            "AND data_source_service_key IS NOT NULL)",
            name="ck_tenants_data_source_complete",
        ),
    )

    # Tenant names are shown in admin tooling and must be unique
    op.create_index("idx_tenants_name", "tenants", ["name"], unique=True)


def downgrade() -> None:
    """Drop tenants table."""
    op.drop_index("idx_tenants_name", table_name="tenants")
    op.drop_table("tenants")
