"""Unit test fixtures with mocked dependencies."""

import pytest


@pytest.fixture
def mock_db_settings():
    """Provide test database settings."""
    from infrastructure.settings import DatabaseSettings

    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
    )


@pytest.fixture
def mock_data_source_settings():
    """Provide data-source settings with a shared default data source."""
    from infrastructure.settings import DataSourceSettings

    return DataSourceSettings(
        default_url="https://shared.example.com",
        default_anon_key="shared-anon",
        default_service_key="shared-service",
        default_region="eu-west-1",
    )
