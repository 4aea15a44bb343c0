"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Application database settings.

    The application database hosts the tenant registry. It is never used
    for tenant business data.

    Environment variables:
        CRM_DB_HOST: Database host (default: localhost)
        CRM_DB_PORT: Database port (default: 5432)
        CRM_DB_DATABASE: Database name (default: crm)
        CRM_DB_USERNAME: Database user (default: crm)
        CRM_DB_PASSWORD: Database password (required in production)
        CRM_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        CRM_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="CRM_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="crm", description="Database name")
    username: str = Field(default="crm", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class DataSourceSettings(BaseSettings):
    """Tenant data-source routing settings.

    Read once at startup. Every value has a default so the router works
    with zero configuration.

    Environment variables:
        CRM_DATA_SOURCE_MAX_CLIENTS: Maximum cached clients (default: 50)
        CRM_DATA_SOURCE_CONFIG_CACHE_TTL_SECONDS: Config cache TTL (default: 300)
        CRM_DATA_SOURCE_CLIENT_CACHE_TTL_SECONDS: Client cache TTL (default: 3600)
        CRM_DATA_SOURCE_CACHE_CLEANUP_INTERVAL_SECONDS: Sweep interval (default: 600)
        CRM_DATA_SOURCE_ENABLE_METRICS: Track cache hit/miss counters (default: true)
        CRM_DATA_SOURCE_EVICTION_POLICY: 'lru' or 'fail' when full (default: lru)
        CRM_DATA_SOURCE_RESOLUTION_TIMEOUT_SECONDS: Registry/client bound (default: 10)
        CRM_DATA_SOURCE_CLIENT_TIMEOUT_SECONDS: HTTP timeout of clients (default: 30)
        CRM_DATA_SOURCE_ENCRYPTION_KEY: 64 hex chars for stored keys (optional)
        CRM_DATA_SOURCE_DEFAULT_URL: Shared default data source URL (optional)
        CRM_DATA_SOURCE_DEFAULT_ANON_KEY: Shared default anon key (optional)
        CRM_DATA_SOURCE_DEFAULT_SERVICE_KEY: Shared default service key (optional)
        CRM_DATA_SOURCE_DEFAULT_REGION: Shared default region (optional)
    """

    model_config = SettingsConfigDict(
        env_prefix="CRM_DATA_SOURCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_clients: int = Field(
        default=50,
        description="Maximum number of live data-source clients",
        ge=1,
        le=10_000,
    )
    config_cache_ttl_seconds: float = Field(
        default=300.0,
        description="Lifetime of a cached tenant connection config",
        gt=0,
    )
    client_cache_ttl_seconds: float = Field(
        default=3600.0,
        description="Lifetime of a cached data-source client",
        gt=0,
    )
    cache_cleanup_interval_seconds: float = Field(
        default=600.0,
        description="Interval of the expired-entry sweep",
        gt=0,
    )
    enable_metrics: bool = Field(
        default=True,
        description="Track cache hit/miss counters",
    )
    eviction_policy: Literal["lru", "fail"] = Field(
        default="lru",
        description="Behaviour when the client cache is full",
    )
    resolution_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound for registry lookups and client construction",
        gt=0,
    )
    client_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout applied to data-source clients",
        gt=0,
    )
    encryption_key: SecretStr | None = Field(
        default=None,
        description="Hex encoded AES-256 key for stored data-source keys",
    )
    default_url: str | None = Field(
        default=None,
        description="URL of the shared default data source",
    )
    default_anon_key: SecretStr | None = Field(
        default=None,
        description="Anon key of the shared default data source",
    )
    default_service_key: SecretStr | None = Field(
        default=None,
        description="Service-role key of the shared default data source",
    )
    default_region: str | None = Field(
        default=None,
        description="Region of the shared default data source",
    )

    @model_validator(mode="after")
    def validate_default_data_source(self) -> "DataSourceSettings":
        """Require the default data source to be fully configured or absent."""
        fields = {
            "default_url": self.default_url,
            "default_anon_key": self.default_anon_key,
            "default_service_key": self.default_service_key,
        }
        present = [name for name, value in fields.items() if value]
        if present and len(present) != len(fields):
            missing = sorted(set(fields) - set(present))
            raise ValueError(
                "Shared default data source is partially configured; "
                f"missing: {', '.join(missing)}"
            )
        return self

    @property
    def has_default_data_source(self) -> bool:
        """Whether a shared default data source is configured."""
        return bool(self.default_url)


class OIDCSettings(BaseSettings):
    """OIDC settings used to validate session tokens.

    Environment variables:
        CRM_OIDC_ISSUER_URL: Issuer URL (default: local Keycloak realm)
        CRM_OIDC_AUDIENCE: Expected audience (default: crm-api)
        CRM_OIDC_USER_ID_CLAIM: Claim holding the user ID (default: sub)
        CRM_OIDC_USERNAME_CLAIM: Claim holding the username (default: preferred_username)
        CRM_OIDC_EMAIL_CLAIM: Claim holding the e-mail address (default: email)
        CRM_OIDC_TENANT_ID_CLAIM: Claim holding the application tenant ID (default: tenant_id)
        CRM_OIDC_ROLE_CLAIM: Claim holding the application role (default: role)
    """

    model_config = SettingsConfigDict(
        env_prefix="CRM_OIDC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    issuer_url: str = Field(
        default="http://localhost:8080/realms/crm",
        description="OIDC issuer URL",
    )
    audience: str = Field(default="crm-api", description="Expected audience")
    user_id_claim: str = Field(default="sub", description="User ID claim")
    username_claim: str = Field(
        default="preferred_username",
        description="Username claim",
    )
    email_claim: str = Field(default="email", description="E-mail claim")
    tenant_id_claim: str = Field(
        default="tenant_id",
        description="Application tenant ID claim",
    )
    role_claim: str = Field(default="role", description="Application role claim")


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="CRM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="CRM Tenant Router", description="Application name")
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_production(self) -> bool:
        """Whether the application runs in production."""
        return self.environment == "production"

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def data_sources(self) -> DataSourceSettings:
        """Get data-source routing settings."""
        return get_data_source_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_data_source_settings() -> DataSourceSettings:
    """Get cached data-source routing settings."""
    return DataSourceSettings()


@lru_cache
def get_oidc_settings() -> OIDCSettings:
    """Get cached OIDC settings."""
    return OIDCSettings()
