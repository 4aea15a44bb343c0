"""Exceptions raised by the data-source routing layer.

Every failure of registry access, config resolution or client construction
surfaces as one of these types. Callers decide on retries or fallbacks;
the routing layer never recovers on their behalf.
"""


class DataSourceError(Exception):
    """Base exception for data-source routing failures."""

    def __init__(self, message: str, tenant_id: str | None = None):
        super().__init__(message)
        self.tenant_id = tenant_id


class TenantNotFoundError(DataSourceError):
    """Raised when the tenant registry has no record for a tenant ID.

    Always a configuration or data-integrity problem upstream; never
    silently defaulted.
    """

    pass


class ConfigNotFoundError(DataSourceError):
    """Raised when a tenant's connection configuration is unusable.

    Covers partially configured registry records, records without a
    dedicated data source when no shared default is configured, and stored
    keys that cannot be decrypted.
    """

    pass


class PoolExhaustedError(DataSourceError):
    """Raised when the client cache is full and the policy forbids eviction."""

    def __init__(
        self,
        message: str,
        tenant_id: str | None = None,
        max_clients: int | None = None,
    ):
        super().__init__(message, tenant_id=tenant_id)
        self.max_clients = max_clients


class ResolutionTimeoutError(DataSourceError):
    """Raised when a registry lookup or client construction exceeds its bound.

    Timed-out resolutions are never cached, so the next request retries
    from scratch.
    """

    pass


class CredentialDecryptionError(Exception):
    """Raised when a stored data-source key cannot be encrypted or decrypted."""

    pass


class DataSourceUnreachableError(DataSourceError):
    """Raised when a data source cannot be reached at all."""

    pass


class DataSourceQueryError(DataSourceError):
    """Raised when a data source answers a query with an error."""

    pass
