"""Ports (interfaces) for the data-source routing bounded context.

Ports define the contracts for the tenant registry store, stored-key
decryption and data-source clients, so the application layer stays independent of
SQLAlchemy and of the HTTP client library.
"""

from datasources.ports.clients import DataSourceClientFactory
from datasources.ports.credentials import ICredentialCipher
from datasources.ports.exceptions import (
    ConfigNotFoundError,
    CredentialDecryptionError,
    DataSourceError,
    DataSourceQueryError,
    DataSourceUnreachableError,
    PoolExhaustedError,
    ResolutionTimeoutError,
    TenantNotFoundError,
)
from datasources.ports.repositories import ITenantRegistryRepository

__all__ = [
    "ConfigNotFoundError",
    "CredentialDecryptionError",
    "DataSourceClientFactory",
    "DataSourceError",
    "DataSourceQueryError",
    "DataSourceUnreachableError",
    "ICredentialCipher",
    "ITenantRegistryRepository",
    "PoolExhaustedError",
    "ResolutionTimeoutError",
    "TenantNotFoundError",
]
