"""Tenant context value objects for the current request.

This module contains the pure value objects that describe who is calling
and which data source serves them. They are framework-agnostic and contain
no business logic, making them safe for the shared kernel.

The resolution logic (session checks, registry lookup, client
acquisition) lives in the IAM bounded context.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated caller, as read from validated token claims.

    Attributes:
        user_id: Subject identifier from the identity provider.
        username: Display username, falling back to the user ID.
        email: E-mail address, if the token carries one.
        role: Application role, if the token carries one.
        tenant_id: Application tenant ID. None when the account has not been
            provisioned into a tenant.
    """

    user_id: str
    username: str
    email: str | None = None
    role: str | None = None
    tenant_id: str | None = None


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant context for the current request.

    Built fresh for every request and never cached. The scoped client is
    the only sanctioned path from a request handler to tenant data.

    Attributes:
        scoped_client: Client bound to the tenant's data source.
        application_tenant_id: Tenant ID used by the application and its
            registry.
        data_source_tenant_id: Tenant ID to filter rows by inside the data
            source. Equal to ``application_tenant_id`` unless the registry
            maps it.
        caller_identity: The authenticated caller.
    """

    scoped_client: Any
    application_tenant_id: str
    data_source_tenant_id: str
    caller_identity: CallerIdentity
