"""Tenant context FastAPI dependency.

Resolves the caller's tenant context: a client scoped to the tenant's data
source plus the tenant's ID inside that data source. Resolution failures
become HTTP errors with the status carried by the exception.

Usage in FastAPI routes:
    @router.get("/accounts")
    async def list_accounts(
        tenant: Annotated[TenantContext, Depends(get_tenant_context)],
    ):
        response = await tenant.scoped_client.get(
            "/accounts",
            params={"tenant_id": f"eq.{tenant.data_source_tenant_id}"},
        )
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException

from datasources.application.manager import DataSourceManager
from datasources.dependencies import get_data_source_manager
from iam.application.observability import (
    DefaultTenantContextProbe,
    TenantContextProbe,
)
from iam.application.tenant_context_resolver import TenantContextResolver
from iam.dependencies.authentication import get_optional_caller
from iam.ports.exceptions import TenantContextError
from infrastructure.settings import get_settings
from shared_kernel.middleware.tenant_context import CallerIdentity, TenantContext


def get_tenant_context_probe() -> TenantContextProbe:
    """Get TenantContextProbe instance."""
    return DefaultTenantContextProbe()


def get_tenant_context_resolver(
    manager: Annotated[DataSourceManager, Depends(get_data_source_manager)],
    probe: Annotated[TenantContextProbe, Depends(get_tenant_context_probe)],
) -> TenantContextResolver:
    """Get a TenantContextResolver over the shared DataSourceManager.

    Tenant ID mapping is only logged outside production.
    """
    return TenantContextResolver(
        data_sources=manager,
        probe=probe,
        log_tenant_mapping=not get_settings().is_production,
    )


async def get_tenant_context(
    caller: Annotated[CallerIdentity | None, Depends(get_optional_caller)],
    resolver: Annotated[TenantContextResolver, Depends(get_tenant_context_resolver)],
) -> TenantContext:
    """Resolve the tenant context for the current request.

    Raises:
        HTTPException 401: If the request has no authenticated session.
        HTTPException 400: If the session has no tenant ID.
        HTTPException 500: If the tenant's data source could not be resolved.
    """
    try:
        return await resolver.resolve(caller)
    except TenantContextError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
