"""Tenant context resolution.

Turns an authenticated session into a TenantContext: a client scoped to
the tenant's data source plus the tenant's ID inside that data source.
Every request handler that touches tenant data starts here.
"""

from __future__ import annotations

from iam.application.observability import (
    DefaultTenantContextProbe,
    TenantContextProbe,
)
from iam.ports.data_sources import ITenantDataSourceProvider
from iam.ports.exceptions import (
    MissingTenantError,
    ResolutionFailedError,
    UnauthorizedError,
)
from shared_kernel.middleware.tenant_context import CallerIdentity, TenantContext


class TenantContextResolver:
    """Builds a request's tenant context from its session.

    Stateless across calls; all caching happens behind the data-source
    provider.
    """

    def __init__(
        self,
        data_sources: ITenantDataSourceProvider,
        probe: TenantContextProbe | None = None,
        log_tenant_mapping: bool = False,
    ) -> None:
        """Initialize the resolver.

        Args:
            data_sources: Provider of tenant-scoped clients and local IDs
            probe: Optional domain probe for observability
            log_tenant_mapping: Log when the data-source tenant ID differs
                from the application tenant ID. Intended for non-production
                environments.
        """
        self._data_sources = data_sources
        self._probe = probe or DefaultTenantContextProbe()
        self._log_tenant_mapping = log_tenant_mapping

    async def resolve(self, caller: CallerIdentity | None) -> TenantContext:
        """Resolve the tenant context for ``caller``.

        Raises:
            UnauthorizedError: If there is no authenticated session.
            MissingTenantError: If the session has no application tenant ID.
            ResolutionFailedError: If the tenant's data source could not be
                resolved. The underlying error is kept on ``cause``.
        """
        if caller is None:
            self._probe.session_missing()
            raise UnauthorizedError()

        tenant_id = (caller.tenant_id or "").strip()
        if not tenant_id:
            self._probe.tenant_claim_missing(user_id=caller.user_id)
            raise MissingTenantError()

        try:
            client = await self._data_sources.get_client_for_tenant(tenant_id)
            data_source_tenant_id = await self._data_sources.get_local_tenant_id(
                tenant_id
            )
        except Exception as e:
            self._probe.tenant_resolution_failed(
                tenant_id=tenant_id,
                user_id=caller.user_id,
                error=e,
            )
            raise ResolutionFailedError(cause=e) from e

        if self._log_tenant_mapping and data_source_tenant_id != tenant_id:
            self._probe.tenant_id_mapping_differs(
                application_tenant_id=tenant_id,
                data_source_tenant_id=data_source_tenant_id,
            )

        self._probe.tenant_context_resolved(
            tenant_id=tenant_id,
            data_source_tenant_id=data_source_tenant_id,
            user_id=caller.user_id,
        )
        return TenantContext(
            scoped_client=client,
            application_tenant_id=tenant_id,
            data_source_tenant_id=data_source_tenant_id,
            caller_identity=caller,
        )
