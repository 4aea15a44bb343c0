"""Unit tests for the tenant context FastAPI dependency.

Covers:
- Successful resolution passes the TenantContext through
- Each TenantContextError becomes an HTTPException with its status and message
- The resolver is built over the shared manager, logging tenant mapping
  only outside production
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException

from iam.application.observability import TenantContextProbe
from iam.application.tenant_context_resolver import TenantContextResolver
from iam.dependencies.tenant_context import (
    get_tenant_context,
    get_tenant_context_resolver,
)
from iam.ports.exceptions import (
    MissingTenantError,
    ResolutionFailedError,
    UnauthorizedError,
)
from shared_kernel.middleware.tenant_context import CallerIdentity, TenantContext


@pytest.fixture
def caller() -> CallerIdentity:
    return CallerIdentity(user_id="user-123", username="alice", tenant_id="T1")


@pytest.fixture
def mock_resolver() -> MagicMock:
    resolver = MagicMock(spec=TenantContextResolver)
    resolver.resolve = AsyncMock()
    return resolver


class TestGetTenantContext:
    """Tests for get_tenant_context()."""

    @pytest.mark.asyncio
    async def test_returns_resolved_context(self, caller, mock_resolver):
        context = TenantContext(
            scoped_client=object(),
            application_tenant_id="T1",
            data_source_tenant_id="shared-db-tenant-42",
            caller_identity=caller,
        )
        mock_resolver.resolve.return_value = context

        result = await get_tenant_context(caller=caller, resolver=mock_resolver)

        assert result is context
        mock_resolver.resolve.assert_awaited_once_with(caller)

    @pytest.mark.parametrize(
        ("error", "status_code", "detail"),
        [
            (UnauthorizedError(), 401, "Unauthorized: no valid session"),
            (MissingTenantError(), 400, "No tenant ID in session"),
            (
                ResolutionFailedError(cause=RuntimeError("db password wrong")),
                500,
                "Failed to resolve tenant data source",
            ),
        ],
    )
    @pytest.mark.asyncio
    async def test_maps_errors_to_http(
        self, caller, mock_resolver, error, status_code, detail
    ):
        """Should answer with the error's status and its caller-safe message."""
        mock_resolver.resolve.side_effect = error

        with pytest.raises(HTTPException) as exc_info:
            await get_tenant_context(caller=caller, resolver=mock_resolver)

        assert exc_info.value.status_code == status_code
        assert exc_info.value.detail == detail

    @pytest.mark.asyncio
    async def test_internal_cause_is_not_exposed(self, caller, mock_resolver):
        mock_resolver.resolve.side_effect = ResolutionFailedError(
            cause=RuntimeError("db password wrong")
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_tenant_context(caller=caller, resolver=mock_resolver)

        assert "password" not in exc_info.value.detail


class TestGetTenantContextResolver:
    """Tests for get_tenant_context_resolver()."""

    @pytest.mark.parametrize(
        ("is_production", "expected"),
        [(True, False), (False, True)],
    )
    def test_mapping_log_only_outside_production(self, is_production, expected):
        settings = MagicMock()
        settings.is_production = is_production

        with patch("iam.dependencies.tenant_context.get_settings", return_value=settings):
            resolver = get_tenant_context_resolver(
                manager=MagicMock(),
                probe=MagicMock(spec=TenantContextProbe),
            )

        assert resolver._log_tenant_mapping is expected
