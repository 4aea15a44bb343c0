"""HTTP routes for data-source diagnostics.

Exposes connection cache metrics and health, and lets a caller inspect and
test the data source serving their own tenant.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from datasources.application.health import (
    assess_health,
    caching_grade,
    overall_grade,
    pooling_grade,
)
from datasources.application.manager import DataSourceManager
from datasources.dependencies import get_data_source_manager
from datasources.ports.exceptions import (
    ConfigNotFoundError,
    DataSourceError,
    TenantNotFoundError,
)
from datasources.presentation.models import (
    ConnectionInfoResponse,
    ConnectionTestResponse,
    GradeResponse,
    HealthResponse,
    MetricsResetResponse,
    PerformanceResponse,
    PerformanceScoresResponse,
    PoolConfigurationResponse,
    PoolMetricsResponse,
)
from iam.dependencies.authentication import get_current_caller
from shared_kernel.middleware.tenant_context import CallerIdentity

DATA_SOURCE_NOT_FOUND_DETAIL = "No data source is available for this tenant"

router = APIRouter(
    prefix="/diagnostics/data-sources",
    tags=["diagnostics"],
    dependencies=[Depends(get_current_caller)],
)


def _require_tenant_id(caller: CallerIdentity) -> str:
    tenant_id = (caller.tenant_id or "").strip()
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No tenant ID in session",
        )
    return tenant_id


@router.get("/performance")
async def get_performance(
    response: Response,
    manager: Annotated[DataSourceManager, Depends(get_data_source_manager)],
) -> PerformanceResponse:
    """Report connection cache metrics, health and grades.

    The response is never cached by clients or proxies.
    """
    metrics = manager.get_metrics()
    report = assess_health(metrics)
    overall = overall_grade(report)

    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    response.headers["Pragma"] = "no-cache"

    return PerformanceResponse(
        timestamp=datetime.now(UTC),
        health=HealthResponse.from_domain(report),
        scores=PerformanceScoresResponse(
            caching=GradeResponse.from_domain(caching_grade(metrics)),
            pooling=GradeResponse.from_domain(pooling_grade(metrics)),
            overall=GradeResponse.from_domain(overall),
        ),
        summary=f"Overall Grade: {overall.grade} ({report.score}/100)",
        metrics=PoolMetricsResponse.from_domain(metrics),
        configuration=PoolConfigurationResponse.from_domain(
            manager.get_pool_configuration()
        ),
    )


@router.post("/metrics/reset")
async def reset_metrics(
    caller: Annotated[CallerIdentity, Depends(get_current_caller)],
    manager: Annotated[DataSourceManager, Depends(get_data_source_manager)],
) -> MetricsResetResponse:
    """Zero the connection cache counters. Cached entries are kept."""
    manager.reset_metrics()
    return MetricsResetResponse(
        timestamp=datetime.now(UTC),
        reset_by=caller.user_id,
    )


@router.get("/connection")
async def get_connection_info(
    caller: Annotated[CallerIdentity, Depends(get_current_caller)],
    manager: Annotated[DataSourceManager, Depends(get_data_source_manager)],
) -> ConnectionInfoResponse:
    """Describe the data source serving the caller's tenant.

    Raises:
        HTTPException: 400 if the session has no tenant ID
        HTTPException: 404 if the tenant or its data source config is unknown
        HTTPException: 500 for other resolution failures
    """
    tenant_id = _require_tenant_id(caller)
    try:
        info = await manager.get_connection_info(tenant_id)
    except (TenantNotFoundError, ConfigNotFoundError) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=DATA_SOURCE_NOT_FOUND_DETAIL,
        ) from e
    except DataSourceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to resolve tenant data source",
        ) from e
    return ConnectionInfoResponse.from_domain(tenant_id, info)


@router.post("/connection/test")
async def test_connection(
    caller: Annotated[CallerIdentity, Depends(get_current_caller)],
    manager: Annotated[DataSourceManager, Depends(get_data_source_manager)],
) -> ConnectionTestResponse:
    """Run a one-row query against the caller's tenant data source.

    Failures are reported in the body with a 200 status.
    """
    tenant_id = _require_tenant_id(caller)
    result = await manager.test_connection(tenant_id)
    return ConnectionTestResponse.from_domain(result)
