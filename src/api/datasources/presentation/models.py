"""Pydantic models for data-source diagnostics responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from datasources.application.health import Grade, HealthReport
from datasources.domain.value_objects import (
    ConnectionInfo,
    ConnectionTestResult,
    PoolConfiguration,
    PoolMetrics,
)


class PoolMetricsResponse(BaseModel):
    """Connection cache counters."""

    config_cache_hits: int
    config_cache_misses: int
    client_cache_hits: int
    client_cache_misses: int
    cache_hits: int
    cache_misses: int
    cache_hit_rate: float = Field(..., description="Percent of lookups served from cache")
    total_clients_created: int
    pool_exhausted_count: int
    evictions: int
    active_clients: int
    max_clients: int
    pool_utilization: float = Field(..., description="Percent of max clients in use")
    config_cache_size: int
    client_cache_size: int

    @classmethod
    def from_domain(cls, metrics: PoolMetrics) -> PoolMetricsResponse:
        return cls(**metrics.as_dict())


class HealthResponse(BaseModel):
    status: str
    score: int
    issues: list[str]
    recommendations: list[str]

    @classmethod
    def from_domain(cls, report: HealthReport) -> HealthResponse:
        return cls(
            status=report.status.value,
            score=report.score,
            issues=list(report.issues),
            recommendations=list(report.recommendations),
        )


class GradeResponse(BaseModel):
    score: float
    grade: str
    description: str

    @classmethod
    def from_domain(cls, grade: Grade) -> GradeResponse:
        return cls(score=grade.score, grade=grade.grade, description=grade.description)


class PerformanceScoresResponse(BaseModel):
    caching: GradeResponse
    pooling: GradeResponse
    overall: GradeResponse


class PoolConfigurationResponse(BaseModel):
    max_clients: int
    enable_metrics: bool
    eviction_policy: str
    config_cache_ttl_seconds: float
    client_cache_ttl_seconds: float
    cache_cleanup_interval_seconds: float
    resolution_timeout_seconds: float

    @classmethod
    def from_domain(cls, configuration: PoolConfiguration) -> PoolConfigurationResponse:
        return cls(
            max_clients=configuration.max_clients,
            enable_metrics=configuration.enable_metrics,
            eviction_policy=configuration.eviction_policy,
            config_cache_ttl_seconds=configuration.config_cache_ttl_seconds,
            client_cache_ttl_seconds=configuration.client_cache_ttl_seconds,
            cache_cleanup_interval_seconds=configuration.cache_cleanup_interval_seconds,
            resolution_timeout_seconds=configuration.resolution_timeout_seconds,
        )


class PerformanceResponse(BaseModel):
    """Response model for the performance diagnostics endpoint."""

    timestamp: datetime
    health: HealthResponse
    scores: PerformanceScoresResponse
    summary: str = Field(..., description="Overall grade and score")
    metrics: PoolMetricsResponse
    configuration: PoolConfigurationResponse


class PoolConfigResponse(BaseModel):
    min: int
    max: int


class ConnectionInfoResponse(BaseModel):
    """Where the caller's tenant data lives. Never includes keys."""

    tenant_id: str = Field(..., description="Application tenant ID")
    url: str
    region: str | None
    pool_config: PoolConfigResponse | None
    is_default: bool = Field(..., description="Served by the shared default data source")
    is_cached: bool
    cache_expires_in_seconds: float | None

    @classmethod
    def from_domain(cls, tenant_id: str, info: ConnectionInfo) -> ConnectionInfoResponse:
        pool_config = None
        if info.pool_config is not None:
            pool_config = PoolConfigResponse(**info.pool_config.as_dict())
        return cls(
            tenant_id=tenant_id,
            url=info.url,
            region=info.region,
            pool_config=pool_config,
            is_default=info.is_default,
            is_cached=info.is_cached,
            cache_expires_in_seconds=info.cache_expires_in_seconds,
        )


class ConnectionTestResponse(BaseModel):
    success: bool
    response_time_ms: float
    can_connect: bool
    can_query: bool
    error: str | None = None

    @classmethod
    def from_domain(cls, result: ConnectionTestResult) -> ConnectionTestResponse:
        return cls(
            success=result.success,
            response_time_ms=result.response_time_ms,
            can_connect=result.can_connect,
            can_query=result.can_query,
            error=result.error,
        )


class MetricsResetResponse(BaseModel):
    status: str = "success"
    message: str = "Metrics reset successfully"
    timestamp: datetime
    reset_by: str = Field(..., description="User ID of the caller")
