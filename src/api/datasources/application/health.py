"""Health scoring for the data-source connection cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from datasources.domain.value_objects import PoolMetrics


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class HealthReport:
    """Score out of 100 with the issues that lowered it."""

    status: HealthStatus
    score: int
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Grade:
    score: float
    grade: str
    description: str


def assess_health(metrics: PoolMetrics) -> HealthReport:
    """Score cache efficiency and pool pressure.

    Deductions: hit rate below 50% (20) or below 70% (10); utilization
    above 90% (30) or above 75% (15); any pool-exhausted event (25);
    misses more than twice the hits (10).
    """
    score = 100
    issues: list[str] = []
    recommendations: list[str] = []

    hit_rate = metrics.cache_hit_rate
    if hit_rate < 50:
        score -= 20
        issues.append("Low cache hit rate")
        recommendations.append(
            "Cache hit rate below 50%. Consider increasing cache TTL or "
            "investigating cache invalidation patterns."
        )
    elif hit_rate < 70:
        score -= 10
        issues.append("Moderate cache hit rate")
        recommendations.append(
            "Cache hit rate below 70%. Monitor for potential optimization "
            "opportunities."
        )

    utilization = metrics.pool_utilization
    if utilization > 90:
        score -= 30
        issues.append("Connection pool near exhaustion")
        recommendations.append(
            f"Pool utilization at {utilization:.1f}%. Consider increasing "
            "CRM_DATA_SOURCE_MAX_CLIENTS."
        )
    elif utilization > 75:
        score -= 15
        issues.append("High connection pool usage")
        recommendations.append(
            f"Pool utilization at {utilization:.1f}%. Monitor closely and "
            "consider scaling."
        )

    if metrics.pool_exhausted_count > 0:
        score -= 25
        issues.append(
            f"Connection pool exhausted {metrics.pool_exhausted_count} times"
        )
        recommendations.append(
            "Increase max clients or reduce the number of concurrently "
            "active tenants per instance."
        )

    if metrics.cache_misses > metrics.cache_hits * 2:
        score -= 10
        issues.append("High cache miss ratio")
        recommendations.append(
            "Cache misses exceed hits by 2x. Review caching strategy."
        )

    if score >= 80:
        status = HealthStatus.HEALTHY
    elif score >= 60:
        status = HealthStatus.WARNING
    else:
        status = HealthStatus.CRITICAL

    return HealthReport(
        status=status, score=score, issues=issues, recommendations=recommendations
    )


def letter_grade(score: float) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def caching_grade(metrics: PoolMetrics) -> Grade:
    hit_rate = metrics.cache_hit_rate
    if hit_rate >= 80:
        grade = "A"
    elif hit_rate >= 70:
        grade = "B"
    elif hit_rate >= 60:
        grade = "C"
    elif hit_rate >= 50:
        grade = "D"
    else:
        grade = "F"
    return Grade(score=min(100.0, hit_rate), grade=grade, description="Cache efficiency")


def pooling_grade(metrics: PoolMetrics) -> Grade:
    utilization = metrics.pool_utilization
    if utilization < 50:
        grade = "A"
    elif utilization < 70:
        grade = "B"
    elif utilization < 85:
        grade = "C"
    elif utilization < 95:
        grade = "D"
    else:
        grade = "F"
    return Grade(
        score=max(0.0, 100 - utilization),
        grade=grade,
        description="Connection pool availability",
    )


def overall_grade(report: HealthReport) -> Grade:
    return Grade(
        score=report.score,
        grade=letter_grade(report.score),
        description="Overall system health",
    )
