"""Pydantic schemas for the platform health check endpoints."""

from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from fokushub.schemas.questionnaire import PlatformRecord


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


HEALTH_CHECK_FREQUENCIES = ("hourly", "daily", "twice-daily")


class HealthCheckResult(PlatformRecord):
    """Outcome of one platform health check.

    Attributes:
        name: Check name (e.g. "Database Connection")
        status: healthy, warning or error
        message: Short explanation
        details: Free-form diagnostic data
        can_auto_fix: Whether the platform offers an automatic fix
        fix_endpoint: Endpoint to POST to for the automatic fix
        timestamp: When the check ran
    """
    name: str
    status: HealthStatus
    message: str = ""
    details: Optional[Any] = None
    can_auto_fix: bool = Field(default=False, alias="canAutoFix")
    fix_endpoint: Optional[str] = Field(default=None, alias="fixEndpoint")
    timestamp: Optional[str] = None


class HealthCounts(PlatformRecord):
    healthy: int = 0
    warnings: int = 0
    errors: int = 0
    total: int = 0


class HealthCheckSummary(PlatformRecord):
    """Response of GET /api/health/comprehensive."""
    overall_status: HealthStatus = Field(default=HealthStatus.HEALTHY, alias="overallStatus")
    summary: HealthCounts = Field(default_factory=HealthCounts)
    checks: list[HealthCheckResult] = Field(default_factory=list)
    timestamp: Optional[str] = None


class HealthSchedule(PlatformRecord):
    """Automated health check schedule."""
    enabled: bool = False
    frequency: str = "twice-daily"

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, v: str) -> str:
        if v not in HEALTH_CHECK_FREQUENCIES:
            raise ValueError(f"Frequency must be one of {HEALTH_CHECK_FREQUENCIES}")
        return v
