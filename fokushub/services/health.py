"""Platform health check monitor.

Runs the platform's comprehensive health check, manages the automated
check schedule, and notifies admins about problems.
"""

from typing import Iterable, Optional

from pydantic import ValidationError

from fokushub.schemas.health import (
    HealthCheckResult,
    HealthCheckSummary,
    HealthCounts,
    HealthSchedule,
    HealthStatus,
)
from fokushub.schemas.notices import Notice
from fokushub.services.api_client import ApiClient, ApiConnectionError, ApiError, is_safe_path
from fokushub.services.notices import NoticeError, NoticeRenderer, get_notice_renderer
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

COMPREHENSIVE_PATH = "/api/health/comprehensive"
SCHEDULE_PATH = "/api/health/schedule"
NOTIFY_ADMINS_PATH = "/api/health/notify-admins"
FIX_PATH_PREFIX = "/api/"


class HealthCheckError(NoticeError):
    """Raised when a health check call fails."""
    pass


def count_results(results: Iterable[HealthCheckResult]) -> HealthCounts:
    results = list(results)
    return HealthCounts(
        healthy=sum(1 for r in results if r.status == HealthStatus.HEALTHY),
        warnings=sum(1 for r in results if r.status == HealthStatus.WARNING),
        errors=sum(1 for r in results if r.status == HealthStatus.ERROR),
        total=len(results),
    )


def overall_status(results: Iterable[HealthCheckResult]) -> HealthStatus:
    """error if any check errored, else warning if any warned, else healthy."""
    statuses = {r.status for r in results}
    if HealthStatus.ERROR in statuses:
        return HealthStatus.ERROR
    if HealthStatus.WARNING in statuses:
        return HealthStatus.WARNING
    return HealthStatus.HEALTHY


def has_issues(results: Iterable[HealthCheckResult]) -> bool:
    return any(r.status != HealthStatus.HEALTHY for r in results)


class HealthMonitor:
    """Client for the platform's health check endpoints."""

    def __init__(self, api: ApiClient, renderer: Optional[NoticeRenderer] = None):
        self.api = api
        self.renderer = renderer or get_notice_renderer()
        self.last_summary: Optional[HealthCheckSummary] = None

    def _fail(self, notice_key: str, error: Exception) -> HealthCheckError:
        return HealthCheckError(
            getattr(error, "message", str(error)),
            notice=self.renderer.render(notice_key),
            status=getattr(error, "status", 502),
        )

    def run(self) -> tuple[HealthCheckSummary, Notice]:
        """Run the comprehensive check.

        Counts and overall status are recomputed from the individual checks
        rather than trusted from the response.

        Returns:
            Tuple of (summary, notice)

        Raises:
            HealthCheckError: If the check could not be run
        """
        try:
            raw = self.api.get(COMPREHENSIVE_PATH)
            summary = HealthCheckSummary.model_validate(raw or {})
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Health check failed: {e}")
            raise self._fail("health_check_failed", e) from e
        except ValidationError as e:
            logger.error(f"Health check returned an unexpected payload: {e}")
            raise HealthCheckError(
                "Unexpected health check response",
                notice=self.renderer.render("health_check_failed"),
                status=502,
            )

        summary.summary = count_results(summary.checks)
        summary.overall_status = overall_status(summary.checks)
        self.last_summary = summary

        counts = summary.summary
        logger.info(
            f"Health check: {counts.healthy} healthy, {counts.warnings} warnings, "
            f"{counts.errors} errors"
        )
        notice = self.renderer.render(
            "health_check_complete",
            healthy=counts.healthy,
            warnings=counts.warnings,
            errors=counts.errors,
        )
        return summary, notice

    def schedule(self) -> HealthSchedule:
        try:
            raw = self.api.get(SCHEDULE_PATH)
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Failed to read health check schedule: {e}")
            raise self._fail("schedule_update_failed", e) from e
        return HealthSchedule.model_validate(raw or {})

    def update_schedule(self, enabled: bool, frequency: str) -> tuple[HealthSchedule, Notice]:
        """Change the automated check schedule.

        Raises:
            HealthCheckError: If the frequency is invalid or the platform rejects it
        """
        try:
            schedule = HealthSchedule(enabled=enabled, frequency=frequency)
        except ValidationError:
            raise HealthCheckError(
                f"Unsupported health check frequency: {frequency}",
                notice=self.renderer.render("schedule_update_failed"),
                status=422,
            )

        try:
            self.api.post(SCHEDULE_PATH, schedule.model_dump())
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Failed to update health check schedule: {e}")
            raise self._fail("schedule_update_failed", e) from e

        logger.info(f"Health check schedule set to enabled={enabled} frequency={frequency}")
        notice = self.renderer.render(
            "schedule_updated", enabled=schedule.enabled, frequency=schedule.frequency
        )
        return schedule, notice

    def notify_admins(self, results: Optional[list[HealthCheckResult]] = None) -> tuple[int, Notice]:
        """Send health results to the admins.

        Args:
            results: Results to send (the last run's checks by default)

        Returns:
            Tuple of (admins notified, notice)
        """
        if results is None:
            results = self.last_summary.checks if self.last_summary else []
        body = {
            "healthCheckResults": [r.model_dump(by_alias=True, mode="json") for r in results]
        }
        try:
            response = self.api.post(NOTIFY_ADMINS_PATH, body)
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Failed to notify admins: {e}")
            raise self._fail("notifications_failed", e) from e

        successful = 0
        if isinstance(response, dict):
            successful = int((response.get("summary") or {}).get("successful") or 0)
        logger.info(f"Health results sent to {successful} admins")
        return successful, self.renderer.render("notifications_sent", successful=successful)

    def auto_fix(self, result: HealthCheckResult) -> Notice:
        """Trigger the platform's automatic fix for a check.

        Only the check's name is taken from the caller. The fix endpoint is
        read from a fresh run of the comprehensive check.

        Raises:
            HealthCheckError: If the check is unknown, has no automatic fix,
                or the fix fails
        """
        self.run()
        check = self.find_check(result.name)
        if check is None:
            raise HealthCheckError(f"Unknown health check: {result.name}", status=404)
        if not check.can_auto_fix or not check.fix_endpoint:
            raise HealthCheckError(f"{check.name} has no automatic fix", status=409)
        if not check.fix_endpoint.startswith(FIX_PATH_PREFIX) or not is_safe_path(check.fix_endpoint):
            logger.warning(f"Refusing auto-fix endpoint {check.fix_endpoint!r} for {check.name}")
            raise HealthCheckError(f"{check.name} has an invalid fix endpoint", status=502)
        try:
            self.api.post(check.fix_endpoint)
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Auto-fix for {check.name} failed: {e}")
            raise self._fail("health_check_failed", e) from e
        logger.info(f"Auto-fix requested for {check.name}")
        return self.renderer.render("auto_fix_applied", name=check.name)

    def find_check(self, name: str) -> Optional[HealthCheckResult]:
        """Look up a check from the last run by name."""
        if self.last_summary is None:
            return None
        for result in self.last_summary.checks:
            if result.name == name:
                return result
        return None
