"""Admin endpoints: settings, fees, AI configuration, pricing, health and matching."""

from fastapi import APIRouter, Depends, Query

from fokushub.routes.dependencies import get_admin_cache, get_api_client
from fokushub.schemas.admin import PricingRequest
from fokushub.schemas.health import HealthCheckResult
from fokushub.schemas.matching import CriteriaRequest, MatchRequest
from fokushub.schemas.requests import (
    FeeEditRequest,
    PricingDefaultRequest,
    ScheduleRequest,
    SettingEditRequest,
)
from fokushub.services.admin_settings import (
    FeeSettingsEditor,
    OpenAISettingsEditor,
    PricingClient,
    SettingsEditor,
)
from fokushub.services.api_client import ApiClient
from fokushub.services.health import HealthMonitor, has_issues
from fokushub.services.matching import MatchingClient
from fokushub.services.query_cache import QueryCache
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin")


def _notice(notice) -> dict:
    return notice.model_dump(mode="json")


# Settings

def get_settings_editor(
    api: ApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(get_admin_cache),
) -> SettingsEditor:
    return SettingsEditor(api, cache=cache)


@router.get("/settings")
def list_settings(editor: SettingsEditor = Depends(get_settings_editor)) -> dict:
    """Settings grouped by category, each with its editing rules."""
    return {
        category: [
            {
                **setting.model_dump(mode="json"),
                "definition": editor.definition(setting.key).model_dump(mode="json"),
            }
            for setting in editor.by_category(category)
        ]
        for category in editor.categories()
    }


@router.put("/settings/{key}")
def update_setting(
    key: str,
    body: SettingEditRequest,
    editor: SettingsEditor = Depends(get_settings_editor),
) -> dict:
    value = editor.edit(key, body.value)
    notice = editor.save(key)
    return {"key": key, "value": value, "notice": _notice(notice)}


# Fees

def get_fee_editor(
    api: ApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(get_admin_cache),
) -> FeeSettingsEditor:
    return FeeSettingsEditor(api, cache=cache)


@router.get("/fees")
def fee_settings(editor: FeeSettingsEditor = Depends(get_fee_editor)) -> dict:
    return editor.settings().model_dump(by_alias=True)


@router.post("/fees")
def update_fees(body: FeeEditRequest, editor: FeeSettingsEditor = Depends(get_fee_editor)) -> dict:
    fees = editor.edit(**body.changes())
    notice = editor.save()
    return {"fees": fees.model_dump(by_alias=True), "notice": _notice(notice)}


@router.get("/fees/breakdown")
def fee_breakdown(
    gross: float = Query(..., ge=0),
    editor: FeeSettingsEditor = Depends(get_fee_editor),
) -> dict:
    """How a gross payment splits under the saved fee settings."""
    return editor.breakdown(gross).model_dump()


# AI provider

def get_openai_editor(
    api: ApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(get_admin_cache),
) -> OpenAISettingsEditor:
    return OpenAISettingsEditor(api, cache=cache)


@router.get("/openai")
def openai_settings(editor: OpenAISettingsEditor = Depends(get_openai_editor)) -> dict:
    return editor.masked()


@router.put("/openai")
def update_openai_settings(
    changes: dict,
    editor: OpenAISettingsEditor = Depends(get_openai_editor),
) -> dict:
    notice = editor.update(changes)
    return {"settings": editor.masked(), "notice": _notice(notice)}


@router.post("/openai/test")
def test_openai_connection(editor: OpenAISettingsEditor = Depends(get_openai_editor)) -> dict:
    return {"notice": _notice(editor.test_connection())}


# Pricing

def get_pricing_client(
    api: ApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(get_admin_cache),
) -> PricingClient:
    return PricingClient(api, cache=cache)


@router.get("/pricing/configs")
def pricing_configs(client: PricingClient = Depends(get_pricing_client)):
    return client.configs()


@router.get("/pricing/options")
def pricing_options(client: PricingClient = Depends(get_pricing_client)):
    return client.options()


@router.post("/pricing/calculate")
def calculate_pricing(body: PricingRequest, client: PricingClient = Depends(get_pricing_client)):
    return client.calculate(body)


@router.post("/pricing/defaults")
def save_pricing_default(
    body: PricingDefaultRequest,
    client: PricingClient = Depends(get_pricing_client),
) -> dict:
    return {"notice": _notice(client.save_default(body.key, body.value))}


# Platform health

def get_health_monitor(api: ApiClient = Depends(get_api_client)) -> HealthMonitor:
    return HealthMonitor(api)


@router.post("/health/run")
def run_health_check(monitor: HealthMonitor = Depends(get_health_monitor)) -> dict:
    summary, notice = monitor.run()
    return {
        "summary": summary.model_dump(by_alias=True, mode="json"),
        "hasIssues": has_issues(summary.checks),
        "notice": _notice(notice),
    }


@router.get("/health/schedule")
def health_schedule(monitor: HealthMonitor = Depends(get_health_monitor)) -> dict:
    return monitor.schedule().model_dump()


@router.post("/health/schedule")
def update_health_schedule(
    body: ScheduleRequest,
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> dict:
    schedule, notice = monitor.update_schedule(body.enabled, body.frequency)
    return {"schedule": schedule.model_dump(), "notice": _notice(notice)}


@router.post("/health/notify")
def notify_admins(
    results: list[HealthCheckResult],
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> dict:
    """Send the given health check results to every admin."""
    successful, notice = monitor.notify_admins(results)
    return {"successful": successful, "notice": _notice(notice)}


@router.post("/health/auto-fix")
def auto_fix(result: HealthCheckResult, monitor: HealthMonitor = Depends(get_health_monitor)) -> dict:
    return {"notice": _notice(monitor.auto_fix(result))}


# AI matching

def get_matching_client(api: ApiClient = Depends(get_api_client)) -> MatchingClient:
    return MatchingClient(api)


@router.post("/ai-matching/criteria")
def generate_criteria(
    body: CriteriaRequest,
    client: MatchingClient = Depends(get_matching_client),
) -> dict:
    criteria, notice = client.generate_criteria(body)
    return {"criteria": criteria, "notice": _notice(notice)}


@router.post("/ai-matching/matches")
def find_matches(body: MatchRequest, client: MatchingClient = Depends(get_matching_client)) -> dict:
    results, notice = client.find_matches(body)
    return {**results.model_dump(), "notice": _notice(notice)}
