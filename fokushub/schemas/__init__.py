"""Pydantic schemas for platform records and catalogs.

This package contains the Pydantic models for platform API payloads, the
YAML catalogs, and the service's own request bodies.
"""

from fokushub.schemas.questionnaire import (
    PlatformRecord,
    QuestionType,
    QuestionCategory,
    Question,
    ResponsePayload,
)
from fokushub.schemas.verification import (
    UploadKind,
    UploadResult,
    VerificationSubmission,
)
from fokushub.schemas.admin import (
    SettingType,
    AdminSetting,
    SettingDefinition,
    SettingCatalog,
    GlobalFeeSettings,
    FeeBreakdown,
    OpenAISettings,
    PricingRequest,
)
from fokushub.schemas.health import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckSummary,
    HealthSchedule,
)
from fokushub.schemas.matching import CriteriaRequest, MatchRequest, MatchResults
from fokushub.schemas.notices import Notice, NoticeCatalog, NoticeVariant

__all__ = [
    "PlatformRecord",
    "QuestionType",
    "QuestionCategory",
    "Question",
    "ResponsePayload",
    "UploadKind",
    "UploadResult",
    "VerificationSubmission",
    "SettingType",
    "AdminSetting",
    "SettingDefinition",
    "SettingCatalog",
    "GlobalFeeSettings",
    "FeeBreakdown",
    "OpenAISettings",
    "PricingRequest",
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckSummary",
    "HealthSchedule",
    "CriteriaRequest",
    "MatchRequest",
    "MatchResults",
    "Notice",
    "NoticeCatalog",
    "NoticeVariant",
]
