"""Pydantic schemas for AI participant matching requests.

Criteria and match results are produced by the platform's AI service and
passed through untouched.
"""

from typing import Any

from pydantic import Field

from fokushub.schemas.questionnaire import PlatformRecord

DEFAULT_MATCH_OPTIONS = {
    "maxResults": 50,
    "minMatchScore": 0.6,
    "diversityWeight": 0.3,
    "qualityWeight": 0.7,
}


class CriteriaRequest(PlatformRecord):
    """Body of POST /api/ai-matching/generate-criteria."""
    campaign_requirements: str = Field(..., min_length=1, alias="campaignRequirements")
    target_audience: str = Field(..., min_length=1, alias="targetAudience")
    industry: str = Field(..., min_length=1)


class MatchRequest(PlatformRecord):
    """Body of POST /api/ai-matching/find-matches."""
    campaign_id: int = Field(alias="campaignId")
    criteria: dict[str, Any] = Field(..., min_length=1)
    options: dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_MATCH_OPTIONS))


class MatchResults(PlatformRecord):
    """Response of POST /api/ai-matching/find-matches."""
    matches: list[dict[str, Any]] = Field(default_factory=list)
    analytics: dict[str, Any] = Field(default_factory=dict)
