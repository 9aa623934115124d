"""AI participant matching.

Criteria generation and matching both run on the platform; this module only
forwards requests and reports the outcome.
"""

from typing import Any, Optional

from fokushub.schemas.matching import CriteriaRequest, MatchRequest, MatchResults
from fokushub.schemas.notices import Notice
from fokushub.services.api_client import ApiClient, ApiConnectionError, ApiError
from fokushub.services.notices import NoticeError, NoticeRenderer, get_notice_renderer
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

GENERATE_CRITERIA_PATH = "/api/ai-matching/generate-criteria"
FIND_MATCHES_PATH = "/api/ai-matching/find-matches"


class MatchingError(NoticeError):
    """Raised when the platform's matching service fails."""
    pass


class MatchingClient:
    def __init__(self, api: ApiClient, renderer: Optional[NoticeRenderer] = None):
        self.api = api
        self.renderer = renderer or get_notice_renderer()

    def generate_criteria(self, request: CriteriaRequest) -> tuple[Any, Notice]:
        """Ask the platform to derive matching criteria for a campaign.

        Returns:
            Tuple of (criteria as returned by the platform, notice)
        """
        try:
            criteria = self.api.post(GENERATE_CRITERIA_PATH, request.model_dump(by_alias=True))
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Criteria generation failed: {e}")
            raise MatchingError(
                e.message, notice=self.renderer.render("criteria_failed"), status=e.status
            ) from e
        return criteria, self.renderer.render("criteria_generated")

    def find_matches(self, request: MatchRequest) -> tuple[MatchResults, Notice]:
        """Find participants for a campaign using generated criteria."""
        try:
            raw = self.api.post(FIND_MATCHES_PATH, request.model_dump(by_alias=True))
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Matching failed for campaign {request.campaign_id}: {e}")
            raise MatchingError(
                e.message, notice=self.renderer.render("matching_failed"), status=e.status
            ) from e

        results = MatchResults.model_validate(raw or {})
        logger.info(f"Found {len(results.matches)} matches for campaign {request.campaign_id}")
        return results, self.renderer.render("matches_found", count=len(results.matches))
