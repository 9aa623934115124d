"""Onboarding questionnaire endpoints.

Each request rebuilds the wizard from the participant's draft, applies one
action, and returns the resulting state.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fokushub.models.database import get_db
from fokushub.routes.dependencies import get_api_client, get_current_user_key, participant_cache
from fokushub.schemas.requests import AnswerRequest, ToggleOptionRequest
from fokushub.services.api_client import ApiClient
from fokushub.services.draft_store import DraftStore
from fokushub.services.onboarding import OnboardingWizard, StepResult
from fokushub.services.query_cache import QueryCache
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/onboarding")


def get_wizard(
    user_key: str = Depends(get_current_user_key),
    api: ApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(participant_cache),
    db: Session = Depends(get_db),
) -> OnboardingWizard:
    return OnboardingWizard(api, cache=cache, store=DraftStore(db), user_key=user_key).load()


def _step_response(wizard: OnboardingWizard, result: StepResult) -> dict:
    report = result.report
    return {
        "outcome": result.outcome.value,
        "notice": result.notice.model_dump(mode="json") if result.notice else None,
        "report": {
            "saved": report.saved,
            "pending": report.pending,
            "completed": report.completed,
            "error": report.error,
        } if report else None,
        "state": wizard.state(),
    }


@router.get("/{user_key}")
def onboarding_state(wizard: OnboardingWizard = Depends(get_wizard)) -> dict:
    """Current question, progress, answers and errors."""
    return wizard.state()


@router.post("/{user_key}/answer")
def answer_question(body: AnswerRequest, wizard: OnboardingWizard = Depends(get_wizard)) -> dict:
    wizard.answer(body.response)
    return wizard.state()


@router.post("/{user_key}/toggle")
def toggle_option(body: ToggleOptionRequest, wizard: OnboardingWizard = Depends(get_wizard)) -> dict:
    """Tick or untick one option of a multiselect question."""
    wizard.toggle_option(body.option, body.checked)
    return wizard.state()


@router.post("/{user_key}/next")
def next_question(wizard: OnboardingWizard = Depends(get_wizard)) -> dict:
    """Validate the current answer and advance, submitting after the last question."""
    return _step_response(wizard, wizard.next())


@router.post("/{user_key}/previous")
def previous_question(wizard: OnboardingWizard = Depends(get_wizard)) -> dict:
    return _step_response(wizard, wizard.previous())


@router.post("/{user_key}/retry")
def retry_submission(wizard: OnboardingWizard = Depends(get_wizard)) -> dict:
    """Resend the answers that were not saved by the last submission."""
    return _step_response(wizard, wizard.retry_submission())
