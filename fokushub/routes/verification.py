"""Identity verification endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from fokushub.models.database import get_db
from fokushub.routes.dependencies import get_api_client, get_current_user_key, participant_cache
from fokushub.schemas.notices import Notice
from fokushub.schemas.requests import VerificationDetailsRequest
from fokushub.schemas.verification import UploadKind
from fokushub.services.api_client import ApiClient
from fokushub.services.draft_store import DraftStore
from fokushub.services.query_cache import QueryCache
from fokushub.services.verification import VerificationWizard
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/verification")


def get_wizard(
    user_key: str = Depends(get_current_user_key),
    api: ApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(participant_cache),
    db: Session = Depends(get_db),
) -> VerificationWizard:
    return VerificationWizard(api, cache=cache, store=DraftStore(db), user_key=user_key).load()


def _with_notice(wizard: VerificationWizard, notice: Optional[Notice]) -> dict:
    return {
        "notice": notice.model_dump(mode="json") if notice else None,
        "state": wizard.state(),
    }


@router.get("/{user_key}")
def verification_state(wizard: VerificationWizard = Depends(get_wizard)) -> dict:
    return wizard.state()


@router.get("/{user_key}/status")
def verification_status(wizard: VerificationWizard = Depends(get_wizard)):
    """Review status as reported by the platform."""
    return wizard.status()


@router.post("/{user_key}/phone")
def update_details(
    body: VerificationDetailsRequest,
    wizard: VerificationWizard = Depends(get_wizard),
) -> dict:
    """Update phone number, address and notes."""
    wizard.update(
        phone_number=body.phone_number,
        address=body.address,
        additional_info=body.additional_info,
    )
    return wizard.state()


@router.post("/{user_key}/upload/{kind}")
async def upload_document(
    kind: UploadKind,
    file: UploadFile = File(...),
    wizard: VerificationWizard = Depends(get_wizard),
) -> dict:
    content = await file.read()
    notice = await run_in_threadpool(
        wizard.upload,
        kind,
        file.filename or kind.value,
        content,
        file.content_type or "application/octet-stream",
    )
    return _with_notice(wizard, notice)


@router.post("/{user_key}/next")
def next_step(wizard: VerificationWizard = Depends(get_wizard)) -> dict:
    """Advance one step; on the review step this submits."""
    return _with_notice(wizard, wizard.next())


@router.post("/{user_key}/previous")
def previous_step(wizard: VerificationWizard = Depends(get_wizard)) -> dict:
    wizard.previous()
    return wizard.state()


@router.post("/{user_key}/submit")
def submit_verification(wizard: VerificationWizard = Depends(get_wizard)) -> dict:
    return _with_notice(wizard, wizard.submit())


@router.post("/{user_key}/skip")
def skip_verification(wizard: VerificationWizard = Depends(get_wizard)) -> dict:
    wizard.skip()
    return wizard.state()
