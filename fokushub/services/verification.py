"""Identity verification wizard.

Three linear steps: phone number, document uploads with address, then a
review step that submits everything for manual review.
"""

from typing import Any, Optional

from fokushub.config import get_settings
from fokushub.models.verification_draft import VerificationDraft
from fokushub.schemas.notices import Notice
from fokushub.schemas.verification import UploadKind, UploadResult, VerificationSubmission
from fokushub.services.api_client import ApiClient, ApiConnectionError, ApiError
from fokushub.services.draft_store import DraftStore
from fokushub.services.notices import NoticeError, NoticeRenderer, get_notice_renderer
from fokushub.services.query_cache import QueryCache
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

UPLOAD_PATH = "/api/verification/upload"
SUBMIT_PATH = "/api/verification/submit"
STATUS_KEY = ("/api/verification/status",)
CURRENT_USER_KEY = ("/api/auth/me",)

PHONE_STEP = 1
DOCUMENTS_STEP = 2
REVIEW_STEP = 3


class VerificationError(NoticeError):
    """Raised when a verification operation is not allowed or fails."""

    def __init__(self, message: str, notice: Optional[Notice] = None, status: int = 409):
        super().__init__(message, notice=notice, status=status)


class UploadRejectedError(VerificationError):
    """Raised when a file is refused before it is sent."""

    def __init__(self, message: str, notice: Notice, status: int = 400):
        super().__init__(message, notice=notice, status=status)


class VerificationWizard:
    """Collects verification details and documents and submits them."""

    def __init__(
        self,
        api: ApiClient,
        cache: Optional[QueryCache] = None,
        store: Optional[DraftStore] = None,
        user_key: Optional[str] = None,
        renderer: Optional[NoticeRenderer] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        if store is not None and not user_key:
            raise ValueError("user_key is required when a draft store is used")
        self.api = api
        self.cache = cache or QueryCache()
        self.store = store
        self.user_key = user_key
        self.renderer = renderer or get_notice_renderer()
        self.max_upload_bytes = max_upload_bytes or get_settings().max_upload_bytes

        self.step = PHONE_STEP
        self.phone_number = ""
        self.address = ""
        self.additional_info = ""
        self.id_document_url: Optional[str] = None
        self.selfie_url: Optional[str] = None
        self.file_names: dict[UploadKind, str] = {}
        self.submitted = False
        self.skipped = False
        self.draft: Optional[VerificationDraft] = None

    def load(self) -> "VerificationWizard":
        """Restore the open draft, if a store is configured."""
        if self.store is None:
            return self
        self.draft = self.store.get_or_create_verification(self.user_key)
        self.step = min(max(self.draft.step, PHONE_STEP), REVIEW_STEP)
        self.phone_number = self.draft.phone_number
        self.address = self.draft.address
        self.additional_info = self.draft.additional_info
        self.id_document_url = self.draft.id_document_url
        self.selfie_url = self.draft.selfie_url
        if self.draft.id_document_name:
            self.file_names[UploadKind.ID_DOCUMENT] = self.draft.id_document_name
        if self.draft.selfie_name:
            self.file_names[UploadKind.SELFIE] = self.draft.selfie_name
        return self

    def _ensure_open(self) -> None:
        if self.submitted:
            raise VerificationError("Verification has already been submitted")
        if self.skipped:
            raise VerificationError("Verification was skipped")

    def update(
        self,
        phone_number: Optional[str] = None,
        address: Optional[str] = None,
        additional_info: Optional[str] = None,
    ) -> None:
        """Update the free-text fields that were given."""
        self._ensure_open()
        if phone_number is not None:
            self.phone_number = phone_number.strip()
        if address is not None:
            self.address = address
        if additional_info is not None:
            self.additional_info = additional_info
        self._persist()

    def upload(self, kind: UploadKind, file_name: str, content: bytes, content_type: str) -> Notice:
        """Check and upload one document.

        Args:
            kind: Which document this is
            file_name: Original file name
            content: File bytes
            content_type: MIME type reported for the file

        Returns:
            Success notice

        Raises:
            UploadRejectedError: If the file is not an image or is too large
            VerificationError: If the platform rejects the upload or returns no file reference
        """
        self._ensure_open()
        if not (content_type or "").lower().startswith("image/"):
            raise UploadRejectedError(
                f"{file_name} is not an image ({content_type})",
                self.renderer.render("upload_invalid_type"),
            )
        if len(content) > self.max_upload_bytes:
            max_mb = self.max_upload_bytes // (1024 * 1024)
            raise UploadRejectedError(
                f"{file_name} is larger than {max_mb}MB",
                self.renderer.render("upload_too_large", max_mb=max_mb),
            )

        try:
            raw = self.api.upload(
                UPLOAD_PATH,
                file_name,
                content,
                content_type,
                fields={"type": kind.upload_type},
            )
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Upload of {kind.value} failed: {e}", extra={"user_key": self.user_key})
            raise VerificationError(
                e.message,
                notice=self.renderer.render("upload_failed", message=e.message),
                status=e.status,
            ) from e
        result = UploadResult.model_validate(raw if isinstance(raw, dict) else {})
        reference = result.reference
        if reference is None:
            raise VerificationError(
                "Upload response did not include a file reference",
                notice=self.renderer.render("upload_failed", message="The upload could not be stored"),
                status=502,
            )

        if kind is UploadKind.ID_DOCUMENT:
            self.id_document_url = reference
        else:
            self.selfie_url = reference
        self.file_names[kind] = file_name
        self._persist()

        logger.info(f"Uploaded {kind.value} {file_name} ({len(content)} bytes)", extra={"user_key": self.user_key})
        return self.renderer.render(
            "upload_succeeded",
            label=kind.label,
            file_name=file_name,
            size_mb=len(content) / 1024 / 1024,
        )

    @property
    def can_submit(self) -> bool:
        return (
            self.step == REVIEW_STEP
            and bool(self.id_document_url)
            and bool(self.selfie_url)
        )

    def next(self) -> Optional[Notice]:
        """Advance one step; on the review step submit instead."""
        self._ensure_open()
        if self.step < REVIEW_STEP:
            self.step += 1
            self._persist()
            return None
        return self.submit()

    def previous(self) -> None:
        self._ensure_open()
        if self.step > PHONE_STEP:
            self.step -= 1
            self._persist()

    def submit(self) -> Notice:
        """Submit the collected details for review.

        Raises:
            VerificationError: If a document is missing, the wizard is not on the
                review step, or the platform rejects the submission
        """
        self._ensure_open()
        if not self.can_submit:
            raise VerificationError(
                "Both an ID document and a selfie must be uploaded before submitting"
            )

        submission = VerificationSubmission(
            phone_number=self.phone_number,
            address=self.address,
            additional_info=self.additional_info,
            id_document_url=self.id_document_url,
            selfie_url=self.selfie_url,
        )
        try:
            self.api.submit_form(SUBMIT_PATH, submission.form_fields())
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Verification submission failed: {e}", extra={"user_key": self.user_key})
            raise VerificationError(
                e.message,
                notice=self.renderer.render("verification_failed", message=e.message),
                status=e.status,
            ) from e

        self.submitted = True
        self.cache.invalidate(STATUS_KEY)
        self.cache.invalidate(CURRENT_USER_KEY)
        if self.store is not None and self.draft is not None:
            self.draft.mark_submitted()
            self.store.save_verification(self.draft)
        logger.info("Verification submitted", extra={"user_key": self.user_key})
        return self.renderer.render("verification_submitted")

    def skip(self) -> None:
        """Leave the flow without submitting."""
        self._ensure_open()
        self.skipped = True
        if self.store is not None and self.draft is not None:
            self.draft.mark_skipped()
            self.store.save_verification(self.draft)
        logger.info("Verification skipped", extra={"user_key": self.user_key})

    def status(self) -> Any:
        """Verification status as the platform reports it now.

        Always reloaded, so a review decision shows up on the next call.
        """
        return self.cache.refetch(STATUS_KEY, lambda: self.api.query(STATUS_KEY))

    def _persist(self) -> None:
        if self.store is None or self.draft is None:
            return
        draft = self.draft
        draft.step = self.step
        draft.phone_number = self.phone_number
        draft.address = self.address
        draft.additional_info = self.additional_info
        draft.id_document_url = self.id_document_url
        draft.selfie_url = self.selfie_url
        draft.id_document_name = self.file_names.get(UploadKind.ID_DOCUMENT)
        draft.selfie_name = self.file_names.get(UploadKind.SELFIE)
        self.store.save_verification(draft)

    def state(self) -> dict:
        """JSON-ready view of the wizard for the HTTP surface."""
        return {
            "step": self.step,
            "phoneNumber": self.phone_number,
            "address": self.address,
            "additionalInfo": self.additional_info,
            "idDocumentUrl": self.id_document_url,
            "selfieUrl": self.selfie_url,
            "idDocumentName": self.file_names.get(UploadKind.ID_DOCUMENT),
            "selfieName": self.file_names.get(UploadKind.SELFIE),
            "canSubmit": self.can_submit,
            "submitted": self.submitted,
            "skipped": self.skipped,
        }
