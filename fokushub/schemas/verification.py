"""Pydantic schemas for the participant identity verification flow."""

from enum import Enum
from typing import Optional

from pydantic import Field

from fokushub.schemas.questionnaire import PlatformRecord


class UploadKind(str, Enum):
    """Documents collected during verification."""
    ID_DOCUMENT = "id_document"
    SELFIE = "selfie"

    @property
    def upload_type(self) -> str:
        """Document type the upload endpoint expects for this kind."""
        return "identity" if self is UploadKind.ID_DOCUMENT else "other"

    @property
    def label(self) -> str:
        return "ID Document" if self is UploadKind.ID_DOCUMENT else "Selfie"


class UploadResult(PlatformRecord):
    """Response of POST /api/verification/upload.

    The platform returns the stored file's URL, its ID, or both.
    """
    wasabi_url: Optional[str] = Field(default=None, alias="wasabiUrl")
    id: Optional[str] = None

    @property
    def reference(self) -> Optional[str]:
        """URL of the stored file, falling back to its ID."""
        if self.wasabi_url:
            return self.wasabi_url
        return str(self.id) if self.id is not None else None


class VerificationSubmission(PlatformRecord):
    """Form fields posted to /api/verification/submit."""
    phone_number: str = Field(default="", alias="phoneNumber")
    address: str = ""
    additional_info: str = Field(default="", alias="additionalInfo")
    id_document_url: Optional[str] = Field(default=None, alias="idDocumentUrl")
    selfie_url: Optional[str] = Field(default=None, alias="selfieUrl")

    def form_fields(self) -> dict[str, str]:
        """Multipart form fields, omitting document references that are unset."""
        fields = {
            "phoneNumber": self.phone_number,
            "address": self.address,
            "additionalInfo": self.additional_info,
        }
        if self.id_document_url:
            fields["idDocumentUrl"] = self.id_document_url
        if self.selfie_url:
            fields["selfieUrl"] = self.selfie_url
        return fields
