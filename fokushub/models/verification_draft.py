"""VerificationDraft model for persisting identity verification progress."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    String,
    Integer,
    Text,
    DateTime,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from fokushub.models.database import Base


class VerificationDraft(Base):
    """Snapshot of one participant's verification wizard.

    Attributes:
        id: Primary key
        user_key: Identifier of the participant
        step: Current wizard step (1 phone, 2 documents, 3 review)
        phone_number: Phone number as entered
        address: Current address
        additional_info: Free-text notes for the reviewer
        id_document_url: Stored ID document reference from the upload endpoint
        selfie_url: Stored selfie reference from the upload endpoint
        id_document_name: Original file name of the ID document
        selfie_name: Original file name of the selfie
        started_at: When the draft was created
        updated_at: Last update timestamp
        submitted_at: When the verification was submitted for review
        skipped_at: When the participant chose to skip verification
    """

    __tablename__ = "verification_drafts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Participant identifier"
    )
    step: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Current wizard step"
    )

    phone_number: Mapped[str] = mapped_column(String(40), nullable=False, default="")
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    additional_info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    id_document_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    selfie_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    id_document_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    selfie_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    skipped_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.submitted_at is None and self.skipped_at is None

    def mark_submitted(self) -> None:
        self.submitted_at = datetime.now(timezone.utc)

    def mark_skipped(self) -> None:
        self.skipped_at = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<VerificationDraft(id={self.id}, "
            f"user_key={self.user_key}, "
            f"step={self.step}, "
            f"submitted={self.submitted_at is not None})>"
        )
