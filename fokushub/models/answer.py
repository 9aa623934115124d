"""DraftAnswer model recording which answers reached the platform.

Answers are submitted one request at a time; each successful save is marked
here so a failed submission can be resumed without resending saved answers.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fokushub.models.database import Base


class DraftAnswer(Base):
    """Submission marker for one answer of an onboarding draft.

    Attributes:
        id: Primary key
        draft_id: Foreign key to onboarding_drafts table
        question_id: Question the answer belongs to
        saved_at: When the platform accepted the answer (NULL if not yet)
        last_error: Error from the last failed attempt
        draft: Relationship to parent OnboardingDraft
    """

    __tablename__ = "draft_answers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    draft_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("onboarding_drafts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to onboarding_drafts table"
    )
    question_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Question the answer belongs to"
    )

    saved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the platform accepted the answer"
    )
    last_error: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Error from the last failed attempt"
    )

    draft: Mapped["OnboardingDraft"] = relationship(
        "OnboardingDraft",
        back_populates="answers",
    )

    __table_args__ = (
        UniqueConstraint("draft_id", "question_id", name="uq_draft_question"),
    )

    def mark_saved(self) -> None:
        self.saved_at = datetime.now(timezone.utc)
        self.last_error = None

    def mark_failed(self, error: str) -> None:
        self.saved_at = None
        self.last_error = error

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<DraftAnswer(id={self.id}, "
            f"draft_id={self.draft_id}, "
            f"question_id={self.question_id}, "
            f"saved={self.saved_at is not None})>"
        )
