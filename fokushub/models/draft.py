"""OnboardingDraft model for persisting questionnaire progress.

A draft holds the wizard cursor and every answer given so far, so a
participant who reloads or loses their connection resumes where they were.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    Index,
    String,
    Integer,
    DateTime,
    JSON,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fokushub.models.database import Base


class DraftStatus:
    """Lifecycle states of an onboarding draft."""
    IN_PROGRESS = "in_progress"
    PARTIAL_FAILURE = "partial_failure"
    COMPLETED = "completed"


class OnboardingDraft(Base):
    """Snapshot of one participant's onboarding questionnaire run.

    Attributes:
        id: Primary key
        user_key: Identifier of the participant the draft belongs to
        category_index: Index of the current category
        question_index: Index of the current question within the category
        responses: Answers keyed by question ID (stored as strings in JSON)
        status: in_progress, partial_failure or completed
        last_error: Message of the last failed submission attempt
        started_at: When the draft was created
        updated_at: Last update timestamp
        completed_at: When the questionnaire was marked complete
        answers: Per-question submission markers
    """

    __tablename__ = "onboarding_drafts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Participant identifier"
    )

    # Wizard cursor
    category_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Current category index"
    )
    question_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Current question index within the category"
    )

    responses: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        server_default=text("'{}'"),
        comment="Answers keyed by question ID"
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DraftStatus.IN_PROGRESS,
        comment="in_progress, partial_failure or completed"
    )
    last_error: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Message of the last failed submission"
    )

    # Timestamps
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the draft was created"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
        comment="Last update timestamp"
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the questionnaire was completed"
    )

    answers: Mapped[list["DraftAnswer"]] = relationship(
        "DraftAnswer",
        back_populates="draft",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_draft_user_completed", "user_key", "completed_at"),
    )

    def move_to(self, category_index: int, question_index: int) -> None:
        """Store the wizard cursor."""
        self.category_index = category_index
        self.question_index = question_index

    def get_responses(self) -> dict[int, Any]:
        """Answers keyed by integer question ID."""
        return {int(key): value for key, value in (self.responses or {}).items()}

    def set_responses(self, responses: dict[int, Any]) -> None:
        """Replace all answers.

        Note:
            A new dict is assigned so SQLAlchemy detects the JSON change.
        """
        self.responses = {str(key): value for key, value in responses.items()}

    def mark_partial_failure(self, error: str) -> None:
        self.status = DraftStatus.PARTIAL_FAILURE
        self.last_error = error[:500]

    def mark_completed(self) -> None:
        """Mark the questionnaire as completed at the current UTC time."""
        self.status = DraftStatus.COMPLETED
        self.last_error = None
        self.completed_at = datetime.now(timezone.utc)

    def saved_question_ids(self) -> set[int]:
        """IDs of answers the platform has confirmed saving."""
        return {answer.question_id for answer in self.answers if answer.saved_at is not None}

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<OnboardingDraft(id={self.id}, "
            f"user_key={self.user_key}, "
            f"cursor=({self.category_index}, {self.question_index}), "
            f"status={self.status})>"
        )
