"""Draft store service for wizard snapshots.

Wraps a SQLAlchemy session with the queries the onboarding and verification
wizards need to save and resume their state.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from fokushub.models.answer import DraftAnswer
from fokushub.models.draft import DraftStatus, OnboardingDraft
from fokushub.models.verification_draft import VerificationDraft
from fokushub.logging_config import get_logger

logger = get_logger(__name__)


class DraftStore:
    """Persistence for onboarding and verification drafts."""

    def __init__(self, db: Session):
        """Initialize draft store.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    # Onboarding

    def latest_onboarding(self, user_key: str) -> Optional[OnboardingDraft]:
        """Most recent onboarding draft for a user, completed or not."""
        stmt = (
            select(OnboardingDraft)
            .where(OnboardingDraft.user_key == user_key)
            .order_by(OnboardingDraft.id.desc())
        )
        return self.db.execute(stmt).scalars().first()

    def get_or_create_onboarding(self, user_key: str) -> OnboardingDraft:
        """Latest draft for the user; a completed one is returned as is."""
        draft = self.latest_onboarding(user_key)
        if draft is not None:
            return draft
        draft = OnboardingDraft(
            user_key=user_key,
            category_index=0,
            question_index=0,
            responses={},
            status=DraftStatus.IN_PROGRESS,
        )
        self.db.add(draft)
        self.db.commit()
        self.db.refresh(draft)
        logger.info(f"Created onboarding draft {draft.id}", extra={"user_key": user_key})
        return draft

    def save_onboarding(
        self,
        draft: OnboardingDraft,
        category_index: int,
        question_index: int,
        responses: dict[int, Any],
    ) -> None:
        """Store the cursor and answers of an onboarding draft."""
        draft.move_to(category_index, question_index)
        draft.set_responses(responses)
        self.db.commit()

    def _answer_marker(self, draft: OnboardingDraft, question_id: int) -> DraftAnswer:
        for answer in draft.answers:
            if answer.question_id == question_id:
                return answer
        answer = DraftAnswer(question_id=question_id)
        draft.answers.append(answer)
        return answer

    def mark_answer_saved(self, draft: OnboardingDraft, question_id: int) -> None:
        self._answer_marker(draft, question_id).mark_saved()
        self.db.commit()

    def mark_answer_failed(self, draft: OnboardingDraft, question_id: int, error: str) -> None:
        self._answer_marker(draft, question_id).mark_failed(error)
        self.db.commit()

    def clear_answer_marker(self, draft: OnboardingDraft, question_id: int) -> None:
        """Forget that an answer was saved, e.g. after it was changed."""
        for answer in list(draft.answers):
            if answer.question_id == question_id:
                draft.answers.remove(answer)
        self.db.commit()

    def mark_onboarding_partial_failure(self, draft: OnboardingDraft, error: str) -> None:
        draft.mark_partial_failure(error)
        self.db.commit()

    def mark_onboarding_completed(self, draft: OnboardingDraft) -> None:
        draft.mark_completed()
        self.db.commit()
        logger.info(f"Onboarding draft {draft.id} completed", extra={"user_key": draft.user_key})

    # Verification

    def active_verification(self, user_key: str) -> Optional[VerificationDraft]:
        """Most recent verification draft that was neither submitted nor skipped."""
        stmt = (
            select(VerificationDraft)
            .where(
                VerificationDraft.user_key == user_key,
                VerificationDraft.submitted_at.is_(None),
                VerificationDraft.skipped_at.is_(None),
            )
            .order_by(VerificationDraft.id.desc())
        )
        return self.db.execute(stmt).scalars().first()

    def get_or_create_verification(self, user_key: str) -> VerificationDraft:
        draft = self.active_verification(user_key)
        if draft is not None:
            return draft
        draft = VerificationDraft(
            user_key=user_key,
            step=1,
            phone_number="",
            address="",
            additional_info="",
        )
        self.db.add(draft)
        self.db.commit()
        self.db.refresh(draft)
        logger.info(f"Created verification draft {draft.id}", extra={"user_key": user_key})
        return draft

    def save_verification(self, draft: VerificationDraft) -> None:
        self.db.commit()
