"""Onboarding questionnaire wizard.

This module walks a participant through the platform's questionnaire one
question at a time, validates answers as they go, and submits everything at
the end. Progress can be snapshotted to the draft store so a reload resumes
at the same question with the same answers.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional

from fokushub.config import get_settings
from fokushub.models.draft import DraftStatus, OnboardingDraft
from fokushub.schemas.notices import Notice
from fokushub.schemas.questionnaire import Question, QuestionCategory, ResponsePayload
from fokushub.services.api_client import ApiClient, ApiConnectionError, ApiError
from fokushub.services.draft_store import DraftStore
from fokushub.services.notices import NoticeError, NoticeRenderer, get_notice_renderer
from fokushub.services.query_cache import QueryCache
from fokushub.services.validation import (
    ResponseValidator,
    effective_options,
    is_empty_response,
    normalize_response,
    toggle_multiselect_option,
)
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

CATEGORIES_KEY = ("/api/questionnaire/categories",)
QUESTIONS_PATH = "/api/questionnaire/questions"
RESPONSES_PATH = "/api/questionnaire/responses"
COMPLETE_PATH = "/api/questionnaire/complete"
CURRENT_USER_KEY = ("/api/auth/me",)


class OnboardingError(NoticeError):
    """Raised when a wizard operation is not allowed in the current state."""

    def __init__(self, message: str, notice: Optional[Notice] = None, status: int = 409):
        super().__init__(message, notice=notice, status=status)


class WizardPhase(str, Enum):
    IN_PROGRESS = "in_progress"
    PARTIAL_FAILURE = "partial_failure"
    COMPLETED = "completed"


class StepOutcome(str, Enum):
    """What a navigation call did."""
    ADVANCED = "advanced"
    MOVED_BACK = "moved_back"
    UNCHANGED = "unchanged"
    BLOCKED = "blocked"
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"
    PARTIAL_FAILURE = "partial_failure"


@dataclass
class SubmissionReport:
    """Outcome of a submission attempt.

    Attributes:
        saved: Question IDs saved during this attempt
        pending: Question IDs still not saved on the platform
        completed: Whether the questionnaire was marked complete
        error: Message of the failure that stopped the attempt
    """
    saved: list[int] = field(default_factory=list)
    pending: list[int] = field(default_factory=list)
    completed: bool = False
    error: Optional[str] = None


@dataclass
class StepResult:
    outcome: StepOutcome
    notice: Optional[Notice] = None
    report: Optional[SubmissionReport] = None


def questions_key(category_id: int) -> tuple:
    return (QUESTIONS_PATH, category_id)


class OnboardingWizard:
    """Questionnaire state machine over (category_index, question_index).

    Categories are fetched once; each category's questions are fetched on
    first use and served from the query cache afterwards.

    Usage:
        wizard = OnboardingWizard(api, QueryCache())
        wizard.load()
        wizard.answer("1990-04-02")
        result = wizard.next()
    """

    def __init__(
        self,
        api: ApiClient,
        cache: Optional[QueryCache] = None,
        store: Optional[DraftStore] = None,
        user_key: Optional[str] = None,
        renderer: Optional[NoticeRenderer] = None,
        minimum_age: Optional[int] = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the wizard.

        Args:
            api: Platform API client
            cache: Query cache shared with other screens
            store: Draft store; without one progress lives only in memory
            user_key: Participant the draft belongs to (required with a store)
            renderer: Notice renderer
            minimum_age: Youngest allowed participant age (configured value by default)
            today: Clock used for the age check
        """
        if store is not None and not user_key:
            raise ValueError("user_key is required when a draft store is used")
        self.api = api
        self.cache = cache or QueryCache()
        self.store = store
        self.user_key = user_key
        self.renderer = renderer or get_notice_renderer()
        self.minimum_age = (
            minimum_age if minimum_age is not None else get_settings().minimum_participant_age
        )
        self.today = today

        self.categories: list[QuestionCategory] = []
        self.category_index = 0
        self.question_index = 0
        self.responses: dict[int, Any] = {}
        self.validation_errors: dict[int, str] = {}
        self.saved_ids: set[int] = set()
        self.phase = WizardPhase.IN_PROGRESS
        self.draft: Optional[OnboardingDraft] = None

    # Loading

    def load(self) -> "OnboardingWizard":
        """Fetch categories and restore the draft, if any."""
        raw = self.cache.fetch(CATEGORIES_KEY, lambda: self.api.query(CATEGORIES_KEY))
        categories = [QuestionCategory.model_validate(item) for item in raw or []]
        self.categories = sorted(
            (category for category in categories if category.is_enabled),
            key=lambda category: category.sort_order,
        )
        logger.debug(f"Loaded {len(self.categories)} questionnaire categories")

        if self.store is not None:
            self.draft = self.store.get_or_create_onboarding(self.user_key)
            self._restore(self.draft)
        self._skip_empty_categories()
        return self

    def _restore(self, draft: OnboardingDraft) -> None:
        self.responses = draft.get_responses()
        self.saved_ids = draft.saved_question_ids()
        if draft.status == DraftStatus.PARTIAL_FAILURE:
            self.phase = WizardPhase.PARTIAL_FAILURE
        elif draft.status == DraftStatus.COMPLETED:
            self.phase = WizardPhase.COMPLETED

        category_index = min(max(draft.category_index, 0), max(len(self.categories) - 1, 0))
        question_index = max(draft.question_index, 0)
        if self.categories:
            questions = self.questions_for(self.categories[category_index])
            question_index = min(question_index, max(len(questions) - 1, 0))
        self.category_index = category_index
        self.question_index = question_index
        logger.info(
            f"Resumed onboarding at ({category_index}, {question_index}) "
            f"with {len(self.responses)} answers",
            extra={"user_key": self.user_key},
        )

    def _skip_empty_categories(self) -> None:
        """Move the cursor off a category without questions.

        The first non-empty category at or after the cursor wins; failing
        that, the last question of the nearest non-empty one before it.
        """
        if not self.categories or self.current_questions:
            return
        index = self._next_category_index()
        if index is not None:
            self.category_index, self.question_index = index, 0
        else:
            index = self._previous_category_index()
            if index is None:
                return
            self.category_index = index
            self.question_index = len(self.questions_for(self.categories[index])) - 1
        logger.debug(f"Skipped empty categories; cursor now at ({self.category_index}, {self.question_index})")
        self._persist()

    def questions_for(self, category: QuestionCategory) -> list[Question]:
        """Enabled questions of a category in display order (cached)."""
        key = questions_key(category.id)

        def loader() -> list[Question]:
            raw = self.api.query(key)
            questions = [Question.model_validate(item) for item in raw or []]
            return sorted(
                (question for question in questions if question.is_enabled),
                key=lambda question: question.sort_order,
            )

        return self.cache.fetch(key, loader)

    def all_questions(self) -> list[Question]:
        """Questions of every category, cache first."""
        questions: list[Question] = []
        for category in self.categories:
            questions.extend(self.questions_for(category))
        return questions

    # Current position

    @property
    def current_category(self) -> Optional[QuestionCategory]:
        if 0 <= self.category_index < len(self.categories):
            return self.categories[self.category_index]
        return None

    @property
    def current_questions(self) -> list[Question]:
        category = self.current_category
        if category is None:
            return []
        return self.questions_for(category)

    @property
    def current_question(self) -> Optional[Question]:
        questions = self.current_questions
        if 0 <= self.question_index < len(questions):
            return questions[self.question_index]
        return None

    @property
    def progress(self) -> float:
        """Percentage of the current category answered so far."""
        total = len(self.current_questions)
        if total == 0:
            return 0.0
        return (self.question_index + 1) / total * 100

    @property
    def label(self) -> str:
        category = self.current_category
        if category is None:
            return ""
        return f"{category.name} ({self.question_index + 1} of {len(self.current_questions)})"

    @property
    def is_first(self) -> bool:
        return self._previous_category_index() is None and self.question_index == 0

    @property
    def is_last(self) -> bool:
        return (
            self.question_index >= len(self.current_questions) - 1
            and self._next_category_index() is None
        )

    @property
    def is_completed(self) -> bool:
        return self.phase == WizardPhase.COMPLETED

    def _next_category_index(self) -> Optional[int]:
        for index in range(self.category_index + 1, len(self.categories)):
            if self.questions_for(self.categories[index]):
                return index
        return None

    def _previous_category_index(self) -> Optional[int]:
        for index in range(self.category_index - 1, -1, -1):
            if self.questions_for(self.categories[index]):
                return index
        return None

    def _ensure_open(self) -> None:
        if self.phase == WizardPhase.COMPLETED:
            raise OnboardingError("Questionnaire is already completed")

    # Answers

    def answer(self, value: Any) -> None:
        """Record the answer to the current question and clear its error."""
        self._ensure_open()
        question = self.current_question
        if question is None:
            raise OnboardingError("There is no current question to answer")

        if self.responses.get(question.id) != value and question.id in self.saved_ids:
            # A changed answer has to be sent again
            self.saved_ids.discard(question.id)
            if self.store is not None and self.draft is not None:
                self.store.clear_answer_marker(self.draft, question.id)

        self.responses[question.id] = value
        self.validation_errors.pop(question.id, None)
        self._persist()

    def toggle_option(self, option: Any, checked: bool) -> list[Any]:
        """Tick or untick an option of the current multiselect question."""
        question = self.current_question
        if question is None:
            raise OnboardingError("There is no current question to answer")
        selected = toggle_multiselect_option(question, self.responses.get(question.id), option, checked)
        self.answer(selected)
        return selected

    def validate_current(self) -> bool:
        """Validate the current answer, recording an error if it fails."""
        question = self.current_question
        if question is None:
            return True
        result = ResponseValidator.validate(
            question,
            self.responses.get(question.id),
            today=self.today(),
            minimum_age=self.minimum_age,
        )
        if not result.is_valid:
            self.validation_errors[question.id] = result.error_message
            logger.debug(
                f"Answer rejected: {result.error_message}",
                extra={"question_id": question.id},
            )
            return False
        return True

    # Navigation

    def next(self) -> StepResult:
        """Validate and advance; on the final question validate all and submit."""
        self._ensure_open()
        if not self.validate_current():
            return StepResult(StepOutcome.BLOCKED)

        if self.question_index < len(self.current_questions) - 1:
            self.question_index += 1
            self._persist()
            return StepResult(StepOutcome.ADVANCED)

        next_category = self._next_category_index()
        if next_category is not None:
            self.category_index = next_category
            self.question_index = 0
            self._persist()
            logger.debug(
                "Moved to next category",
                extra={"category_id": self.categories[next_category].id},
            )
            return StepResult(StepOutcome.ADVANCED)

        return self._finish()

    def previous(self) -> StepResult:
        """Step back one question, rolling to the previous category's last question."""
        self._ensure_open()
        if self.question_index > 0:
            self.question_index -= 1
            self._persist()
            return StepResult(StepOutcome.MOVED_BACK)

        previous_category = self._previous_category_index()
        if previous_category is None:
            return StepResult(StepOutcome.UNCHANGED)

        self.category_index = previous_category
        self.question_index = len(self.questions_for(self.categories[previous_category])) - 1
        self._persist()
        return StepResult(StepOutcome.MOVED_BACK)

    def retry_submission(self) -> StepResult:
        """Resend unsaved answers after a partial failure."""
        if self.phase != WizardPhase.PARTIAL_FAILURE:
            raise OnboardingError("There is no failed submission to retry")
        return self._finish()

    # Submission

    def _finish(self) -> StepResult:
        questions = self.all_questions()
        errors = ResponseValidator.validate_all(
            questions, self.responses, today=self.today(), minimum_age=self.minimum_age
        )
        if errors:
            self.validation_errors = errors
            return StepResult(
                StepOutcome.INCOMPLETE,
                notice=self.renderer.render("questionnaire_incomplete"),
            )

        self.validation_errors = {}
        report = self.submit(questions)
        if report.completed:
            return StepResult(
                StepOutcome.COMPLETED,
                notice=self.renderer.render("questionnaire_saved"),
                report=report,
            )
        return StepResult(
            StepOutcome.PARTIAL_FAILURE,
            notice=self.renderer.render(
                "questionnaire_save_failed",
                saved=len(self.saved_ids),
                total=len(self.saved_ids) + len(report.pending),
                failed=len(report.pending),
                message=report.error,
            ),
            report=report,
        )

    def submit(self, questions: Optional[list[Question]] = None) -> SubmissionReport:
        """Save unsaved answers one by one, then mark the questionnaire complete.

        Stops at the first failure. Answers saved before the failure stay
        marked as saved so a retry only sends the rest.

        Returns:
            SubmissionReport describing what reached the platform
        """
        questions = questions if questions is not None else self.all_questions()
        by_id = {question.id: question for question in questions}

        stale = [question_id for question_id in self.responses if question_id not in by_id]
        if stale:
            logger.warning(f"Ignoring answers to unknown questions {sorted(stale)}")

        pending = [
            question.id
            for question in questions
            if question.id not in self.saved_ids
            and not is_empty_response(self.responses.get(question.id))
        ]
        report = SubmissionReport()

        for question_id in list(pending):
            payload = ResponsePayload(
                question_id=question_id,
                response=normalize_response(by_id[question_id], self.responses[question_id]),
            )
            try:
                self.api.post(RESPONSES_PATH, payload.model_dump(by_alias=True))
            except (ApiError, ApiConnectionError) as e:
                logger.error(
                    f"Failed to save answer: {e}",
                    extra={"question_id": question_id, "user_key": self.user_key},
                )
                if self.store is not None and self.draft is not None:
                    self.store.mark_answer_failed(self.draft, question_id, str(e))
                return self._partial_failure(report, pending, str(e))

            self.saved_ids.add(question_id)
            pending.remove(question_id)
            report.saved.append(question_id)
            if self.store is not None and self.draft is not None:
                self.store.mark_answer_saved(self.draft, question_id)

        try:
            self.api.put(COMPLETE_PATH, {})
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Failed to mark questionnaire complete: {e}", extra={"user_key": self.user_key})
            return self._partial_failure(report, pending, str(e))

        self.cache.invalidate(CURRENT_USER_KEY)
        self.phase = WizardPhase.COMPLETED
        report.completed = True
        if self.store is not None and self.draft is not None:
            self.store.mark_onboarding_completed(self.draft)
        logger.info(
            f"Questionnaire completed ({len(report.saved)} answers sent)",
            extra={"user_key": self.user_key},
        )
        return report

    def _partial_failure(self, report: SubmissionReport, pending: list[int], error: str) -> SubmissionReport:
        self.phase = WizardPhase.PARTIAL_FAILURE
        report.pending = list(pending)
        report.error = error
        if self.store is not None and self.draft is not None:
            self.store.mark_onboarding_partial_failure(self.draft, error)
        return report

    def _persist(self) -> None:
        if self.store is None or self.draft is None:
            return
        self.store.save_onboarding(self.draft, self.category_index, self.question_index, self.responses)

    # Snapshot

    def state(self) -> dict:
        """JSON-ready view of the wizard for the HTTP surface."""
        question = self.current_question
        return {
            "phase": self.phase.value,
            "categoryIndex": self.category_index,
            "questionIndex": self.question_index,
            "category": self.current_category.model_dump(by_alias=True) if self.current_category else None,
            "question": question.model_dump(by_alias=True, mode="json") if question else None,
            "options": effective_options(question) if question else None,
            "response": self.responses.get(question.id) if question else None,
            "label": self.label,
            "progress": self.progress,
            "isFirst": self.is_first,
            "isLast": self.is_last,
            "validationErrors": {str(key): value for key, value in self.validation_errors.items()},
            "savedQuestionIds": sorted(self.saved_ids),
        }
