"""Response validation for onboarding questionnaire answers.

This module validates answers against their question's requirements,
normalizes values before submission, and applies the per-question option
rules the onboarding screens use.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

from fokushub.schemas.questionnaire import Question, QuestionType
from fokushub.services.date_utils import age_from_date_of_birth, parse_date
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

REQUIRED_MESSAGE = "This field is required"
SCALE_MIN = 1
SCALE_MAX = 10
DEFAULT_MINIMUM_AGE = 18

PRIORITY_COUNTRIES = [
    "United States",
    "Canada",
    "United Kingdom",
    "Australia",
    "Germany",
    "France",
    "Italy",
    "Spain",
    "Netherlands",
    "Japan",
    "South Korea",
    "China",
    "India",
    "Brazil",
    "Mexico",
    "Russia",
    "South Africa",
    "Israel",
    "Turkey",
    "Saudi Arabia",
    "United Arab Emirates",
    "Singapore",
    "Hong Kong",
    "Taiwan",
    "Thailand",
    "Malaysia",
    "Indonesia",
    "Philippines",
    "Vietnam",
    "Argentina",
    "Chile",
    "Colombia",
    "Peru",
    "Egypt",
    "Morocco",
    "Nigeria",
    "Kenya",
    "Ghana",
    "Sweden",
    "Norway",
    "Denmark",
    "Finland",
    "Ireland",
    "Portugal",
    "Greece",
    "Poland",
    "Other",
]

GENDER_OPTIONS = ["Male", "Female"]

# Options that cannot be combined with any other choice on "social causes" questions
EXCLUSIVE_SOCIAL_CAUSE_OPTIONS = ("None", "Other")

BOOLEAN_STRINGS = {"true", "false", "yes", "no"}


@dataclass
class ValidationResult:
    """Result of validating one answer.

    Attributes:
        is_valid: Whether the answer may be accepted
        error_message: Message shown next to the question if not
    """
    is_valid: bool
    error_message: Optional[str] = None


def is_empty_response(value: Any) -> bool:
    """Whether a value counts as no answer.

    False and 0 are answers; None, blank strings and empty lists are not.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def effective_options(question: Question) -> Optional[list[Any]]:
    """Options offered for a question.

    Country questions use the priority country list and gender questions a
    fixed pair; every other question uses the platform's options.
    """
    text = question.question.lower()
    if "country" in text:
        return list(PRIORITY_COUNTRIES)
    if "gender" in text:
        return list(GENDER_OPTIONS)
    return question.options


def normalize_response(question: Optional[Question], value: Any) -> Any:
    """Shape an answer for submission.

    Multiselect answers stay lists; any other list answer is reduced to its
    first element.
    """
    if question is not None and question.question_type == QuestionType.MULTISELECT:
        if isinstance(value, (list, tuple)):
            return list(value)
        return [] if value is None else [value]
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def toggle_multiselect_option(
    question: Question,
    current: Optional[Iterable[Any]],
    option: Any,
    checked: bool,
) -> list[Any]:
    """Apply a checkbox change to a multiselect answer.

    Args:
        question: The multiselect question
        current: Options selected so far
        option: Option being toggled
        checked: True when the option was ticked

    Returns:
        The new list of selected options
    """
    selected = list(current or [])
    if not checked:
        return [item for item in selected if item != option]

    if "social causes" in question.question.lower():
        is_exclusive = option in EXCLUSIVE_SOCIAL_CAUSE_OPTIONS
        has_exclusive = any(item in EXCLUSIVE_SOCIAL_CAUSE_OPTIONS for item in selected)
        if is_exclusive or has_exclusive:
            return [option]

    if option in selected:
        return selected
    return selected + [option]


class ResponseValidator:
    """Validates questionnaire answers."""

    @staticmethod
    def validate(
        question: Question,
        value: Any,
        today: Optional[date] = None,
        minimum_age: int = DEFAULT_MINIMUM_AGE,
    ) -> ValidationResult:
        """Validate one answer against its question.

        Checks, in order:
        - required questions must have a non-empty answer
        - date-of-birth answers must give an age of at least minimum_age
        - non-empty answers must fit the question type

        Args:
            question: Question being answered
            value: The answer
            today: Reference date for the age check (defaults to today)
            minimum_age: Youngest allowed participant age

        Returns:
            ValidationResult

        Example:
            >>> q = Question(id=1, categoryId=1, question="Date of birth", questionType="date", isRequired=True)
            >>> ResponseValidator.validate(q, "2015-01-01").is_valid
            False
        """
        if is_empty_response(value):
            if question.is_required:
                return ValidationResult(is_valid=False, error_message=REQUIRED_MESSAGE)
            return ValidationResult(is_valid=True)

        if question.is_birth_date:
            return ResponseValidator._validate_birth_date(value, today, minimum_age)

        validator = _TYPE_VALIDATORS.get(question.question_type)
        if validator is None:
            return ValidationResult(is_valid=True)
        return validator(question, value)

    @staticmethod
    def validate_all(
        questions: Iterable[Question],
        responses: dict[int, Any],
        today: Optional[date] = None,
        minimum_age: int = DEFAULT_MINIMUM_AGE,
    ) -> dict[int, str]:
        """Validate every question's answer.

        Returns:
            Mapping of question ID to error message for each failing answer
        """
        errors: dict[int, str] = {}
        for question in questions:
            result = ResponseValidator.validate(
                question, responses.get(question.id), today=today, minimum_age=minimum_age
            )
            if not result.is_valid:
                errors[question.id] = result.error_message
        if errors:
            logger.debug(f"Validation failed for questions {sorted(errors)}")
        return errors

    @staticmethod
    def _validate_birth_date(value: Any, today: Optional[date], minimum_age: int) -> ValidationResult:
        date_of_birth = parse_date(value)
        if date_of_birth is None or date_of_birth > (today or date.today()):
            return ValidationResult(is_valid=False, error_message="Please enter a valid date")
        age = age_from_date_of_birth(value, today)
        if age < minimum_age:
            return ValidationResult(
                is_valid=False,
                error_message=(
                    f"You must be at least {minimum_age} years old to participate "
                    f"(current age: {age})"
                ),
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def _validate_number(question: Question, value: Any) -> ValidationResult:
        number = _as_number(value)
        if number is None or number < 0:
            return ValidationResult(is_valid=False, error_message="Please enter a number (0 or higher)")
        return ValidationResult(is_valid=True)

    @staticmethod
    def _validate_scale(question: Question, value: Any) -> ValidationResult:
        number = _as_number(value)
        if number is None or number != int(number) or not SCALE_MIN <= number <= SCALE_MAX:
            return ValidationResult(
                is_valid=False,
                error_message=f"Please choose a value from {SCALE_MIN} to {SCALE_MAX}",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def _validate_date(question: Question, value: Any) -> ValidationResult:
        if parse_date(value) is None:
            return ValidationResult(is_valid=False, error_message="Please enter a valid date")
        return ValidationResult(is_valid=True)

    @staticmethod
    def _validate_select(question: Question, value: Any) -> ValidationResult:
        options = effective_options(question)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if options and value not in options:
            return ValidationResult(
                is_valid=False,
                error_message="Please choose one of the listed options",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def _validate_multiselect(question: Question, value: Any) -> ValidationResult:
        if not isinstance(value, (list, tuple)):
            return ValidationResult(is_valid=False, error_message="Please choose one or more options")
        options = effective_options(question)
        if options:
            unknown = [item for item in value if item not in options]
            if unknown:
                return ValidationResult(
                    is_valid=False,
                    error_message=f"Unknown options: {', '.join(str(item) for item in unknown)}",
                )
        return ValidationResult(is_valid=True)

    @staticmethod
    def _validate_boolean(question: Question, value: Any) -> ValidationResult:
        if isinstance(value, bool):
            return ValidationResult(is_valid=True)
        if isinstance(value, str) and value.strip().lower() in BOOLEAN_STRINGS:
            return ValidationResult(is_valid=True)
        return ValidationResult(is_valid=False, error_message="Please answer yes or no")

    @staticmethod
    def _validate_text(question: Question, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return ValidationResult(is_valid=False, error_message="Please enter your answer as text")
        return ValidationResult(is_valid=True)


def _as_number(value: Any) -> Optional[float]:
    """Read a finite number from an answer; None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


_TYPE_VALIDATORS = {
    QuestionType.NUMBER: ResponseValidator._validate_number,
    QuestionType.SCALE: ResponseValidator._validate_scale,
    QuestionType.DATE: ResponseValidator._validate_date,
    QuestionType.SELECT: ResponseValidator._validate_select,
    QuestionType.MULTISELECT: ResponseValidator._validate_multiselect,
    QuestionType.BOOLEAN: ResponseValidator._validate_boolean,
    QuestionType.TEXT: ResponseValidator._validate_text,
    QuestionType.TEXTAREA: ResponseValidator._validate_text,
}
