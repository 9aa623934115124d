"""Pydantic schemas for the onboarding questionnaire REST contract.

Categories and questions are defined by the platform and consumed as-is;
field names follow the platform's camelCase JSON and are exposed here in
snake_case through aliases.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QuestionType(str, Enum):
    """Input kinds a questionnaire question can ask for."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    MULTISELECT = "multiselect"
    BOOLEAN = "boolean"
    SCALE = "scale"
    TEXTAREA = "textarea"


# Spellings the platform has used for the same question type
QUESTION_TYPE_ALIASES = {
    "multi-select": QuestionType.MULTISELECT,
}


class PlatformRecord(BaseModel):
    """Base for records decoded from platform JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class QuestionCategory(PlatformRecord):
    """A group of onboarding questions shown together.

    Attributes:
        id: Category identifier
        name: Display name
        description: Longer description shown above the questions
        is_enabled: Disabled categories are skipped by the wizard
        sort_order: Position of the category in the wizard
    """
    id: int
    name: str
    description: str = ""
    is_enabled: bool = Field(default=True, alias="isEnabled")
    sort_order: int = Field(default=0, alias="sortOrder")


class Question(PlatformRecord):
    """A single onboarding question.

    Attributes:
        id: Question identifier, also the key of its response
        category_id: Owning category
        question: Question text
        question_type: Which kind of input the answer takes
        options: Choices for select/multiselect questions
        is_required: Whether an answer must be given before moving on
        is_enabled: Disabled questions are skipped by the wizard
        sort_order: Position within the category
    """
    id: int
    category_id: int = Field(alias="categoryId")
    question: str
    question_type: QuestionType = Field(default=QuestionType.TEXT, alias="questionType")
    options: Optional[list[Any]] = None
    is_required: bool = Field(default=False, alias="isRequired")
    is_enabled: bool = Field(default=True, alias="isEnabled")
    sort_order: int = Field(default=0, alias="sortOrder")

    @field_validator("question_type", mode="before")
    @classmethod
    def coerce_question_type(cls, v):
        """Map alias spellings and fall back to text for unknown types."""
        if isinstance(v, QuestionType):
            return v
        if v is None:
            return QuestionType.TEXT
        normalized = str(v).strip().lower()
        if normalized in QUESTION_TYPE_ALIASES:
            return QUESTION_TYPE_ALIASES[normalized]
        try:
            return QuestionType(normalized)
        except ValueError:
            return QuestionType.TEXT

    @field_validator("options", mode="before")
    @classmethod
    def coerce_options(cls, v):
        """Accept a missing or non-list options value as no options."""
        if v is None or isinstance(v, list):
            return v
        return None

    @property
    def is_birth_date(self) -> bool:
        """Whether this question asks for the participant's date of birth."""
        return self.question_type == QuestionType.DATE and "birth" in self.question.lower()


class ResponsePayload(PlatformRecord):
    """Body of POST /api/questionnaire/responses."""
    question_id: int = Field(alias="questionId")
    response: Any
