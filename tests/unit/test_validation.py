"""Unit tests for questionnaire response validation.

Tests required checks, the date-of-birth age gate, per-type validation and
the option rules applied to particular questions.
"""

from datetime import date

import pytest

from fokushub.schemas.questionnaire import Question, QuestionType
from fokushub.services.validation import (
    GENDER_OPTIONS,
    PRIORITY_COUNTRIES,
    REQUIRED_MESSAGE,
    ResponseValidator,
    effective_options,
    is_empty_response,
    normalize_response,
    toggle_multiselect_option,
)

TODAY = date(2026, 10, 18)


def make_question(question_type="text", text="Question?", required=False, options=None, question_id=1):
    return Question(
        id=question_id,
        categoryId=1,
        question=text,
        questionType=question_type,
        isRequired=required,
        options=options,
    )


class TestEmptyResponses:
    """Tests for what counts as an answer."""

    @pytest.mark.parametrize("value", [None, "", "   ", []])
    def test_empty_values(self, value):
        assert is_empty_response(value)

    @pytest.mark.parametrize("value", [0, False, "0", ["a"]])
    def test_falsy_answers_are_not_empty(self, value):
        """Test 0 and False count as answers."""
        assert not is_empty_response(value)

    def test_required_question_rejects_empty(self):
        question = make_question(required=True)
        result = ResponseValidator.validate(question, "  ")

        assert not result.is_valid
        assert result.error_message == REQUIRED_MESSAGE

    def test_optional_question_accepts_empty(self):
        assert ResponseValidator.validate(make_question(), None).is_valid

    def test_required_number_accepts_zero(self):
        question = make_question("number", required=True)
        assert ResponseValidator.validate(question, 0).is_valid

    def test_required_boolean_accepts_false(self):
        question = make_question("boolean", required=True)
        assert ResponseValidator.validate(question, False).is_valid


class TestBirthDate:
    """Tests for the date-of-birth age gate."""

    def dob_question(self):
        return make_question("date", text="What is your date of birth?", required=True)

    def test_under_minimum_age_is_rejected(self):
        result = ResponseValidator.validate(self.dob_question(), "2010-05-01", today=TODAY)

        assert not result.is_valid
        assert result.error_message == (
            "You must be at least 18 years old to participate (current age: 16)"
        )

    def test_day_before_eighteenth_birthday_is_rejected(self):
        result = ResponseValidator.validate(self.dob_question(), "2008-10-19", today=TODAY)

        assert not result.is_valid
        assert "(current age: 17)" in result.error_message

    def test_eighteenth_birthday_is_accepted(self):
        assert ResponseValidator.validate(self.dob_question(), "2008-10-18", today=TODAY).is_valid

    def test_day_month_year_format_is_accepted(self):
        assert ResponseValidator.validate(self.dob_question(), "02/04/1990", today=TODAY).is_valid

    def test_invalid_date_is_rejected(self):
        result = ResponseValidator.validate(self.dob_question(), "someday", today=TODAY)
        assert result.error_message == "Please enter a valid date"

    @pytest.mark.parametrize("value", ["2026-10-19", "2030-01-01"])
    def test_future_date_is_rejected(self, value):
        result = ResponseValidator.validate(self.dob_question(), value, today=TODAY)
        assert result.error_message == "Please enter a valid date"

    def test_configurable_minimum_age(self):
        result = ResponseValidator.validate(self.dob_question(), "2006-01-01", today=TODAY, minimum_age=21)
        assert "at least 21 years old" in result.error_message

    def test_other_date_questions_skip_age_gate(self):
        question = make_question("date", text="When did you last travel?")
        assert ResponseValidator.validate(question, "2025-01-01", today=TODAY).is_valid


class TestTypeValidation:
    """Tests for per-type checks."""

    def test_negative_number_rejected(self):
        result = ResponseValidator.validate(make_question("number"), -1)
        assert result.error_message == "Please enter a number (0 or higher)"

    def test_numeric_string_accepted(self):
        assert ResponseValidator.validate(make_question("number"), "12").is_valid

    @pytest.mark.parametrize("value,valid", [(1, True), (10, True), (0, False), (11, False), (2.5, False)])
    def test_scale_bounds(self, value, valid):
        assert ResponseValidator.validate(make_question("scale"), value).is_valid is valid

    @pytest.mark.parametrize("value", ["inf", "-inf", "nan", "NaN", float("inf"), float("nan")])
    @pytest.mark.parametrize("question_type,message", [
        ("scale", "Please choose a value from 1 to 10"),
        ("number", "Please enter a number (0 or higher)"),
    ])
    def test_non_finite_numbers_rejected(self, question_type, message, value):
        result = ResponseValidator.validate(make_question(question_type), value)

        assert not result.is_valid
        assert result.error_message == message

    def test_select_must_be_listed_option(self):
        question = make_question("select", options=["Yes", "No"])

        assert ResponseValidator.validate(question, "Yes").is_valid
        assert not ResponseValidator.validate(question, "Maybe").is_valid

    def test_country_question_uses_priority_list(self):
        question = make_question("select", text="Which country do you live in?", options=["Atlantis"])

        assert ResponseValidator.validate(question, "Canada").is_valid
        assert not ResponseValidator.validate(question, "Atlantis").is_valid

    def test_multiselect_requires_list_of_known_options(self):
        question = make_question("multiselect", options=["A", "B"])

        assert ResponseValidator.validate(question, ["A", "B"]).is_valid
        assert not ResponseValidator.validate(question, "A").is_valid
        assert ResponseValidator.validate(question, ["C"]).error_message == "Unknown options: C"

    def test_boolean_accepts_yes_no_strings(self):
        question = make_question("boolean")

        assert ResponseValidator.validate(question, "yes").is_valid
        assert not ResponseValidator.validate(question, "perhaps").is_valid

    def test_validate_all_collects_errors(self):
        questions = [
            make_question(required=True, question_id=1),
            make_question("number", question_id=2),
            make_question(question_id=3),
        ]

        errors = ResponseValidator.validate_all(questions, {2: -5, 3: "fine"})

        assert errors == {
            1: REQUIRED_MESSAGE,
            2: "Please enter a number (0 or higher)",
        }


class TestOptions:
    """Tests for option rules."""

    def test_gender_options(self):
        question = make_question("select", text="What is your gender?", options=["X"])
        assert effective_options(question) == GENDER_OPTIONS

    def test_country_options(self):
        question = make_question("select", text="Country of residence")
        assert effective_options(question) == PRIORITY_COUNTRIES
        assert PRIORITY_COUNTRIES[0] == "United States"
        assert PRIORITY_COUNTRIES[-1] == "Other"

    def test_platform_options_otherwise(self):
        question = make_question("select", options=["Red", "Blue"])
        assert effective_options(question) == ["Red", "Blue"]

    def test_social_causes_exclusive_options(self):
        """Test None and Other replace every other choice."""
        question = make_question("multiselect", text="Which social causes do you support?")

        assert toggle_multiselect_option(question, ["Education"], "None", True) == ["None"]
        assert toggle_multiselect_option(question, ["None"], "Education", True) == ["Education"]
        assert toggle_multiselect_option(question, ["Education"], "Environment", True) == [
            "Education",
            "Environment",
        ]

    def test_untick_removes_option(self):
        question = make_question("multiselect")
        assert toggle_multiselect_option(question, ["A", "B"], "A", False) == ["B"]

    def test_other_questions_have_no_exclusive_options(self):
        question = make_question("multiselect", text="Which pets do you have?")
        assert toggle_multiselect_option(question, ["Cat"], "None", True) == ["Cat", "None"]


class TestNormalize:
    """Tests for shaping answers before submission."""

    def test_multiselect_keeps_list(self):
        question = make_question(QuestionType.MULTISELECT)
        assert normalize_response(question, ["A", "B"]) == ["A", "B"]

    def test_other_types_take_first_element(self):
        assert normalize_response(make_question("select"), ["A", "B"]) == "A"

    def test_scalars_unchanged(self):
        assert normalize_response(make_question("number"), 4) == 4
