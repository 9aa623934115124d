"""Unit tests for the notice renderer.

Tests Jinja2 rendering of catalog notices with context variables.
"""

import pytest

from fokushub.schemas.notices import NoticeCatalog, NoticeTemplate, NoticeVariant
from fokushub.services.notices import (
    NoticeError,
    NoticeRenderer,
    NoticeRenderError,
    get_notice_renderer,
)


@pytest.fixture
def catalog():
    return NoticeCatalog(
        version="1.0.0",
        notices={
            "greeting": NoticeTemplate(title="Hello {{ name }}!", description="You have {{ count }} tasks."),
            "broken": NoticeTemplate(title="Oops", description="{{ missing }}", variant="destructive"),
            "conditional": NoticeTemplate(
                title="Schedule",
                description="{% if enabled %}On{% else %}Off{% endif %}",
            ),
        },
    )


class TestNoticeRenderer:
    """Tests for NoticeRenderer class."""

    def test_variable_substitution(self, catalog):
        """Test title and description are both rendered."""
        notice = NoticeRenderer(catalog).render("greeting", name="Alice", count=3)

        assert notice.key == "greeting"
        assert notice.title == "Hello Alice!"
        assert notice.description == "You have 3 tasks."
        assert notice.variant == NoticeVariant.DEFAULT

    def test_undefined_variable_raises_error(self, catalog):
        """Test that undefined variables raise error with StrictUndefined."""
        with pytest.raises(NoticeRenderError, match="Failed to render"):
            NoticeRenderer(catalog).render("broken")

    def test_unknown_notice(self, catalog):
        with pytest.raises(NoticeRenderError, match="Unknown notice"):
            NoticeRenderer(catalog).render("nope")

    def test_conditional(self, catalog):
        """Test Jinja2 if conditionals."""
        renderer = NoticeRenderer(catalog)

        assert renderer.render("conditional", enabled=True).description == "On"
        assert renderer.render("conditional", enabled=False).description == "Off"

    def test_variant_override(self, catalog):
        notice = NoticeRenderer(catalog).render(
            "greeting", variant=NoticeVariant.DESTRUCTIVE, name="A", count=1
        )
        assert notice.variant == NoticeVariant.DESTRUCTIVE

    def test_render_text_strips_whitespace(self, catalog):
        assert NoticeRenderer(catalog).render_text("  hi {{ x }} \n", {"x": 1}) == "hi 1"


class TestNoticeCatalog:
    """Tests for the notices shipped with the service."""

    def test_failure_notices_are_destructive(self, renderer):
        notice = renderer.render("questionnaire_save_failed", saved=2, total=5, failed=3, message="Timeout")

        assert notice.variant == NoticeVariant.DESTRUCTIVE
        assert "Saved 2 of 5 answers" in notice.description

    def test_upload_size_formatting(self, renderer):
        notice = renderer.render(
            "upload_succeeded", label="Selfie", file_name="me.jpg", size_mb=1.23456
        )

        assert notice.title == "Selfie Uploaded"
        assert notice.description == "me.jpg (1.23MB) uploaded successfully."

    def test_matches_found(self, renderer):
        assert renderer.render("matches_found", count=12).description == (
            "Found 12 optimal participants for your campaign."
        )

    def test_singleton(self):
        """Test get_notice_renderer returns the same instance."""
        assert get_notice_renderer() is get_notice_renderer()


class TestNoticeError:
    def test_carries_notice_and_status(self, renderer):
        notice = renderer.render("questionnaire_incomplete")
        error = NoticeError("Incomplete", notice=notice, status=409)

        assert str(error) == "Incomplete"
        assert error.notice.title == "Incomplete Questionnaire"
        assert error.status == 409

    def test_default_status(self):
        assert NoticeError("Bad").status == 400
