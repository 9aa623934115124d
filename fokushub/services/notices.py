"""Notice rendering service using Jinja2.

Notices are the short confirmation and failure messages shown after a user
action. Their text lives in the notices catalog and is rendered with
StrictUndefined so a missing variable fails loudly instead of showing blanks.
"""

from typing import Any, Optional

from jinja2 import Environment, BaseLoader, StrictUndefined, TemplateError

from fokushub.schemas.notices import Notice, NoticeCatalog, NoticeVariant
from fokushub.services.catalog_loader import load_notice_catalog
from fokushub.logging_config import get_logger

logger = get_logger(__name__)


class NoticeRenderError(Exception):
    """Raised when a notice is unknown or its template fails to render."""
    pass


class NoticeError(Exception):
    """Base for errors that carry a notice for the user.

    Attributes:
        message: Error message
        notice: Notice to show, if one applies
        status: HTTP status the error maps to
    """

    def __init__(self, message: str, notice: Optional[Notice] = None, status: int = 400):
        super().__init__(message)
        self.message = message
        self.notice = notice
        self.status = int(status)


class NoticeRenderer:
    """Renders catalog notices with context variables."""

    def __init__(self, catalog: Optional[NoticeCatalog] = None):
        """Initialize Jinja2 environment.

        Args:
            catalog: Notice catalog (the configured catalog by default)
        """
        self._catalog = catalog
        self.env = Environment(
            loader=BaseLoader(),
            autoescape=False,  # Notices are plain text, not markup
            undefined=StrictUndefined,
        )

    @property
    def catalog(self) -> NoticeCatalog:
        if self._catalog is None:
            self._catalog = load_notice_catalog()
        return self._catalog

    def render_text(self, template_text: str, context: dict) -> str:
        """Render one template string.

        Raises:
            NoticeRenderError: If the template is invalid or variables are missing
        """
        try:
            return self.env.from_string(template_text).render(context).strip()
        except TemplateError as e:
            logger.error(f"Notice rendering error: {e}")
            raise NoticeRenderError(f"Failed to render notice: {e}")

    def render(self, key: str, variant: Optional[NoticeVariant] = None, **context: Any) -> Notice:
        """Render a catalog notice.

        Args:
            key: Notice key in the catalog
            variant: Overrides the catalog variant when given
            **context: Template variables

        Returns:
            Rendered Notice

        Example:
            >>> renderer = NoticeRenderer()
            >>> renderer.render("matches_found", count=12).description
            'Found 12 optimal participants for your campaign.'
        """
        template = self.catalog.notices.get(key)
        if template is None:
            raise NoticeRenderError(f"Unknown notice: {key}")

        return Notice(
            key=key,
            title=self.render_text(template.title, context),
            description=self.render_text(template.description, context),
            variant=variant or template.variant,
        )


# Global singleton instance
_renderer_instance: Optional[NoticeRenderer] = None


def get_notice_renderer() -> NoticeRenderer:
    """Get global NoticeRenderer instance.

    Returns:
        Global NoticeRenderer instance
    """
    global _renderer_instance
    if _renderer_instance is None:
        _renderer_instance = NoticeRenderer()
    return _renderer_instance
