"""Pydantic schemas for the notice template catalog."""

from enum import Enum

from pydantic import BaseModel, Field


class NoticeVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class NoticeTemplate(BaseModel):
    """A user-facing notice with Jinja2 templated text.

    Attributes:
        title: Title template
        description: Description template
        variant: default for confirmations, destructive for failures
    """
    title: str = Field(..., min_length=1)
    description: str = ""
    variant: NoticeVariant = NoticeVariant.DEFAULT


class NoticeCatalog(BaseModel):
    """Root schema of the notices catalog YAML file."""
    version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")
    notices: dict[str, NoticeTemplate] = Field(default_factory=dict)


class Notice(BaseModel):
    """A rendered notice ready to show to the user."""
    key: str
    title: str
    description: str = ""
    variant: NoticeVariant = NoticeVariant.DEFAULT
