"""Draft store models and session management.

This package contains the SQLAlchemy ORM models that persist wizard drafts
locally, plus the database utilities.
"""

from fokushub.models.database import Base, engine, SessionLocal, get_db, init_db
from fokushub.models.draft import DraftStatus, OnboardingDraft
from fokushub.models.answer import DraftAnswer
from fokushub.models.verification_draft import VerificationDraft

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "DraftStatus",
    "OnboardingDraft",
    "DraftAnswer",
    "VerificationDraft",
]
