"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests,
including an in-memory draft store and a fake platform API.
"""

import copy
import os
import tempfile
from datetime import date
from typing import Any, Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables for tests BEFORE importing app modules
os.environ.setdefault("API_BASE_URL", "https://platform.test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("TOKEN_FILE", os.path.join(tempfile.gettempdir(), "fokushub-test-token.json"))
os.environ.setdefault("ENVIRONMENT", "development")

from fokushub.models.database import Base
from fokushub.models import answer, draft, verification_draft  # noqa: F401
from fokushub.services.api_client import ApiError
from fokushub.services.draft_store import DraftStore
from fokushub.services.notices import NoticeRenderer

TODAY = date(2026, 10, 18)


class Sequence:
    """Successive results for repeated calls to one endpoint; the last repeats."""

    def __init__(self, *results: Any):
        self.results = list(results)

    def next(self) -> Any:
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class FakePlatformApi:
    """Stand-in for ApiClient answering from a (method, path) table.

    A table value may be plain data, an exception to raise, a callable
    taking the request body, or a Sequence of those.
    """

    def __init__(self, routes: dict | None = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, Any]] = []

    def _handle(self, method: str, path: str, body: Any = None) -> Any:
        self.calls.append((method, path, body))
        if (method, path) not in self.routes:
            raise ApiError(404, f"No fake route for {method} {path}", {"message": "Not found"})
        result = self.routes[(method, path)]
        if isinstance(result, Sequence):
            result = result.next()
        if callable(result) and not isinstance(result, type):
            result = result(body)
        if isinstance(result, Exception):
            raise result
        return copy.deepcopy(result)

    def get(self, path, on_401=None):
        return self._handle("GET", path)

    def post(self, path, body=None):
        return self._handle("POST", path, body)

    def put(self, path, body=None):
        return self._handle("PUT", path, body)

    def delete(self, path):
        return self._handle("DELETE", path)

    def query(self, key, on_401=None):
        return self.get("/".join(str(part) for part in key))

    def upload(self, path, file_name, content, content_type, fields=None):
        return self._handle(
            "POST",
            path,
            {"file_name": file_name, "size": len(content), "content_type": content_type, "fields": fields},
        )

    def submit_form(self, path, fields):
        return self._handle("POST", path, dict(fields))

    def bodies(self, method: str, path: str) -> list:
        """Bodies of every recorded call to an endpoint."""
        return [body for m, p, body in self.calls if m == method and p == path]

    def count(self, method: str, path: str) -> int:
        return len(self.bodies(method, path))


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        StaticPool keeps a single connection so route tests served from
        worker threads see the same in-memory database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,  # Set to True for SQL debugging
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(engine)

    yield engine

    # Drop all tables after test
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session.

    Args:
        db_engine: Test database engine fixture

    Yields:
        Session: SQLAlchemy session for testing
    """
    TestSessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    session = TestSessionLocal()

    yield session

    # Rollback any uncommitted changes
    session.rollback()
    session.close()


@pytest.fixture
def draft_store(db_session) -> DraftStore:
    return DraftStore(db_session)


@pytest.fixture
def renderer() -> NoticeRenderer:
    return NoticeRenderer()


@pytest.fixture
def categories() -> list[dict]:
    """Platform categories: one disabled and one without questions."""
    return [
        {"id": 1, "name": "About You", "description": "Basics", "isEnabled": True, "sortOrder": 1},
        {"id": 3, "name": "Archived", "isEnabled": False, "sortOrder": 0},
        {"id": 4, "name": "Household", "isEnabled": True, "sortOrder": 2},
        {"id": 2, "name": "Interests", "isEnabled": True, "sortOrder": 3},
    ]


@pytest.fixture
def questions() -> dict[int, list[dict]]:
    """Platform questions keyed by category ID."""
    return {
        1: [
            {"id": 12, "categoryId": 1, "question": "What is your date of birth?",
             "questionType": "date", "isRequired": True, "isEnabled": True, "sortOrder": 2},
            {"id": 11, "categoryId": 1, "question": "What is your first name?",
             "questionType": "text", "isRequired": True, "isEnabled": True, "sortOrder": 1},
            {"id": 13, "categoryId": 1, "question": "Retired question",
             "questionType": "text", "isRequired": True, "isEnabled": False, "sortOrder": 3},
        ],
        4: [],
        2: [
            {"id": 21, "categoryId": 2, "question": "Which social causes do you support?",
             "questionType": "multiselect", "options": ["Education", "Environment", "None", "Other"],
             "isRequired": False, "isEnabled": True, "sortOrder": 1},
            {"id": 22, "categoryId": 2, "question": "How many hours a week do you shop online?",
             "questionType": "number", "isRequired": True, "isEnabled": True, "sortOrder": 2},
        ],
    }


@pytest.fixture
def questionnaire_routes(categories, questions) -> dict:
    """Fake platform routes serving the sample questionnaire."""
    routes = {("GET", "/api/questionnaire/categories"): categories}
    for category_id, items in questions.items():
        routes[("GET", f"/api/questionnaire/questions/{category_id}")] = items
    routes[("POST", "/api/questionnaire/responses")] = {"success": True}
    routes[("PUT", "/api/questionnaire/complete")] = {"success": True}
    return routes


@pytest.fixture
def fake_api(questionnaire_routes) -> FakePlatformApi:
    return FakePlatformApi(questionnaire_routes)
