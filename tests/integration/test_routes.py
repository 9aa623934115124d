"""Integration tests for the HTTP endpoints.

The platform API is replaced by the fake from conftest and the draft store
runs on the in-memory test database.
"""

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from fokushub.config import get_settings
from fokushub.main import app
from fokushub.models.database import get_db
from fokushub.routes import dependencies
from fokushub.routes.dependencies import get_api_client, get_bearer_token, participant_cache, reset_caches
from fokushub.services.api_client import ApiConnectionError, ApiError
from fokushub.services.draft_store import DraftStore
from tests.conftest import Sequence

PNG = b"\x89PNG" + b"\x00" * 2048
CURRENT_USER = ("GET", "/api/auth/me")


@pytest.fixture
def client(db_session, fake_api):
    """TestClient with the platform and database dependencies overridden."""
    def override_get_db():
        yield db_session

    def override_get_api_client(token=Depends(get_bearer_token)):
        fake_api.token = token
        return fake_api

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_api_client] = override_get_api_client
    fake_api.routes[CURRENT_USER] = {"id": "u1", "email": "ada@example.test"}
    reset_caches()

    yield TestClient(app)

    app.dependency_overrides.clear()
    reset_caches()


class TestServiceEndpoints:
    """Tests for the root and liveness endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "operational"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["catalogs"] == "loaded"

    def test_request_id_is_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self, client):
        assert client.get("/").headers["X-Request-ID"]


class TestAuthorization:
    """Tests for bearer token forwarding."""

    def test_bearer_token_is_forwarded(self, client, fake_api):
        client.get("/onboarding/u1", headers={"Authorization": "Bearer abc123"})
        assert fake_api.token == "abc123"

    def test_missing_header_uses_stored_token(self, client, fake_api):
        client.get("/onboarding/u1")
        assert fake_api.token is None

    def test_malformed_header_is_rejected(self, client):
        response = client.get("/onboarding/u1", headers={"Authorization": "Basic dXNlcg=="})
        assert response.status_code == 401

    @pytest.mark.parametrize("path", ["/onboarding/u2", "/verification/u2", "/verification/u2/status"])
    def test_other_participant_is_forbidden(self, client, fake_api, path):
        response = client.get(path, headers={"Authorization": "Bearer abc123"})

        assert response.status_code == 403
        assert fake_api.count("GET", "/api/questionnaire/categories") == 0
        assert fake_api.count("GET", "/api/verification/status") == 0

    def test_other_participant_cannot_answer(self, client, fake_api, db_session):
        response = client.post("/onboarding/u2/answer", json={"response": "Mallory"})

        assert response.status_code == 403
        assert DraftStore(db_session).latest_onboarding("u2") is None

    def test_signed_out_caller_is_rejected(self, client, fake_api):
        fake_api.routes[CURRENT_USER] = None

        assert client.get("/verification/u1").status_code == 401

    def test_expired_token_is_rejected(self, client, fake_api):
        fake_api.routes[CURRENT_USER] = ApiError(401, "Unauthorized")

        assert client.get("/onboarding/u1").status_code == 401


class TestParticipantCaches:
    """Tests for the per-participant query caches."""

    @pytest.fixture(autouse=True)
    def fresh_caches(self, monkeypatch):
        reset_caches()
        monkeypatch.setattr(get_settings(), "participant_cache_limit", 2)
        yield
        reset_caches()

    def test_cache_is_reused_for_participant(self):
        assert participant_cache("a") is participant_cache("a")

    def test_least_recently_used_cache_is_dropped(self):
        first = participant_cache("a")
        participant_cache("b")
        participant_cache("a")
        participant_cache("c")

        assert list(dependencies._participant_caches) == ["a", "c"]
        assert participant_cache("a") is first


class TestOnboardingEndpoints:
    """Tests for the questionnaire endpoints."""

    def test_initial_state(self, client):
        state = client.get("/onboarding/u1").json()

        assert state["question"]["id"] == 11
        assert state["label"] == "About You (1 of 2)"
        assert state["phase"] == "in_progress"

    def test_blocked_next_returns_errors(self, client):
        body = client.post("/onboarding/u1/next").json()

        assert body["outcome"] == "blocked"
        assert body["state"]["validationErrors"] == {"11": "This field is required"}

    def test_full_flow(self, client, fake_api):
        client.post("/onboarding/u1/answer", json={"response": "Ada"})
        client.post("/onboarding/u1/next")
        client.post("/onboarding/u1/answer", json={"response": "1990-04-02"})
        client.post("/onboarding/u1/next")
        toggled = client.post("/onboarding/u1/toggle", json={"option": "Education", "checked": True}).json()
        assert toggled["response"] == ["Education"]
        client.post("/onboarding/u1/next")
        client.post("/onboarding/u1/answer", json={"response": 4})

        body = client.post("/onboarding/u1/next").json()

        assert body["outcome"] == "completed"
        assert body["notice"]["title"] == "Success"
        assert body["report"]["saved"] == [11, 12, 21, 22]
        assert body["state"]["phase"] == "completed"
        assert fake_api.count("PUT", "/api/questionnaire/complete") == 1

    def test_progress_survives_between_requests(self, client):
        client.post("/onboarding/u1/answer", json={"response": "Ada"})
        client.post("/onboarding/u1/next")

        state = client.get("/onboarding/u1").json()

        assert state["questionIndex"] == 1

    def test_drafts_are_per_participant(self, client, fake_api):
        client.post("/onboarding/u1/answer", json={"response": "Ada"})
        client.post("/onboarding/u1/next")
        fake_api.routes[CURRENT_USER] = {"id": "u2"}

        assert client.get("/onboarding/u2").json()["questionIndex"] == 0

    def test_retry_without_failure_conflicts(self, client):
        response = client.post("/onboarding/u1/retry")

        assert response.status_code == 409
        assert response.json()["message"] == "There is no failed submission to retry"

    def test_platform_error_is_relayed(self, client, fake_api):
        fake_api.routes[("GET", "/api/questionnaire/categories")] = ApiError(
            401, "Unauthorized", {"message": "Unauthorized", "code": "TOKEN_EXPIRED"}
        )

        response = client.get("/onboarding/u1")

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized", "code": "TOKEN_EXPIRED"}

    def test_unreachable_platform(self, client, fake_api):
        fake_api.routes[("GET", "/api/questionnaire/categories")] = ApiConnectionError(
            "Platform did not answer in time", status=504
        )

        response = client.get("/onboarding/u1")

        assert response.status_code == 504
        assert response.json() == {"message": "Platform did not answer in time"}


class TestVerificationEndpoints:
    """Tests for the verification endpoints."""

    @pytest.fixture(autouse=True)
    def verification_routes(self, fake_api):
        fake_api.routes.update({
            ("POST", "/api/verification/upload"): {"wasabiUrl": "https://files.test/doc.png"},
            ("POST", "/api/verification/submit"): {"status": "pending"},
            ("GET", "/api/verification/status"): {"status": "pending"},
        })

    def upload(self, client, kind, name="doc.png", content=PNG, content_type="image/png"):
        return client.post(
            f"/verification/u1/upload/{kind}",
            files={"file": (name, content, content_type)},
        )

    def test_update_details(self, client):
        state = client.post("/verification/u1/phone", json={"phoneNumber": "+1 555 0100"}).json()
        assert state["phoneNumber"] == "+1 555 0100"

    def test_upload(self, client, fake_api):
        response = self.upload(client, "id_document")

        assert response.status_code == 200
        body = response.json()
        assert body["notice"]["title"] == "ID Document Uploaded"
        assert body["state"]["idDocumentUrl"] == "https://files.test/doc.png"
        assert fake_api.bodies("POST", "/api/verification/upload")[0]["fields"] == {"type": "identity"}

    def test_non_image_upload_rejected(self, client):
        response = self.upload(client, "selfie", name="notes.txt", content=b"hi", content_type="text/plain")

        assert response.status_code == 400
        assert response.json()["notice"]["title"] == "Invalid File Type"

    def test_unknown_upload_kind(self, client):
        assert self.upload(client, "passport").status_code == 422

    def test_submit_flow(self, client, fake_api):
        self.upload(client, "id_document")
        self.upload(client, "selfie")
        client.post("/verification/u1/next")
        client.post("/verification/u1/next")

        body = client.post("/verification/u1/next").json()

        assert body["notice"]["title"] == "Verification Submitted"
        assert body["state"]["submitted"] is True
        assert fake_api.count("POST", "/api/verification/submit") == 1

    def test_submit_without_documents_conflicts(self, client):
        response = client.post("/verification/u1/submit")
        assert response.status_code == 409

    def test_status(self, client):
        assert client.get("/verification/u1/status").json() == {"status": "pending"}

    def test_status_reflects_latest_review(self, client, fake_api):
        fake_api.routes[("GET", "/api/verification/status")] = Sequence(
            {"status": "pending"}, {"status": "rejected", "reason": "Blurry selfie"}
        )

        assert client.get("/verification/u1/status").json() == {"status": "pending"}
        assert client.get("/verification/u1/status").json()["status"] == "rejected"


class TestAdminEndpoints:
    """Tests for the admin endpoints."""

    @pytest.fixture(autouse=True)
    def admin_routes(self, fake_api):
        fake_api.routes.update({
            ("GET", "/api/admin/settings"): [
                {"key": "max_warnings_before_ban", "value": "3", "category": "moderation"},
                {"key": "welcome_message", "value": "Hello"},
            ],
            ("PUT", "/api/admin/settings/max_warnings_before_ban"): {"success": True},
            ("GET", "/api/admin/fees/global"): {},
            ("GET", "/api/health/comprehensive"): {
                "checks": [{"name": "Database Connection", "status": "warning", "message": "Slow"}],
            },
            ("POST", "/api/ai-matching/find-matches"): {"matches": [{"participantId": 1}], "analytics": {}},
        })

    def test_settings_grouped_with_definitions(self, client):
        body = client.get("/admin/settings").json()

        assert set(body) == {"general", "moderation"}
        assert body["moderation"][0]["definition"]["max"] == 10
        assert body["general"][0]["definition"]["type"] == "text"

    def test_update_setting(self, client, fake_api):
        response = client.put("/admin/settings/max_warnings_before_ban", json={"value": "4"})

        assert response.status_code == 200
        assert response.json()["value"] == 4
        assert fake_api.bodies("PUT", "/api/admin/settings/max_warnings_before_ban")[0]["value"] == 4

    def test_out_of_bounds_setting(self, client, fake_api):
        response = client.put("/admin/settings/max_warnings_before_ban", json={"value": 11})

        assert response.status_code == 422
        assert response.json()["message"] == "Max Warnings Before Ban must be between 1 and 10"
        assert fake_api.count("PUT", "/api/admin/settings/max_warnings_before_ban") == 0

    def test_fee_breakdown_with_defaults(self, client):
        body = client.get("/admin/fees/breakdown", params={"gross": 200}).json()

        assert body["processing_fee"] == pytest.approx(7.0)
        assert body["net_amount"] == pytest.approx(193.0)

    def test_health_run(self, client):
        body = client.post("/admin/health/run").json()

        assert body["hasIssues"] is True
        assert body["summary"]["overallStatus"] == "warning"
        assert body["notice"]["description"] == "0 healthy, 1 warnings, 0 errors"

    def test_find_matches(self, client):
        response = client.post(
            "/admin/ai-matching/matches",
            json={"campaignId": 3, "criteria": {"interests": ["fitness"]}},
        )

        assert response.status_code == 200
        assert response.json()["notice"]["description"] == "Found 1 optimal participants for your campaign."

    def test_find_matches_requires_criteria(self, client):
        response = client.post("/admin/ai-matching/matches", json={"campaignId": 3, "criteria": {}})
        assert response.status_code == 422
