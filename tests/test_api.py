"""Unit tests for the API endpoints."""

from unittest.mock import patch

from app.utils.errors import Error
from app.utils.errors import ErrorCode

from .conftest import USER_ID
from .conftest import FakeLLMClient

INGREDIENTS = "Whole grain oats, sugar, salt, natural flavor"


def _analyze(client, headers, **body):
    return client.post("/api/v1/analysis", json=body or {"text": INGREDIENTS}, headers=headers)


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health_endpoint(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "uptime_seconds" in data
        assert "version" in data

    def test_liveness_endpoint(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness_endpoint_healthy(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert {s["service"] for s in data["services"]} == {"storage", "llm", "ocr"}

    def test_readiness_endpoint_unhealthy(self, client, store):
        with patch.object(store, "ping", return_value=False):
            response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestAnalysisEndpoints:
    def test_analyze_text(self, client, user_headers):
        response = _analyze(client, user_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["extractedText"] == INGREDIENTS
        assert data["insights"]["verdict"] == "moderate"
        assert data["insights"]["productType"] == "breakfast"
        assert data["insights"]["riskLevel"] == "medium"
        assert data["inferredIntent"]["primaryGoal"] == "check-sugar"
        assert data["usedFallback"] is False
        assert set(data["processingTime"]) == {"ocr", "ai", "total"}

    def test_analyze_image(self, client, user_headers, ocr_client):
        response = _analyze(client, user_headers, imageData="data:image/png;base64,aGVsbG8=")

        assert response.status_code == 200
        assert response.json()["data"]["ocrConfidence"] == 91.5
        assert ocr_client.calls == 1

    def test_missing_input(self, client, user_headers):
        response = client.post("/api/v1/analysis", json={}, headers=user_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "invalid_input"
        assert "imageData" in body["message"]

    def test_insufficient_text(self, client, user_headers, llm_client):
        response = _analyze(client, user_headers, text="!!a!!")

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "insufficient_text"
        assert "well-lit" in body["message"]
        assert llm_client.calls == []

    def test_ai_unreachable(self, client, user_headers, llm_client):
        llm_client.replies["analysis"] = ConnectionError("no route to host")

        response = _analyze(client, user_headers)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "llm_error"

    def test_missing_user_header(self, client):
        response = client.post("/api/v1/analysis", json={"text": INGREDIENTS})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    def test_history_get_and_feedback(self, client, user_headers):
        analysis_id = _analyze(client, user_headers).json()["data"]["analysisId"]

        history = client.get("/api/v1/analysis/history?page=1&limit=5", headers=user_headers)
        assert history.status_code == 200
        assert history.json()["data"]["pagination"]["total"] == 1

        fetched = client.get(f"/api/v1/analysis/{analysis_id}", headers=user_headers)
        assert fetched.status_code == 200
        assert fetched.json()["data"]["id"] == analysis_id

        feedback = client.post(
            f"/api/v1/analysis/{analysis_id}/feedback",
            json={"helpful": True, "rating": 5},
            headers=user_headers,
        )
        assert feedback.status_code == 200
        assert feedback.json()["data"]["feedback"]["rating"] == 5

    def test_other_user_cannot_read(self, client, user_headers):
        analysis_id = _analyze(client, user_headers).json()["data"]["analysisId"]

        response = client.get(f"/api/v1/analysis/{analysis_id}", headers={"X-User-Id": "intruder"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    def test_feedback_rating_out_of_range(self, client, user_headers):
        analysis_id = _analyze(client, user_headers).json()["data"]["analysisId"]

        response = client.post(
            f"/api/v1/analysis/{analysis_id}/feedback",
            json={"helpful": True, "rating": 9},
            headers=user_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_input"


class TestConversationEndpoints:
    def test_conversation_flow(self, client, user_headers):
        analysis_id = _analyze(client, user_headers).json()["data"]["analysisId"]

        started = client.post(
            "/api/v1/conversations", json={"analysisId": analysis_id}, headers=user_headers
        )
        assert started.status_code == 201
        conversation_id = started.json()["data"]["conversationId"]
        assert started.json()["data"]["context"]["keyIngredients"] == ["Oats", "Sugar"]

        reply = client.post(
            f"/api/v1/conversations/{conversation_id}/messages",
            json={"message": "What can I eat instead?"},
            headers=user_headers,
        )
        assert reply.status_code == 200
        data = reply.json()["data"]
        assert data["reply"] == "Happy to help with that."
        assert data["reasoning"]["steps"]
        assert "processingTime" in data

        fetched = client.get(f"/api/v1/conversations/{conversation_id}", headers=user_headers)
        assert fetched.status_code == 200
        assert len(fetched.json()["data"]["messages"]) == 3
        assert fetched.json()["data"]["context"]["userIntent"] == "seeking-alternatives"

        listed = client.get("/api/v1/conversations", headers=user_headers)
        assert listed.json()["data"]["pagination"]["total"] == 1

    def test_start_for_unknown_analysis(self, client, user_headers):
        response = client.post(
            "/api/v1/conversations", json={"analysisId": "missing"}, headers=user_headers
        )
        assert response.status_code == 404

    def test_empty_message(self, client, user_headers):
        response = client.post(
            "/api/v1/conversations/any/messages", json={"message": "   "}, headers=user_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_input"


class TestUserEndpoints:
    def test_update_preferences_personalizes_analysis(self, client, user_headers, llm_client):
        response = client.put(
            "/api/v1/users/me/preferences",
            json={"dietaryRestrictions": ["vegetarian"], "allergens": ["gluten"]},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["preferences"]["allergens"] == ["gluten"]

        _analyze(client, user_headers)

        prompt = llm_client.calls_of("analysis")[-1][1]
        assert "- Dietary Restrictions: vegetarian" in prompt
        assert "- Known Allergens: gluten" in prompt


class TestErrorHandling:
    def test_api_error_envelope(self, client, user_headers):
        with patch(
            "app.services.analysis_service.AnalysisService.history",
            side_effect=Error(ErrorCode.STORAGE_ERROR),
        ):
            response = client.get("/api/v1/analysis/history", headers=user_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "storage_error"
        assert body["error"]["numeric_code"] == 1010

    def test_request_too_large(self, store, ocr_client):
        from fastapi.testclient import TestClient

        from app.app import create_app
        from app.config import settings

        with patch.object(settings, "max_image_bytes", 100):
            app = create_app(store=store, llm_client=FakeLLMClient(), ocr_client=ocr_client)
        with TestClient(app) as small_client:
            response = small_client.post(
                "/api/v1/analysis",
                json={"text": "x" * 500},
                headers={"X-User-Id": USER_ID},
            )

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "request_too_large"
