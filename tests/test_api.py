"""Test HTTP endpoints."""

from collections import deque
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import make_result
from agent_bridge.exceptions import CompletionError
from agent_bridge.routes import auth as auth_routes
from agent_bridge.settings import settings

EMAIL = "founder@example.com"


def _login(client: TestClient, email: str = EMAIL) -> str:
    sent = client.post("/api/auth/send-code", json={"email": email}).json()
    verified = client.post("/api/auth/verify-code", json={"email": email, "code": sent["code"]})
    assert verified.status_code == 200
    return verified.json()["session"]["token"]


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == settings.app_version
    assert data["agents"] == 10
    assert data["store"] == "memory"
    assert isinstance(data["completion_configured"], bool)
    assert isinstance(data["email_configured"], bool)
    assert "api_key" not in str(data).lower()


def test_detailed_health(client: TestClient):
    response = client.get("/api/health/detailed")
    assert response.status_code == 200
    assert response.json()["checks"]["store"]["status"] == "healthy"


def test_correlation_id_echoed(client: TestClient):
    correlation_id = "0f8fad5b-d9cb-469f-a165-70867728950e"
    response = client.get("/api/health", headers={"X-Correlation-ID": correlation_id})
    assert response.headers["X-Correlation-ID"] == correlation_id


def test_list_agents(client: TestClient):
    response = client.get("/api/agents")
    assert response.status_code == 200
    agents = response.json()
    assert len(agents) == 10
    assert agents[0]["id"] == "orchestrator"
    assert "system_prompt" not in agents[0]


class TestSendCode:
    """Tests for POST /api/auth/send-code."""

    def test_send_code(self, client: TestClient, notifier):
        response = client.post("/api/auth/send-code", json={"email": EMAIL})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["fallback"] is False
        assert data["display"] is True
        assert data["expires_in"] == 600
        assert data["email_id"] == "email_1"
        assert len(data["code"]) == 6
        assert notifier.sent[0][0] == EMAIL

    def test_code_hidden_when_reveal_disabled(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "reveal_code", False)
        data = client.post("/api/auth/send-code", json={"email": EMAIL}).json()
        assert "code" not in data
        assert data["display"] is False

    def test_fallback_always_reveals(self, client: TestClient, notifier, monkeypatch):
        monkeypatch.setattr(settings, "reveal_code", False)
        notifier.fail = True
        data = client.post("/api/auth/send-code", json={"email": EMAIL}).json()
        assert data["fallback"] is True
        assert data["display"] is True
        assert len(data["code"]) == 6
        assert "email_id" not in data

    def test_invalid_email(self, client: TestClient):
        response = client.post("/api/auth/send-code", json={"email": "nobody"})
        assert response.status_code == 400

    def test_legacy_path(self, client: TestClient):
        response = client.post("/api/send-code", json={"email": EMAIL})
        assert response.status_code == 200
        assert len(response.json()["code"]) == 6

    def test_rate_limited(self, client: TestClient):
        for _ in range(settings.auth_rate_limit_per_minute):
            assert client.post("/api/auth/send-code", json={"email": EMAIL}).status_code == 200
        response = client.post("/api/auth/send-code", json={"email": EMAIL})
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"

        other = client.post("/api/auth/send-code", json={"email": "other@example.com"})
        assert other.status_code == 200

    def test_stale_rate_limit_buckets_swept(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(auth_routes, "AUTH_RATE_LIMIT_SWEEP_THRESHOLD", 2)
        stale = datetime.utcnow() - timedelta(hours=2)
        for index in range(5):
            auth_routes._auth_rate_limit_store[f"10.0.0.{index}:old@example.com"] = deque([stale])

        assert client.post("/api/auth/send-code", json={"email": EMAIL}).status_code == 200

        assert len(auth_routes._auth_rate_limit_store) == 1
        assert next(iter(auth_routes._auth_rate_limit_store)).endswith(f":{EMAIL}")


class TestVerifyCode:
    """Tests for POST /api/auth/verify-code."""

    def test_no_code(self, client: TestClient):
        response = client.post("/api/auth/verify-code", json={"email": EMAIL, "code": "123456"})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["kind"] == "not_found"
        assert detail["error"]

    def test_mismatch(self, client: TestClient):
        code = client.post("/api/auth/send-code", json={"email": EMAIL}).json()["code"]
        wrong = "000000" if code != "000000" else "111111"

        response = client.post("/api/auth/verify-code", json={"email": EMAIL, "code": wrong})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["kind"] == "mismatch"
        assert detail["attempts_remaining"] == 2

    @pytest.mark.parametrize("submitted", ["é", "１２３４５６"])
    def test_non_ascii_code_is_mismatch(self, client: TestClient, submitted):
        client.post("/api/auth/send-code", json={"email": EMAIL})

        response = client.post("/api/auth/verify-code", json={"email": EMAIL, "code": submitted})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["kind"] == "mismatch"
        assert detail["attempts_remaining"] == 2

    def test_success(self, client: TestClient):
        code = client.post("/api/auth/send-code", json={"email": EMAIL}).json()["code"]

        response = client.post("/api/verify-code", json={"email": EMAIL, "code": code})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["session"]["email"] == EMAIL
        assert data["session"]["token"].startswith("tok_")
        assert data["session"]["created_at"].endswith("Z")


class TestSessions:
    """Tests for /api/sessions/{token}."""

    def test_lifecycle(self, client: TestClient):
        token = _login(client)

        response = client.get(f"/api/sessions/{token}")
        assert response.status_code == 200
        assert response.json()["session"]["email"] == EMAIL
        assert response.json()["history"] == []

        assert client.delete(f"/api/sessions/{token}").json() == {"success": True, "deleted": True}
        assert client.delete(f"/api/sessions/{token}").json() == {"success": True, "deleted": False}
        assert client.get(f"/api/sessions/{token}").status_code == 404


class TestChat:
    """Tests for POST /api/chat."""

    def test_stateless_chat(self, client: TestClient):
        response = client.post("/api/chat", json={"message": "Write a sql query"})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["tool"] == "data_analyst"
        assert data["agent"] == "Data Analyst"
        assert data["emoji"] == "📊"
        assert data["rawResponse"] == "Here is the plan."
        assert data["result"].startswith("📊 **Data Analyst Agent**")
        assert data["usage"]["total_tokens"] == 42

    def test_chat_with_session_records_history(self, client: TestClient):
        token = _login(client)

        response = client.post("/api/chat", json={"message": "Design a landing page", "sessionToken": token})
        assert response.status_code == 200

        history = client.get(f"/api/sessions/{token}").json()["history"]
        assert [turn["role"] for turn in history] == ["user", "assistant"]
        assert history[1]["agent"] == "product_design"

    def test_snake_case_session_token(self, client: TestClient, completion):
        token = _login(client)
        client.post("/api/chat", json={"message": "first", "session_token": token})
        client.post("/api/chat", json={"message": "second", "session_token": token})

        prompt = completion.complete.call_args.kwargs["user_prompt"]
        assert prompt.startswith("CONVERSATION HISTORY:\nUser: first\nAssistant: Here is the plan.")

    def test_blank_message(self, client: TestClient, completion):
        response = client.post("/api/chat", json={"message": "  "})
        assert response.status_code == 400
        completion.complete.assert_not_called()

    @pytest.mark.parametrize(
        "kind, status_code",
        [
            (CompletionError.RATE_LIMITED, 503),
            (CompletionError.AUTH_FAILED, 502),
            (CompletionError.UNAVAILABLE, 503),
            (CompletionError.MODEL_ERROR, 502),
        ],
    )
    def test_completion_failures(self, client: TestClient, completion, kind, status_code):
        completion.complete.side_effect = CompletionError(kind, "Upstream problem", retry_after=5)

        response = client.post("/api/chat", json={"message": "hello"})

        assert response.status_code == status_code
        assert response.json()["detail"]["kind"] == kind
        if kind == CompletionError.RATE_LIMITED:
            assert response.headers["Retry-After"] == "5"


class TestChain:
    """Tests for POST /api/chain."""

    def test_chain_halts(self, client: TestClient, completion):
        completion.complete.side_effect = [
            make_result("market notes"),
            CompletionError(CompletionError.MODEL_ERROR, "The configured model is not available."),
        ]

        response = client.post(
            "/api/chain",
            json={"steps": [{"task": "Research pricing"}, {"task": "Design it"}, {"task": "Ship it"}]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["completed"] == 1
        assert data["halted"] is True
        assert len(data["steps"]) == 2
        assert data["steps"][0]["output"] == "market notes"
        assert data["steps"][1]["kind"] == "model_error"
        assert "output" not in data["steps"][1]

    def test_chain_success(self, client: TestClient):
        response = client.post("/api/chain", json={"steps": [{"task": "one", "category": "qa_documentation"}]})
        data = response.json()
        assert data["success"] is True
        assert data["halted"] is False
        assert data["steps"][0]["category"] == "qa_documentation"

    def test_unknown_category(self, client: TestClient, completion):
        response = client.post("/api/chain", json={"steps": [{"task": "one", "category": "wizard"}]})
        assert response.status_code == 400
        completion.complete.assert_not_called()

    def test_empty_chain(self, client: TestClient):
        assert client.post("/api/chain", json={"steps": []}).status_code == 400
