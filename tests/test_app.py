"""HTTP 서버 테스트 (Starlette TestClient)"""

import json
from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from intent_router.core.errors import ModelInvocationError
from intent_router.server.app import create_app
from intent_router.services.orchestration import Router
from intent_router.settings import Settings


@pytest.fixture
def settings():
    return Settings(_env_file=None, llm_provider="dummy", agent_provider="none")


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


def _sse_payloads(body: str):
    return [json.loads(line[len("data: "):]) for line in body.splitlines() if line.startswith("data: ")]


class TestHealth:
    """상태 확인 라우트 테스트"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_livez_and_readyz(self, client):
        assert client.get("/livez").text == "OK"
        assert client.get("/readyz").text == "READY"


class TestModels:
    """GET /api/models 테스트"""

    @pytest.fixture
    def registry(self):
        registry = Mock()
        registry.list_available_models.return_value = {
            "region": "us-east-1",
            "count": 1,
            "models": [{"modelId": "mistral.mistral-large-2407", "providerName": "Mistral AI"}],
        }
        registry.find_model.side_effect = lambda model_id: {
            "found": model_id == "mistral.mistral-large-2407",
            "model": None,
            "region": "us-east-1",
        }
        return registry

    def test_list_models(self, settings, registry):
        client = TestClient(create_app(settings, model_registry=registry))

        response = client.get("/api/models")

        assert response.status_code == 200
        assert response.json()["count"] == 1

    def test_find_model_with_colon_in_id(self, settings, registry):
        client = TestClient(create_app(settings, model_registry=registry))

        assert client.get("/api/models/mistral.mistral-large-2407").status_code == 200
        assert client.get("/api/models/anthropic.claude-v2:1").status_code == 404
        registry.find_model.assert_called_with("anthropic.claude-v2:1")

    def test_registry_error_is_500(self, settings, registry):
        registry.list_available_models.side_effect = ModelInvocationError("denied", code="AccessDeniedException")
        client = TestClient(create_app(settings, model_registry=registry))

        response = client.get("/api/models")

        assert response.status_code == 500
        assert response.json() == {"error": "AccessDeniedException: denied"}


class TestChat:
    """POST /api/chat 테스트"""

    def test_missing_prompt(self, client):
        response = client.post("/api/chat", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing prompt"}

    def test_invalid_body(self, client):
        response = client.post("/api/chat", content=b"not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400

    def test_chat_with_dummy_services(self, client):
        response = client.post("/api/chat", json={"prompt": "My python code has a bug"})

        assert response.status_code == 200
        data = response.json()
        assert data["intent"] == "code"
        assert data["agentName"] == "Code Agent"
        assert "My python code has a bug" in data["answer"]

    def test_provider_error_is_500(self, settings, routing_config, make_llm_service):
        llm = make_llm_service(label="general")
        llm.generate.side_effect = [
            Mock(content='{"label": "general"}'),
            ModelInvocationError("model down", code="ServiceUnavailable"),
        ]
        client = TestClient(create_app(settings, router=Router(routing_config, llm)))

        response = client.post("/api/chat", json={"prompt": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "ServiceUnavailable: model down"}


class TestStream:
    """GET /api/stream 테스트"""

    def test_missing_query(self, client):
        assert client.get("/api/stream").status_code == 400

    def test_stream_frames(self, client):
        response = client.get("/api/stream", params={"q": "Tell me about cats"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.text.startswith("retry: 5000\n\n")
        payloads = _sse_payloads(response.text)
        assert payloads[0] == {"intent": "general", "agentName": "General Agent"}
        assert payloads[-1] == {"done": True}
        answer = "".join(p["delta"] for p in payloads if "delta" in p)
        assert "Tell me about cats" in answer

    def test_stream_error_frame(self, settings, routing_config, make_llm_service):
        llm = make_llm_service(label="general")
        llm.stream_generate = Mock(side_effect=ModelInvocationError("no stream", code="ThrottlingException"))
        client = TestClient(create_app(settings, router=Router(routing_config, llm)))

        response = client.get("/api/stream", params={"q": "hi"})

        payloads = _sse_payloads(response.text)
        assert payloads[-1] == {"error": "ThrottlingException: no stream"}
        assert {"done": True} not in payloads
