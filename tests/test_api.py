"""Tests for the FastAPI endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from airtable_agent.dispatcher import NoAgentMatchedError, NoUserMessageError
from airtable_agent.models import AgentDescriptor, ChatMessage
from airtable_agent.server import app


@pytest.fixture
def mock_dispatcher():
    """Create a mock dispatcher and attach it to app state (mirrors the lifespan)."""
    dispatcher = MagicMock()
    dispatcher.route.return_value = "You have 3 open tasks."

    app.state.dispatcher = dispatcher
    yield dispatcher
    app.state.dispatcher = None


@pytest.fixture
def client(mock_dispatcher):
    """FastAPI test client with the mock dispatcher wired up."""
    return TestClient(app)


def _body(*messages):
    return {"messages": [{"role": role, "content": content} for role, content in messages]}


class TestHealthEndpoint:
    def test_health_returns_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data


class TestChatCompletionsEndpoint:
    def test_returns_openai_envelope(self, client):
        response = client.post("/v1/chat/completions", json=_body(("user", "show my tasks")))
        assert response.status_code == 200
        data = response.json()
        assert data["id"].startswith("chatcmpl-")
        assert data["object"] == "chat.completion"
        assert isinstance(data["created"], int)
        assert data["model"] == "airtable-agent"
        assert data["choices"] == [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "You have 3 open tasks."},
                "finish_reason": "stop",
            }
        ]

    def test_passes_messages_to_dispatcher(self, client, mock_dispatcher):
        client.post(
            "/v1/chat/completions",
            json=_body(("system", "be nice"), ("user", "show my tasks")),
        )
        messages = mock_dispatcher.route.call_args[0][0]
        assert messages == [
            ChatMessage(role="system", content="be nice"),
            ChatMessage(role="user", content="show my tasks"),
        ]

    def test_no_user_message_is_400(self, client, mock_dispatcher):
        mock_dispatcher.route.side_effect = NoUserMessageError()
        response = client.post("/v1/chat/completions", json=_body(("system", "hi")))
        assert response.status_code == 400
        assert response.json()["detail"] == "No user message found in request"

    def test_no_agent_matched_is_400_with_message(self, client, mock_dispatcher):
        mock_dispatcher.route.side_effect = NoAgentMatchedError("Hello there")
        response = client.post("/v1/chat/completions", json=_body(("user", "Hello there")))
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "No agent could handle this request"
        assert detail["message"] == "Hello there"

    def test_validates_role(self, client):
        response = client.post("/v1/chat/completions", json=_body(("robot", "hi")))
        assert response.status_code == 422

    def test_validates_missing_messages(self, client):
        response = client.post("/v1/chat/completions", json={})
        assert response.status_code == 422

    def test_handles_dispatcher_error(self, client, mock_dispatcher):
        mock_dispatcher.route.side_effect = RuntimeError("LLM exploded")
        response = client.post("/v1/chat/completions", json=_body(("user", "show tasks")))
        assert response.status_code == 500
        # Internal error text must not leak to the client
        detail = response.json()["detail"]
        assert "LLM exploded" not in detail
        assert "internal error" in detail.lower()

    def test_response_includes_request_id_header(self, client):
        response = client.post("/v1/chat/completions", json=_body(("user", "show tasks")))
        assert "X-Request-ID" in response.headers

    def test_client_supplied_request_id_is_echoed(self, client):
        response = client.post(
            "/v1/chat/completions",
            json=_body(("user", "show tasks")),
            headers={"X-Request-ID": "my-trace-id-123"},
        )
        assert response.headers["X-Request-ID"] == "my-trace-id-123"


class TestOllamaChatEndpoint:
    def test_returns_ollama_envelope(self, client):
        response = client.post(
            "/api/chat",
            json={
                "model": "llama3",
                "messages": [{"role": "user", "content": "show my tasks"}],
                "stream": False,
                "options": {"temperature": 0.2, "num_predict": 100},
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["model"] == "llama3"
        assert data["message"] == {"role": "assistant", "content": "You have 3 open tasks."}
        assert data["done"] is True
        assert "created_at" in data

    def test_model_defaults_to_served_name(self, client):
        response = client.post("/api/chat", json=_body(("user", "show my tasks")))
        assert response.json()["model"] == "airtable-agent"

    def test_options_do_not_change_dispatch(self, client, mock_dispatcher):
        body = {"messages": [{"role": "user", "content": "show my tasks"}]}
        plain = client.post("/api/chat", json=body)
        tuned = client.post(
            "/api/chat",
            json={**body, "options": {"temperature": 0.0, "num_predict": 5}},
        )

        assert plain.json()["message"] == tuned.json()["message"]
        first, second = (call.args for call in mock_dispatcher.route.call_args_list)
        assert first == second == ([ChatMessage("user", "show my tasks")],)

    def test_invalid_options_are_422(self, client):
        response = client.post(
            "/api/chat",
            json={
                "messages": [{"role": "user", "content": "show my tasks"}],
                "options": {"num_predict": "lots"},
            },
        )
        assert response.status_code == 422

    def test_no_agent_matched_is_400(self, client, mock_dispatcher):
        mock_dispatcher.route.side_effect = NoAgentMatchedError("Hello")
        response = client.post("/api/chat", json=_body(("user", "Hello")))
        assert response.status_code == 400


class TestLifespan:
    @patch("airtable_agent.server.AirtableClient")
    @patch("airtable_agent.server.create_dispatcher")
    @patch("airtable_agent.server.create_completion_gateway")
    @patch("airtable_agent.server.verify_connection")
    def test_builds_dispatcher_on_startup(self, mock_verify, mock_gateway, mock_create, mock_airtable):
        dispatcher = MagicMock()
        dispatcher.descriptors = [AgentDescriptor("QueryAgent", "Searches")]
        mock_create.return_value = dispatcher

        with TestClient(app):
            assert app.state.dispatcher is dispatcher
            mock_verify.assert_called_once()
            mock_create.assert_called_once_with(
                gateway=mock_gateway.return_value, airtable=mock_airtable.return_value,
            )

    @patch("airtable_agent.server.AirtableClient")
    @patch("airtable_agent.server.create_dispatcher")
    @patch("airtable_agent.server.create_completion_gateway")
    @patch("airtable_agent.server.verify_connection")
    def test_closes_airtable_client_on_shutdown(self, mock_verify, mock_gateway, mock_create, mock_airtable):
        mock_create.return_value.descriptors = []

        with TestClient(app):
            mock_airtable.return_value.close.assert_not_called()

        mock_airtable.return_value.close.assert_called_once()
        assert app.state.dispatcher is None

    @patch("airtable_agent.server.create_dispatcher")
    @patch("airtable_agent.server.create_completion_gateway")
    @patch("airtable_agent.server.verify_connection")
    def test_returns_503_when_dispatcher_not_initialised(self, mock_verify, mock_gateway, mock_create):
        mock_create.return_value.descriptors = []
        with TestClient(app) as tc:
            app.state.dispatcher = None
            response = tc.post("/v1/chat/completions", json=_body(("user", "hi")))
            assert response.status_code == 503
            assert "starting up" in response.json()["detail"].lower()

    @patch("airtable_agent.server.verify_connection")
    def test_unreachable_llm_aborts_startup(self, mock_verify):
        from airtable_agent.services.llm_client import CompletionError

        mock_verify.side_effect = CompletionError("Failed to connect to LM Studio")
        with pytest.raises(CompletionError):
            with TestClient(app):
                pass


class TestRootEndpoint:
    def test_root_returns_service_info(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Airtable Agent"
        assert "/v1/chat/completions" in data["endpoints"]
