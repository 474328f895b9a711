"""Tests for the completion gateway."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from airtable_agent.models import Intent
from airtable_agent.services.llm_client import (
    CompletionError,
    CompletionGateway,
    build_chat_model,
    verify_lm_studio,
)

# ── Helpers ──────────────────────────────────────────────────────────


def _make_mock_llm(content) -> MagicMock:
    """Create a mock chat model that returns a fixed AIMessage."""
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content=content)
    return llm


# ── TestComplete ─────────────────────────────────────────────────────


class TestComplete:
    def test_sends_only_user_message_without_system_prompt(self):
        llm = _make_mock_llm("  hello  ")
        result = CompletionGateway(llm).complete("hi")

        assert result == "hello"
        messages = llm.invoke.call_args[0][0]
        assert len(messages) == 1
        assert isinstance(messages[0], HumanMessage)
        assert messages[0].content == "hi"

    def test_system_prompt_comes_first(self):
        llm = _make_mock_llm("ok")
        CompletionGateway(llm).complete("hi", "be terse")

        messages = llm.invoke.call_args[0][0]
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == "be terse"
        assert isinstance(messages[1], HumanMessage)

    def test_flattens_content_blocks(self):
        llm = _make_mock_llm([
            {"type": "text", "text": "Hello "},
            {"type": "image_url", "image_url": {"url": "http://x/y.png"}},
            "world",
        ])
        assert CompletionGateway(llm).complete("hi") == "Hello world"

    def test_wraps_model_errors(self):
        llm = MagicMock()
        llm.invoke.side_effect = RuntimeError("connection refused")

        with pytest.raises(CompletionError, match="connection refused"):
            CompletionGateway(llm).complete("hi")


# ── TestClassifyIntent ───────────────────────────────────────────────


class TestClassifyIntent:
    def test_parses_intent(self):
        llm = _make_mock_llm('{"action": "create", "confidence": 0.9}')
        intent = CompletionGateway(llm).classify_intent("Create a new task")
        assert intent == Intent("create", 0.9)

    def test_tolerates_prose_around_json(self):
        llm = _make_mock_llm('Sure: {"action": "query", "confidence": 0.95}.')
        assert CompletionGateway(llm).classify_intent("Find all").action == "query"

    def test_sends_classifier_system_prompt(self):
        llm = _make_mock_llm('{"action": "query", "confidence": 1}')
        CompletionGateway(llm).classify_intent("Find all contacts")

        messages = llm.invoke.call_args[0][0]
        assert isinstance(messages[0], SystemMessage)
        assert "classifier" in messages[0].content
        assert messages[1].content == "Find all contacts"

    def test_unparseable_is_unknown(self):
        llm = _make_mock_llm("I think they want to query.")
        assert CompletionGateway(llm).classify_intent("Find all") == Intent("unknown", 0.0)

    def test_unexpected_action_is_unknown(self):
        llm = _make_mock_llm('{"action": "archive", "confidence": 0.8}')
        assert CompletionGateway(llm).classify_intent("Archive it") == Intent()

    def test_confidence_is_clamped(self):
        llm = _make_mock_llm('{"action": "delete", "confidence": 7}')
        assert CompletionGateway(llm).classify_intent("Delete it").confidence == 1.0

    @pytest.mark.parametrize("raw", ["NaN", '"nan"', "Infinity", '"-inf"'])
    def test_non_finite_confidence_is_zero(self, raw):
        llm = _make_mock_llm('{"action": "query", "confidence": ' + raw + "}")
        intent = CompletionGateway(llm).classify_intent("Find all")
        assert intent.action == "query"
        assert intent.confidence == 0.0

    def test_llm_failure_is_unknown(self):
        llm = MagicMock()
        llm.invoke.side_effect = RuntimeError("down")
        assert CompletionGateway(llm).classify_intent("Find all") == Intent()


# ── TestBuildChatModel ───────────────────────────────────────────────


class TestBuildChatModel:
    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported LLM_PROVIDER"):
            build_chat_model("carrier-pigeon", model="x")

    def test_anthropic_requires_key(self):
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            build_chat_model("anthropic", model="claude-haiku-4-5")

    def test_lmstudio_points_at_base_url(self):
        model = build_chat_model(
            "lmstudio",
            model="openai/gpt-oss-20b",
            base_url="http://localhost:1234/v1",
            temperature=0.7,
            max_tokens=1000,
        )
        assert model.model_name == "openai/gpt-oss-20b"
        assert model.openai_api_base == "http://localhost:1234/v1"


# ── TestVerifyLmStudio ───────────────────────────────────────────────


class TestVerifyLmStudio:
    @patch("airtable_agent.services.llm_client.httpx.get")
    def test_success(self, mock_get):
        mock_get.return_value = MagicMock()
        verify_lm_studio("http://localhost:1234/v1")
        assert mock_get.call_args[0][0] == "http://localhost:1234/v1/models"

    @patch("airtable_agent.services.llm_client.httpx.get")
    def test_unreachable_raises(self, mock_get):
        mock_get.side_effect = httpx.ConnectError("refused")
        with pytest.raises(CompletionError, match="LM Studio"):
            verify_lm_studio("http://localhost:1234/v1")
