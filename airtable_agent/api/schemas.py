"""Pydantic schemas for the FastAPI endpoints.

Two wire formats are accepted for the same chat core:

* OpenAI chat completions (``POST /v1/chat/completions``)
* Ollama chat (``POST /api/chat``)
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from airtable_agent.models import ChatMessage as CoreChatMessage


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str

    def to_core(self) -> CoreChatMessage:
        return CoreChatMessage(role=self.role, content=self.content)


def to_core_messages(messages: list[ChatMessage]) -> list[CoreChatMessage]:
    return [msg.to_core() for msg in messages]


# ── OpenAI format ────────────────────────────────────────────────────


class ChatCompletionRequest(BaseModel):
    """OpenAI-style request; only ``messages`` is used."""

    messages: list[ChatMessage] = Field(..., description="Conversation, oldest first")


class ChatCompletionChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str = "stop"


class ChatCompletionResponse(BaseModel):
    id: str
    object: str = "chat.completion"
    created: int
    model: str
    choices: list[ChatCompletionChoice]


# ── Ollama format ────────────────────────────────────────────────────


class OllamaOptions(BaseModel):
    """Sampling options.  Validated for wire compatibility but ignored: the
    completion gateway uses the configured ``LLM_TEMPERATURE`` and
    ``LLM_MAX_TOKENS`` for every request.
    """

    temperature: float | None = None
    num_predict: int | None = None


class OllamaChatRequest(BaseModel):
    """Ollama-style request.  ``stream`` is accepted but responses are never streamed."""

    model: str | None = None
    messages: list[ChatMessage]
    stream: bool | None = None
    options: OllamaOptions | None = None


class OllamaChatResponse(BaseModel):
    model: str
    created_at: str
    message: ChatMessage
    done: bool = True


# ── Misc ─────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    timestamp: str
