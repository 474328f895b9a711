"""FastAPI route definitions for the Airtable agent API."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Request

from airtable_agent.api.schemas import (
    ChatCompletionChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    HealthResponse,
    OllamaChatRequest,
    OllamaChatResponse,
    to_core_messages,
)
from airtable_agent.config import SERVED_MODEL_NAME
from airtable_agent.dispatcher import NoAgentMatchedError, NoUserMessageError

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_dispatcher(request: Request):
    """Retrieve the dispatcher built during the FastAPI lifespan."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=503,
            detail="The agent is still starting up. Please try again in a moment.",
        )
    return dispatcher


async def _dispatch(http_request: Request, messages: list[ChatMessage]) -> str:
    """Route *messages* and map dispatch failures to HTTP errors.

    ``Dispatcher.route`` blocks on Airtable and the LLM, so it runs in the
    default thread pool to keep the event loop free for other requests.
    """
    dispatcher = _get_dispatcher(http_request)
    request_id = getattr(http_request.state, "request_id", "?")

    try:
        return await asyncio.to_thread(dispatcher.route, to_core_messages(messages))
    except NoUserMessageError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except NoAgentMatchedError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "No agent could handle this request", "message": e.message},
        ) from e
    except Exception as e:
        # Full traceback stays in the server log; the client gets a generic message.
        logger.exception("[%s] Error processing chat request", request_id)
        raise HTTPException(
            status_code=500,
            detail="An internal error occurred. Please try again.",
        ) from e


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness check."""
    return HealthResponse(timestamp=datetime.now(UTC).isoformat())


@router.post("/v1/chat/completions", response_model=ChatCompletionResponse)
async def chat_completions(request: ChatCompletionRequest, http_request: Request):
    """OpenAI-compatible chat endpoint."""
    reply = await _dispatch(http_request, request.messages)
    now = time.time()
    return ChatCompletionResponse(
        id=f"chatcmpl-{int(now * 1000)}",
        created=int(now),
        model=SERVED_MODEL_NAME,
        choices=[
            ChatCompletionChoice(message=ChatMessage(role="assistant", content=reply)),
        ],
    )


@router.post("/api/chat", response_model=OllamaChatResponse)
async def ollama_chat(request: OllamaChatRequest, http_request: Request):
    """Ollama-compatible chat endpoint (non-streaming)."""
    reply = await _dispatch(http_request, request.messages)
    return OllamaChatResponse(
        model=request.model or SERVED_MODEL_NAME,
        created_at=datetime.now(UTC).isoformat(),
        message=ChatMessage(role="assistant", content=reply),
    )
