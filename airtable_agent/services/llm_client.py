"""Completion gateway around a LangChain chat model.

The agents only need one primitive, ``complete(prompt, system_prompt)``,
returning plain text.  Which model answers is a deployment choice:

  * ``lmstudio``:  LM Studio's OpenAI-compatible server (``ChatOpenAI``
                    pointed at ``http://HOST:PORT/v1``), the default
  * ``anthropic``: the Anthropic API (``ChatAnthropic``)

Nothing guarantees the returned text is valid JSON, even when the prompt
asks for it; see :mod:`airtable_agent.services.extraction`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from airtable_agent import config
from airtable_agent.models import INTENT_ACTIONS, Intent
from airtable_agent.prompts import INTENT_SYSTEM_PROMPT
from airtable_agent.services.extraction import extract_json_object
from airtable_agent.services.metrics import metrics

logger = logging.getLogger(__name__)

VERIFY_TIMEOUT_SECONDS = 5.0
REQUEST_TIMEOUT_SECONDS = 120.0


class CompletionError(Exception):
    """Raised when the language model endpoint cannot produce a completion."""


# ── Model construction ──────────────────────────────────────────────


def build_chat_model(
    provider: str,
    *,
    model: str,
    temperature: float = 0.7,
    max_tokens: int = 1000,
    base_url: str | None = None,
    api_key: str | None = None,
) -> BaseChatModel:
    """Build the LangChain chat model for *provider*.

    Raises:
        ValueError: unknown provider or missing credentials.
    """
    provider = provider.lower().strip()

    if provider == "lmstudio":
        from langchain_openai import ChatOpenAI

        logger.info("Building LM Studio chat model (model=%s, url=%s)", model, base_url)
        return ChatOpenAI(
            model=model,
            base_url=base_url,
            # LM Studio ignores the key but the OpenAI client insists on one.
            api_key=api_key or "lm-studio",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    if provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY is required when LLM_PROVIDER='anthropic'")

        logger.info("Building Anthropic chat model (model=%s)", model)
        return ChatAnthropic(
            model=model,
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    raise ValueError(
        f"Unsupported LLM_PROVIDER: '{provider}'. Must be 'lmstudio' or 'anthropic'."
    )


def _content_to_text(content: Any) -> str:
    """Flatten a message ``content`` (str or list of content blocks) to text."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


# ── Gateway ─────────────────────────────────────────────────────────


class CompletionGateway:
    """Single-shot text completions plus an intent classification helper."""

    def __init__(self, llm: BaseChatModel, *, model_name: str = "local"):
        self._llm = llm
        self.model_name = model_name

    def complete(self, prompt: str, system_prompt: str | None = None) -> str:
        """Send *prompt* (optionally preceded by a system prompt) and return the text.

        Raises:
            CompletionError: the model endpoint failed.
        """
        messages: list[BaseMessage] = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))

        try:
            with metrics.timed("llm", "complete"):
                response = self._llm.invoke(messages)
        except Exception as exc:
            logger.error("Error completing LLM request (%s): %s", self.model_name, exc)
            raise CompletionError(f"LLM completion failed: {exc}") from exc

        return _content_to_text(response.content).strip()

    def classify_intent(self, message: str) -> Intent:
        """Classify *message* as query/create/update/delete.

        Never raises: any failure yields ``Intent("unknown", 0.0)``.
        """
        try:
            raw = self.complete(message, INTENT_SYSTEM_PROMPT)
        except CompletionError:
            logger.warning("Intent classification failed, returning unknown")
            return Intent()

        parsed = extract_json_object(raw)
        if parsed is None:
            logger.warning("Failed to parse intent from %.100r", raw)
            return Intent()

        action = str(parsed.get("action", "")).strip().lower()
        if action not in INTENT_ACTIONS:
            return Intent()
        try:
            confidence = float(parsed.get("confidence", 0.0))
        except (TypeError, ValueError):
            confidence = 0.0
        return Intent(action=action, confidence=confidence)


# ── Startup checks ──────────────────────────────────────────────────


def verify_lm_studio(base_url: str) -> None:
    """Check that an LM Studio server answers ``GET /models``.

    Raises:
        CompletionError: the server is unreachable or unhealthy.
    """
    try:
        response = httpx.get(f"{base_url.rstrip('/')}/models", timeout=VERIFY_TIMEOUT_SECONDS)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise CompletionError(f"Failed to connect to LM Studio at {base_url}: {exc}") from exc
    logger.info("Connected to LM Studio at %s", base_url)


def verify_connection() -> None:
    """Startup probe for the configured provider (fatal on failure)."""
    if config.LLM_PROVIDER == "lmstudio":
        verify_lm_studio(config.lm_studio_base_url())
    else:
        logger.info("Skipping connectivity probe for provider %s", config.LLM_PROVIDER)


def create_completion_gateway() -> CompletionGateway:
    """Build the gateway from :mod:`airtable_agent.config`."""
    if config.LLM_PROVIDER == "anthropic":
        model_name = config.ANTHROPIC_MODEL_NAME
        llm = build_chat_model(
            "anthropic",
            model=model_name,
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.LLM_MAX_TOKENS,
            api_key=config.get_optional("ANTHROPIC_API_KEY"),
        )
    else:
        model_name = config.LM_STUDIO_MODEL
        llm = build_chat_model(
            config.LLM_PROVIDER,
            model=model_name,
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.LLM_MAX_TOKENS,
            base_url=config.lm_studio_base_url(),
        )
    return CompletionGateway(llm, model_name=model_name)
