"""Centralized configuration for the Airtable Agent.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/airtable-agent/<VARIABLE_NAME>``.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ── Feature flag: running on AWS? ────────────────────────────────────
_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that local-dev
    fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415 (lazy: boto3 is an optional extra)

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/airtable-agent/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = get_optional(name)
    if value:
        return value

    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store /airtable-agent/{name} (AWS)."
    )


def get_optional(name: str) -> str | None:
    """Like ``_require_env`` but returns ``None`` instead of raising.

    Used for secrets that are only needed by some deployments, e.g. the
    Anthropic key when ``LLM_PROVIDER=anthropic``.
    """
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        return _get_ssm_parameter(name)
    return None


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ── Airtable ────────────────────────────────────────────────────────
AIRTABLE_API_KEY: str = _require_env("AIRTABLE_API_KEY")
AIRTABLE_BASE_ID: str = _require_env("AIRTABLE_BASE_ID")
AIRTABLE_API_URL: str = os.getenv("AIRTABLE_API_URL", "https://api.airtable.com/v0")
# Used whenever a message does not name a table ("Table 1" is Airtable's
# name for the first table of a fresh base).
AIRTABLE_TABLE_NAME: str = os.getenv("AIRTABLE_TABLE_NAME", "Table 1")

# ── LLM ─────────────────────────────────────────────────────────────
# "lmstudio" talks to LM Studio's OpenAI-compatible server,
# "anthropic" to the Anthropic API.
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "lmstudio").strip().lower()

LM_STUDIO_HOST: str = os.getenv("LM_STUDIO_HOST", "localhost")
LM_STUDIO_PORT: int = int(os.getenv("LM_STUDIO_PORT", "1234"))
LM_STUDIO_MODEL: str = os.getenv("LM_STUDIO_MODEL", "openai/gpt-oss-20b")

ANTHROPIC_MODEL_NAME: str = os.getenv("ANTHROPIC_MODEL_NAME", "claude-haiku-4-5")

LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "1000"))

# Advisory intent classification costs one extra completion per request.
CLASSIFY_INTENT: bool = _env_flag("CLASSIFY_INTENT")

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("PORT", "3000"))
SERVED_MODEL_NAME: str = os.getenv("SERVED_MODEL_NAME", "airtable-agent")
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")


def lm_studio_base_url() -> str:
    """OpenAI-compatible base URL of the configured LM Studio server."""
    return f"http://{LM_STUDIO_HOST}:{LM_STUDIO_PORT}/v1"
