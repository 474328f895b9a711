"""FastAPI server for the Airtable Agent.

Run with:
    uvicorn airtable_agent.server:app --reload --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from airtable_agent.api.routes import router
from airtable_agent.config import (
    AIRTABLE_BASE_ID,
    CORS_ORIGINS,
    LLM_PROVIDER,
    SERVER_HOST,
    SERVER_PORT,
)
from airtable_agent.dispatcher import create_dispatcher
from airtable_agent.services.airtable_client import AirtableClient
from airtable_agent.services.llm_client import create_completion_gateway, verify_connection

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Start-up: check the LLM endpoint, then build the dispatcher once.

    An unreachable LLM endpoint aborts start-up.  The Airtable client
    created here is shared by every agent and closed on shutdown.
    """
    logger.info("Connecting to LLM provider %s…", LLM_PROVIDER)
    verify_connection()
    gateway = create_completion_gateway()

    airtable = AirtableClient()
    application.state.dispatcher = create_dispatcher(gateway=gateway, airtable=airtable)
    logger.info("Airtable base: %s", AIRTABLE_BASE_ID)
    logger.info("Registered agents:")
    for descriptor in application.state.dispatcher.descriptors:
        logger.info("  - %s: %s", descriptor.name, descriptor.description)
    yield
    application.state.dispatcher = None
    airtable.close()


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="Airtable Agent",
    description=(
        "Natural-language front end to an Airtable base: search records, "
        "create records and list tables by chatting."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a unique request ID to every request for log correlation.

    The ID is echoed in the ``X-Request-ID`` response header.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Airtable Agent",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": ["/v1/chat/completions", "/api/chat"],
    }


if __name__ == "__main__":
    logger.info("Starting Airtable Agent server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "airtable_agent.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
