"""Routes each chat request to the agent that owns it.

The latest user message is offered to every registered agent in
registration order and the first agent whose ``can_handle`` returns
``True`` processes it.  Keyword sets overlap ("show me how to create a
task" matches both query and create), so registration order decides.

    ListTablesAgent → QueryAgent → CreateAgent

ListTables must come before Query because "what tables" contains the
query keyword "what".
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from airtable_agent.agents import Agent, CreateAgent, ListTablesAgent, QueryAgent
from airtable_agent.config import AIRTABLE_TABLE_NAME, CLASSIFY_INTENT
from airtable_agent.models import AgentDescriptor, ChatMessage
from airtable_agent.services.airtable_client import AirtableClient
from airtable_agent.services.llm_client import CompletionGateway, create_completion_gateway
from airtable_agent.services.metrics import metrics
from airtable_agent.services.schema import SchemaResolver

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """A request that cannot be routed to any agent."""


class NoUserMessageError(DispatchError):
    def __init__(self) -> None:
        super().__init__("No user message found in request")


class NoAgentMatchedError(DispatchError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(f"No agent could handle this request: {message!r}")


def latest_user_message(messages: Sequence[ChatMessage]) -> str | None:
    """Content of the most recent ``user`` message, or ``None``."""
    for msg in reversed(messages):
        if msg.role == "user":
            return msg.content
    return None


class Dispatcher:
    """First-match router over a fixed, ordered list of agents."""

    def __init__(
        self,
        agents: Sequence[Agent],
        *,
        intent_classifier: CompletionGateway | None = None,
    ):
        self._agents: tuple[Agent, ...] = tuple(agents)
        self._intent_classifier = intent_classifier

    @property
    def agents(self) -> tuple[Agent, ...]:
        return self._agents

    @property
    def descriptors(self) -> list[AgentDescriptor]:
        return [agent.descriptor for agent in self._agents]

    def select(self, text: str) -> Agent:
        """Return the first agent that claims *text*.

        Raises:
            NoAgentMatchedError: every agent declined.
        """
        for agent in self._agents:
            claimed = agent.can_handle(text)
            logger.debug("Candidacy %s -> %s", agent.name, claimed)
            if claimed:
                return agent
        raise NoAgentMatchedError(text)

    def route(self, messages: Sequence[ChatMessage]) -> str:
        """Dispatch the latest user message and return the agent's reply.

        Raises:
            NoUserMessageError: *messages* has no ``user`` entry.
            NoAgentMatchedError: no agent claimed the message.
        """
        text = latest_user_message(messages)
        if text is None:
            raise NoUserMessageError()

        logger.info("Received message: %r", text)
        t0 = time.perf_counter()

        if self._intent_classifier is not None:
            intent = self._intent_classifier.classify_intent(text)
            logger.info("Advisory intent: %s (%.2f)", intent.action, intent.confidence)

        try:
            agent = self.select(text)
        except NoAgentMatchedError:
            logger.info("No agent matched %r", text)
            metrics.record_failure("dispatcher", "route", error_type="NoAgentMatched")
            raise

        logger.info("Routing to: %s", agent.name)
        with metrics.timed("dispatcher", agent.name):
            reply = agent.process(text)

        logger.info(
            "%s answered in %.0fms", agent.name, (time.perf_counter() - t0) * 1000,
        )
        return reply


def create_dispatcher(
    *,
    gateway: CompletionGateway | None = None,
    airtable: AirtableClient | None = None,
    default_table: str | None = None,
) -> Dispatcher:
    """Build the production dispatcher from configuration.

    The gateway and Airtable client are created once here and shared
    read-only by every agent for the lifetime of the process.
    """
    gateway = gateway or create_completion_gateway()
    airtable = airtable or AirtableClient()
    schema = SchemaResolver(airtable)
    table = default_table or AIRTABLE_TABLE_NAME

    dispatcher = Dispatcher(
        [
            ListTablesAgent(schema),
            QueryAgent(airtable, gateway, default_table=table, schema=schema),
            CreateAgent(airtable, gateway, default_table=table, schema=schema),
        ],
        intent_classifier=gateway if CLASSIFY_INTENT else None,
    )
    logger.debug(
        "Dispatcher built (model=%s, default_table=%s, agents=%s)",
        gateway.model_name, table, ", ".join(a.name for a in dispatcher.agents),
    )
    return dispatcher
