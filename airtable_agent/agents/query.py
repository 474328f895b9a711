"""Query agent: searches a table and summarises the matches."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from airtable_agent.models import AgentDescriptor
from airtable_agent.prompts import build_query_extraction_prompt, build_query_summary_prompt
from airtable_agent.services.airtable_client import AirtableAPIError, AirtableClient
from airtable_agent.services.extraction import extract_query_parameters
from airtable_agent.services.llm_client import CompletionGateway
from airtable_agent.services.schema import SchemaResolver

from .base import contains_keyword

logger = logging.getLogger(__name__)

# Searches plus "tell me about X" style detail requests.
QUERY_KEYWORDS: tuple[str, ...] = (
    "find",
    "search",
    "show",
    "get",
    "list",
    "what",
    "who",
    "which",
    "give",
    "tell me",
    "details",
    "more information",
    "info on",
    "about",
    "describe",
)

# Narrower alternative: explicit search verbs only.
SIMPLE_QUERY_KEYWORDS: tuple[str, ...] = (
    "find",
    "search",
    "show",
    "get",
    "list",
    "query",
    "look up",
)


class QueryAgent:
    name = "QueryAgent"
    description = "Searches and retrieves records from Airtable"

    def __init__(
        self,
        airtable: AirtableClient,
        gateway: CompletionGateway,
        *,
        default_table: str,
        schema: SchemaResolver | None = None,
        keywords: Sequence[str] = QUERY_KEYWORDS,
    ):
        self._airtable = airtable
        self._gateway = gateway
        self._schema = schema or SchemaResolver(airtable)
        self._default_table = default_table
        self._keywords = tuple(keywords)

    @property
    def descriptor(self) -> AgentDescriptor:
        return AgentDescriptor(self.name, self.description)

    def can_handle(self, message: str) -> bool:
        if contains_keyword(message, self._keywords):
            logger.debug("[%s] Can handle: %r", self.name, message)
            return True
        return False

    def process(self, message: str) -> str:
        logger.info("[%s] Processing query request…", self.name)

        detected = self._schema.locate(message)
        target_table = detected or self._default_table
        table_name = self._schema.friendly_name(target_table)
        if detected:
            logger.info("[%s] Detected table from message: %s", self.name, table_name)
        else:
            logger.info("[%s] Using default table: %s", self.name, table_name)

        raw = self._gateway.complete(build_query_extraction_prompt(message))
        logger.debug("[%s] Raw LLM response: %.200s", self.name, raw)
        params = extract_query_parameters(raw)
        logger.info("[%s] Query params: %s", self.name, params)

        try:
            records = self._airtable.find_records(
                target_table,
                fields=params.fields,
                filter_by_formula=params.filter_by_formula,
                max_records=params.max_records,
            )
        except AirtableAPIError as exc:
            logger.error("[%s] Error: %s", self.name, exc)
            return f"Sorry, I encountered an error while querying: {exc}"

        if not records:
            return f'No records found in the "{table_name}" table matching your criteria.'

        logger.info("[%s] Found %d records in %r", self.name, len(records), table_name)
        records_json = json.dumps(
            [record.to_summary() for record in records], indent=2, default=str,
        )
        return self._gateway.complete(build_query_summary_prompt(message, records_json))
