"""List-tables agent: enumerates the tables of the base (no LLM call)."""

from __future__ import annotations

import logging

from airtable_agent.models import AgentDescriptor
from airtable_agent.services.schema import SchemaResolver

from .base import contains_keyword

logger = logging.getLogger(__name__)

LIST_TABLES_KEYWORDS: tuple[str, ...] = (
    "what tables",
    "list tables",
    "show tables",
    "available tables",
    "which tables",
    "tables do you have",
    "what are the tables",
)

NO_TABLES_REPLY = (
    "I couldn't fetch the tables from your Airtable base. "
    "Please check your API credentials."
)


class ListTablesAgent:
    name = "ListTablesAgent"
    description = "Lists all available tables in the Airtable base"

    def __init__(self, schema: SchemaResolver):
        self._schema = schema

    @property
    def descriptor(self) -> AgentDescriptor:
        return AgentDescriptor(self.name, self.description)

    def can_handle(self, message: str) -> bool:
        if contains_keyword(message, LIST_TABLES_KEYWORDS):
            logger.debug("[%s] Can handle: %r", self.name, message)
            return True
        return False

    def process(self, message: str) -> str:
        logger.info("[%s] Fetching available tables…", self.name)
        tables = self._schema.fetch_tables()
        # An empty base and a bad token look the same from here.
        if not tables:
            return NO_TABLES_REPLY

        plural = "" if len(tables) == 1 else "s"
        lines = [f"I found {len(tables)} table{plural} in your Airtable base:\n"]
        for index, table in enumerate(tables, start=1):
            lines.append(f"{index}. **{table.name}** (ID: {table.id})")
        lines.append(
            "\nYou can query any of these tables by mentioning the table name "
            'in your request, like "find all records in the Tasks table".'
        )
        return "\n".join(lines)
