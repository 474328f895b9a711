"""Create agent: turns a request into a single new Airtable record."""

from __future__ import annotations

import json
import logging

from airtable_agent.models import AgentDescriptor, CreateParameters
from airtable_agent.prompts import build_create_extraction_prompt
from airtable_agent.services.airtable_client import AirtableAPIError, AirtableClient
from airtable_agent.services.llm_client import CompletionGateway
from airtable_agent.services.schema import SchemaResolver

from .base import contains_keyword

logger = logging.getLogger(__name__)

CREATE_KEYWORDS: tuple[str, ...] = ("create", "add", "new", "insert", "make")


def parse_create_parameters(raw: str) -> CreateParameters:
    """Parse the extraction completion strictly.

    Unlike the query path there is no prose tolerance here: writing a
    half-understood record is worse than asking the user again.

    Raises:
        ValueError: *raw* is not a JSON object with a ``fields`` mapping.
    """
    data = json.loads(raw)
    if not isinstance(data, dict) or not isinstance(data.get("fields"), dict):
        raise ValueError(f'Expected a JSON object with a "fields" mapping, got: {raw[:100]}')
    if not data["fields"]:
        raise ValueError("No fields were extracted from the request")
    return CreateParameters(fields=data["fields"])


class CreateAgent:
    name = "CreateAgent"
    description = "Creates new records in Airtable"

    def __init__(
        self,
        airtable: AirtableClient,
        gateway: CompletionGateway,
        *,
        default_table: str,
        schema: SchemaResolver | None = None,
    ):
        self._airtable = airtable
        self._gateway = gateway
        self._schema = schema or SchemaResolver(airtable)
        self._default_table = default_table

    @property
    def descriptor(self) -> AgentDescriptor:
        return AgentDescriptor(self.name, self.description)

    def can_handle(self, message: str) -> bool:
        if contains_keyword(message, CREATE_KEYWORDS):
            logger.debug("[%s] Can handle: %r", self.name, message)
            return True
        return False

    def process(self, message: str) -> str:
        logger.info("[%s] Processing create request…", self.name)

        detected = self._schema.locate(message)
        target_table = detected or self._default_table
        if detected:
            logger.info("[%s] Detected table from message: %s", self.name, detected)
        else:
            logger.info("[%s] Using default table: %s", self.name, target_table)

        raw = self._gateway.complete(build_create_extraction_prompt(message))

        try:
            params = parse_create_parameters(raw)
            logger.info(
                "[%s] Creating record in %r with fields: %s",
                self.name, target_table, json.dumps(params.fields, default=str),
            )
            record = self._airtable.create_record(target_table, params.fields)
        except (ValueError, AirtableAPIError) as exc:
            logger.error("[%s] Error: %s", self.name, exc)
            return f"Sorry, I encountered an error while creating the record: {exc}"

        return (
            f'Successfully created record in "{target_table}"!\n\n'
            f"ID: {record.id}\n"
            f"Fields: {json.dumps(record.fields, indent=2, default=str)}"
        )
