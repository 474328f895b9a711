"""Table discovery for the configured Airtable base.

The pure helpers (:func:`find_table_in_message`, :func:`resolve_table_name`)
work on an already fetched table list; :class:`SchemaResolver` fetches
that list from Airtable on every call.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from airtable_agent.models import TABLE_ID_PREFIX, TableInfo
from airtable_agent.services.airtable_client import AirtableAPIError, AirtableClient

logger = logging.getLogger(__name__)

# Phrasings that mark a table mention, most specific first.
TABLE_MENTION_TEMPLATES: tuple[str, ...] = (
    "in the {name} table",
    "from the {name} table",
    "in {name} table",
    "from {name} table",
    "in the {name}",
    "from the {name}",
    "in {name}",
    "from {name}",
)


def is_table_id(value: str) -> bool:
    """Heuristic: Airtable table identifiers start with ``tbl``."""
    return value.startswith(TABLE_ID_PREFIX)


def find_table_in_message(message: str, tables: Sequence[TableInfo]) -> str | None:
    """Return the display name of the first table mentioned in *message*.

    Tables are checked in listing order, so when two names both match
    (e.g. "Tasks" and "Tasks Archive") the one Airtable lists first wins.
    """
    lower_message = message.lower()
    for table in tables:
        lower_name = table.name.lower()
        if any(
            template.format(name=lower_name) in lower_message
            for template in TABLE_MENTION_TEMPLATES
        ):
            return table.name
    return None


def resolve_table_name(name_or_id: str, tables: Sequence[TableInfo]) -> str:
    """Map a ``tbl…`` identifier to its display name; pass names through."""
    if not is_table_id(name_or_id):
        return name_or_id
    for table in tables:
        if table.id == name_or_id:
            return table.name
    return name_or_id


class SchemaResolver:
    """Looks up tables of the base through an :class:`AirtableClient`."""

    def __init__(self, airtable: AirtableClient):
        self._airtable = airtable

    def fetch_tables(self) -> list[TableInfo]:
        """Fetch the live table list; an empty list on any Airtable failure.

        Callers treat "no tables" as a credentials/connectivity symptom, so
        the error is logged here rather than raised.
        """
        try:
            return self._airtable.list_tables()
        except AirtableAPIError as exc:
            logger.error("Error fetching base schema: %s", exc)
            return []

    def locate(self, message: str) -> str | None:
        """Return the table named in *message*, if any."""
        tables = self.fetch_tables()
        if not tables:
            return None
        return find_table_in_message(message, tables)

    def friendly_name(self, name_or_id: str) -> str:
        """Display name for logs and replies; only fetches for ``tbl…`` ids."""
        if not is_table_id(name_or_id):
            return name_or_id
        return resolve_table_name(name_or_id, self.fetch_tables())
