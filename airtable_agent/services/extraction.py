"""Recover structured parameters from free-text LLM output.

Local models asked for "ONLY JSON" still wrap the object in prose, code
fences or special tokens.  Everything here is total: malformed input
produces defaults, never an exception.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from airtable_agent.models import DEFAULT_MAX_RECORDS, QueryParameters

logger = logging.getLogger(__name__)

# Greedy: first "{" to last "}" so nested objects stay intact.
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Return the JSON object embedded in *text*, or ``None``.

    Only dicts count; a bare list, string or number is treated the same
    as unparseable text.
    """
    if not text:
        return None

    match = _JSON_OBJECT_RE.search(text)
    if match is None:
        logger.debug("No JSON object found in LLM response")
        return None

    try:
        parsed = json.loads(match.group(0))
    except ValueError as exc:
        logger.debug("Failed to parse extracted JSON: %s (raw: %.100s…)", exc, match.group(0))
        return None

    if not isinstance(parsed, dict):
        return None
    return parsed


def _coerce_fields(value: Any) -> list[str]:
    if not value or not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item]


def _coerce_formula(value: Any) -> str:
    if not value or not isinstance(value, str):
        return ""
    return value


def _coerce_max_records(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_MAX_RECORDS
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and value > 0:
        return value
    return DEFAULT_MAX_RECORDS


def extract_query_parameters(text: str | None) -> QueryParameters:
    """Parse the query-extraction completion into :class:`QueryParameters`.

    Falls back to ``QueryParameters()`` (all fields, no filter, 10 records)
    when no usable JSON object is present, and per key when a value is
    missing, empty or of the wrong type.
    """
    parsed = extract_json_object(text)
    if parsed is None:
        logger.info("No valid JSON found, using default query parameters")
        return QueryParameters()

    return QueryParameters(
        fields=_coerce_fields(parsed.get("fields")),
        filter_by_formula=_coerce_formula(parsed.get("filterByFormula")),
        max_records=_coerce_max_records(parsed.get("maxRecords")),
    )
