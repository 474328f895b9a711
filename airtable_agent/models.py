"""Core data types shared by the dispatcher, agents and services."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["system", "user", "assistant"]
IntentAction = Literal["query", "create", "update", "delete", "unknown"]

INTENT_ACTIONS: tuple[str, ...] = ("query", "create", "update", "delete", "unknown")
DEFAULT_MAX_RECORDS = 10

# Airtable table identifiers look like "tblXXXXXXXXXXXXXX"; display names don't.
TABLE_ID_PREFIX = "tbl"


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class Intent:
    """Advisory classification of what the user wants to do."""

    action: IntentAction = "unknown"
    confidence: float = 0.0

    def __post_init__(self) -> None:
        # Clamp instead of rejecting: the value comes straight from the LLM.
        confidence = float(self.confidence)
        if not math.isfinite(confidence):
            confidence = 0.0
        object.__setattr__(self, "confidence", min(max(confidence, 0.0), 1.0))


@dataclass(frozen=True)
class TableInfo:
    id: str
    name: str


@dataclass
class QueryParameters:
    """Parameters for a paginated find.

    An empty ``fields`` list means "all fields" and an empty
    ``filter_by_formula`` means "no filter".
    """

    fields: list[str] = field(default_factory=list)
    filter_by_formula: str = ""
    max_records: int = DEFAULT_MAX_RECORDS


@dataclass
class CreateParameters:
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Record:
    id: str
    fields: dict[str, Any]
    created_time: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Record:
        """Build a record from the JSON object returned by the Airtable API."""
        return cls(
            id=data["id"],
            fields=dict(data.get("fields") or {}),
            created_time=data.get("createdTime"),
        )

    def to_summary(self) -> dict[str, Any]:
        return {"id": self.id, "fields": self.fields}


@dataclass(frozen=True)
class AgentDescriptor:
    name: str
    description: str
