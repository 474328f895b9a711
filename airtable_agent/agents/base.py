"""The capability set every agent implements.

Agents are independent classes that satisfy :class:`Agent` structurally;
there is no shared base class and no shared mutable state.  Each agent
gets its own Airtable / gateway handles through its constructor.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from airtable_agent.models import AgentDescriptor


@runtime_checkable
class Agent(Protocol):
    """One category of user intent (query, create, list tables, …)."""

    name: str
    description: str

    @property
    def descriptor(self) -> AgentDescriptor: ...

    def can_handle(self, message: str) -> bool:
        """Cheap keyword check; must not call the LLM or Airtable."""
        ...

    def process(self, message: str) -> str:
        """Handle *message* and return the reply text.

        Airtable and extraction failures come back as an apologetic
        sentence, not an exception.
        """
        ...


def contains_keyword(message: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring test against *keywords*."""
    lower_message = message.lower()
    return any(keyword in lower_message for keyword in keywords)
