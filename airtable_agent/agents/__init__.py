"""Agents, one per category of user intent."""

from .base import Agent, contains_keyword
from .create import CREATE_KEYWORDS, CreateAgent, parse_create_parameters
from .list_tables import LIST_TABLES_KEYWORDS, ListTablesAgent
from .query import QUERY_KEYWORDS, SIMPLE_QUERY_KEYWORDS, QueryAgent

__all__ = [
    "Agent",
    "CREATE_KEYWORDS",
    "CreateAgent",
    "LIST_TABLES_KEYWORDS",
    "ListTablesAgent",
    "QUERY_KEYWORDS",
    "QueryAgent",
    "SIMPLE_QUERY_KEYWORDS",
    "contains_keyword",
    "parse_create_parameters",
]
