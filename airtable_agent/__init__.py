"""Airtable Agent: a natural-language front end to an Airtable base.

Architecture Overview
=====================

A chat request arrives over HTTP (OpenAI or Ollama wire format).  The
**dispatcher** offers the latest user message to each registered agent
in order and the first one that claims it does the work:

1. **ListTablesAgent** lists the tables of the base (no LLM call).
2. **QueryAgent** asks the LLM to turn the request into a find
   (fields, ``filterByFormula``, ``maxRecords``), runs it against
   Airtable page by page, then asks the LLM to summarise the records.
3. **CreateAgent** asks the LLM for a ``{"fields": {...}}`` mapping and
   creates one record.

Routing: transport → dispatcher → agent → (table lookup, LLM, Airtable)
→ agent reply → transport.

Key Design Decisions
--------------------
- **Keyword routing**: ``can_handle`` is a case-insensitive keyword test;
  registration order resolves overlaps (first match wins).
- **Untrusted LLM output**: query parameters go through a total parser
  that tolerates prose around the JSON and falls back to defaults.
  Record creation parses strictly and refuses to write on bad output.
- **LLM provider**: LM Studio (OpenAI-compatible) by default, Anthropic
  optionally, both through LangChain chat models.
- **Resilience**: the Airtable client retries timeouts, 429s and 5xx with
  exponential backoff; agent failures become apologetic replies.
- **No state**: nothing is cached and there is no conversation memory;
  the table list is fetched whenever a table must be resolved.

Package Structure
-----------------
- ``airtable_agent/dispatcher.py`` — Dispatcher and its factory
- ``airtable_agent/agents/`` — Query, Create and ListTables agents
- ``airtable_agent/services/`` — Airtable client, table lookup, LLM
  gateway, response extraction, metrics
- ``airtable_agent/api/`` — FastAPI routes and Pydantic schemas
- ``airtable_agent/config.py`` — configuration from environment variables
- ``airtable_agent/prompts.py`` — prompt templates
- ``airtable_agent/server.py`` — FastAPI application
- ``airtable_agent/main.py`` — CLI chat interface
"""
