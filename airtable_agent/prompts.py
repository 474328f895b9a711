"""Prompt templates used by the agents and the completion gateway.

Templates are plain ``str.format`` strings.  Literal braces in the JSON
examples are doubled.
"""

INTENT_SYSTEM_PROMPT = """You are a classifier that determines the user's intent for Airtable operations.
Respond with ONLY a JSON object in this format:
{"action": "query|create|update|delete", "confidence": 0.0-1.0}

Examples:
- "Find all contacts" -> {"action": "query", "confidence": 0.95}
- "Create a new task" -> {"action": "create", "confidence": 0.9}
- "Update John's email" -> {"action": "update", "confidence": 0.85}
- "Delete the old record" -> {"action": "delete", "confidence": 0.9}"""


QUERY_EXTRACTION_PROMPT = """Extract query parameters from: "{message}"

Return ONLY this JSON (no other text):
{{
  "fields": [],
  "filterByFormula": "",
  "maxRecords": 10
}}

Notes:
- "fields" lists the field names the user asked for; leave it empty for all fields
- If asking for details about a specific item (e.g., "Human User Interface"), use filterByFormula to search for it
- Example: "details on X" -> {{"filterByFormula": "SEARCH('X', {{Name}})", "maxRecords": 1}}
- For "all records", leave filterByFormula empty

JSON:"""


QUERY_SUMMARY_PROMPT = """Summarize these Airtable records in a friendly, conversational way:
{records_json}

User's original question: "{message}\""""


CREATE_EXTRACTION_PROMPT = """Given this user request: "{message}"

Extract the field names and values to create a new Airtable record.
Respond with ONLY a JSON object in this format:
{{
  "fields": {{
    "FieldName1": "value1",
    "FieldName2": "value2"
  }}
}}

Example: "Create a contact named John Smith with email john@example.com"
Response: {{"fields": {{"Name": "John Smith", "Email": "john@example.com"}}}}"""


def build_query_extraction_prompt(message: str) -> str:
    return QUERY_EXTRACTION_PROMPT.format(message=message)


def build_query_summary_prompt(message: str, records_json: str) -> str:
    return QUERY_SUMMARY_PROMPT.format(message=message, records_json=records_json)


def build_create_extraction_prompt(message: str) -> str:
    return CREATE_EXTRACTION_PROMPT.format(message=message)
