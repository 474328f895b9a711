"""HTTP client for the Airtable Web API with retry and timeout handling.

Airtable API docs: https://airtable.com/developers/web/api/introduction
All requests carry a Personal Access Token as a Bearer token.

Nothing is cached here: table listings and records are fetched fresh on
every call.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from typing import Any
from urllib.parse import quote

import httpx

from airtable_agent.config import AIRTABLE_API_KEY, AIRTABLE_API_URL, AIRTABLE_BASE_ID
from airtable_agent.models import DEFAULT_MAX_RECORDS, Record, TableInfo
from airtable_agent.services.metrics import metrics

logger = logging.getLogger(__name__)

# ── Retry configuration ─────────────────────────────────────────────
MAX_RETRIES = 3
INITIAL_BACKOFF_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 15.0

# Airtable returns at most 100 records per page.
MAX_PAGE_SIZE = 100

_RETRYABLE_STATUS = 429


class AirtableAPIError(Exception):
    """Raised when an Airtable API call fails after all retries."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AirtableClient:
    """Thin wrapper around the Airtable REST API with automatic retries.

    Timeouts, connection errors, rate limiting (429) and 5xx responses are
    retried with exponential backoff.  Other 4xx responses (unknown table,
    unknown field name, invalid formula…) raise immediately.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_id: str | None = None,
        *,
        api_url: str | None = None,
    ):
        self._base_id = base_id or AIRTABLE_BASE_ID
        self._client = httpx.Client(
            base_url=api_url or AIRTABLE_API_URL,
            headers={
                "Authorization": f"Bearer {api_key or AIRTABLE_API_KEY}",
                "Content-Type": "application/json",
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    @property
    def base_id(self) -> str:
        return self._base_id

    def close(self) -> None:
        self._client.close()

    # ── Internal helpers ─────────────────────────────────────────────

    def _table_path(self, table: str) -> str:
        return f"/{self._base_id}/{quote(table, safe='')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, Any]] | dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute an HTTP request with exponential-backoff retries."""
        last_error: Exception | None = None
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                with metrics.timed("airtable", f"{method} {path}"):
                    response = self._client.request(
                        method,
                        path,
                        params=params,
                        json=json_body,
                    )
                    if response.status_code >= 500 or response.status_code == _RETRYABLE_STATUS:
                        raise AirtableAPIError(
                            f"Server error {response.status_code}: {response.text}",
                            status_code=response.status_code,
                        )
                    if response.status_code >= 400:
                        raise AirtableAPIError(
                            f"Client error {response.status_code}: {response.text}",
                            status_code=response.status_code,
                        )
                try:
                    return response.json()
                except ValueError as exc:
                    raise AirtableAPIError(
                        f"Invalid JSON in Airtable response: {exc}",
                        status_code=response.status_code,
                    ) from exc

            except httpx.TransportError as exc:
                last_error = exc
                logger.warning(
                    "Airtable API attempt %d/%d failed (%s: %s)",
                    attempt,
                    MAX_RETRIES,
                    type(exc).__name__,
                    exc,
                )
            except AirtableAPIError as exc:
                if exc.status_code and (
                    exc.status_code >= 500 or exc.status_code == _RETRYABLE_STATUS
                ):
                    last_error = exc
                    logger.warning(
                        "Airtable API returned %d on attempt %d/%d",
                        exc.status_code,
                        attempt,
                        MAX_RETRIES,
                    )
                else:
                    raise

            if attempt < MAX_RETRIES:
                backoff = INITIAL_BACKOFF_SECONDS * (2 ** (attempt - 1))
                time.sleep(backoff)

        raise AirtableAPIError(
            f"Airtable API request failed after {MAX_RETRIES} retries: {last_error}"
        )

    # ── Public API methods ───────────────────────────────────────────

    def list_tables(self) -> list[TableInfo]:
        """List the tables of the configured base via the metadata API."""
        data = self._request("GET", f"/meta/bases/{self._base_id}/tables")
        return [
            TableInfo(id=table["id"], name=table["name"])
            for table in data.get("tables", [])
        ]

    def iter_pages(
        self,
        table: str,
        *,
        fields: list[str] | None = None,
        filter_by_formula: str = "",
        max_records: int = DEFAULT_MAX_RECORDS,
        page_size: int | None = None,
    ) -> Iterator[list[Record]]:
        """Yield pages of records, following Airtable's ``offset`` cursor.

        The next page is only requested once the caller asks for it.

        Args:
            table: Table name or ``tbl…`` identifier.
            fields: Field names to return; empty or ``None`` returns all fields.
            filter_by_formula: Airtable formula, e.g. ``SEARCH('x', {Name})``.
            max_records: Upper bound on the total number of records returned.
            page_size: Records per page (Airtable caps this at 100).
        """
        params: list[tuple[str, Any]] = [("maxRecords", max_records)]
        if filter_by_formula:
            params.append(("filterByFormula", filter_by_formula))
        for name in fields or []:
            params.append(("fields[]", name))
        if page_size:
            params.append(("pageSize", min(page_size, MAX_PAGE_SIZE)))

        offset: str | None = None
        while True:
            page_params = params + ([("offset", offset)] if offset else [])
            data = self._request("GET", self._table_path(table), params=page_params)
            yield [Record.from_api(item) for item in data.get("records", [])]

            offset = data.get("offset")
            if not offset:
                return

    def find_records(
        self,
        table: str,
        *,
        fields: list[str] | None = None,
        filter_by_formula: str = "",
        max_records: int = DEFAULT_MAX_RECORDS,
    ) -> list[Record]:
        """Fetch every page of a find and return at most ``max_records`` records."""
        records: list[Record] = []
        for page in self.iter_pages(
            table,
            fields=fields,
            filter_by_formula=filter_by_formula,
            max_records=max_records,
        ):
            records.extend(page)
            if len(records) >= max_records:
                break
        return records[:max_records]

    def create_record(self, table: str, fields: dict[str, Any]) -> Record:
        """Create a single record and return it as stored by Airtable."""
        data = self._request(
            "POST",
            self._table_path(table),
            json_body={"records": [{"fields": fields}]},
        )
        created = data.get("records") or []
        if not created:
            raise AirtableAPIError("Airtable did not return the created record")
        return Record.from_api(created[0])
