"""Shared test fixtures for the Airtable Agent test suite."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("AIRTABLE_API_KEY", "test-airtable-key-123")
    os.environ.setdefault("AIRTABLE_BASE_ID", "appTESTBASE123")
    os.environ.setdefault("AIRTABLE_TABLE_NAME", "Tasks")
    os.environ["LLM_PROVIDER"] = "lmstudio"
    os.environ["CLASSIFY_INTENT"] = "false"
    os.environ["METRICS_ENABLED"] = "false"


@pytest.fixture
def mock_response():
    """Factory fixture for creating mock httpx responses."""

    def _make(data: dict, status_code: int = 200):
        mock = MagicMock()
        mock.status_code = status_code
        mock.json.return_value = data
        mock.text = str(data)
        return mock

    return _make


@pytest.fixture
def tables():
    from airtable_agent.models import TableInfo

    return [
        TableInfo(id="tblTASKS0000001", name="Tasks"),
        TableInfo(id="tblPROJECTS0001", name="Projects"),
    ]


@pytest.fixture
def gateway():
    """Completion gateway double; set ``complete.return_value`` / ``side_effect``."""
    fake = MagicMock()
    fake.model_name = "test-model"
    return fake


@pytest.fixture
def airtable():
    """Airtable client double."""
    return MagicMock()


@pytest.fixture
def schema():
    """Schema resolver double that finds no table and passes names through."""
    fake = MagicMock()
    fake.locate.return_value = None
    fake.friendly_name.side_effect = lambda name: name
    fake.fetch_tables.return_value = []
    return fake


# Both query keyword lists are valid starting points; the agent defaults to
# the rich one, and every keyword-independent test should hold for either.
@pytest.fixture(params=["rich", "simple"])
def query_keywords(request):
    from airtable_agent.agents.query import QUERY_KEYWORDS, SIMPLE_QUERY_KEYWORDS

    return {"rich": QUERY_KEYWORDS, "simple": SIMPLE_QUERY_KEYWORDS}[request.param]
