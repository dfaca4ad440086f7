from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from core.normalize import SOURCE_TIMEZONE
from crawler.plugins.base import ListingCard

FIXTURES_DIR = Path(__file__).parent / "fixtures"

TEST_SESSION_SECRET = "test-session-secret"


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep tests away from real schedulers, databases and dev-mode output."""
    monkeypatch.setenv("DYPSE_DISABLE_SCHEDULER", "true")
    monkeypatch.setenv("SESSION_SECRET", TEST_SESSION_SECRET)
    monkeypatch.delenv("DYPSE_ENV", raising=False)
    yield


@pytest.fixture
def page1_html():
    return load_fixture("jobinrwanda_page1.html")


@pytest.fixture
def page2_html():
    return load_fixture("jobinrwanda_page2.html")


@pytest.fixture
def empty_html():
    return load_fixture("jobinrwanda_empty.html")


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 15, 12, 0, tzinfo=SOURCE_TIMEZONE)


@pytest.fixture
def make_card():
    """Factory for ListingCard objects with sensible defaults."""
    def _make(**overrides):
        values = {
            "title": "Data Analyst",
            "company": "Bank of Kigali",
            "location": "Kigali",
            "source_url": "https://www.jobinrwanda.com/job/data-analyst",
            "posted_date": datetime(2024, 3, 10, tzinfo=SOURCE_TIMEZONE),
            "deadline": datetime(2024, 3, 25, tzinfo=SOURCE_TIMEZONE),
        }
        values.update(overrides)
        return ListingCard(**values)
    return _make


@pytest.fixture
def mock_conn():
    """psycopg2-style connection whose cursor works as a context manager."""
    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value = cursor
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn, cursor
