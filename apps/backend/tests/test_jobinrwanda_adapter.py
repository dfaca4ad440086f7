"""
Tests for the JobinRwanda site adapter and the adapter registry.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from bs4 import BeautifulSoup

from core.normalize import SOURCE_TIMEZONE
from crawler.plugins import get_adapter_registry, AdapterRegistry
from crawler.plugins.jobinrwanda import JobInRwandaAdapter, BASE_URL


@pytest.fixture
def adapter():
    return JobInRwandaAdapter()


def parse_all(adapter, html, now):
    return [adapter.parse_fragment(f, now=now) for f in adapter.extract_cards(html)]


class TestPageStructure:
    def test_page_url(self, adapter):
        assert adapter.page_url(1) == "https://www.jobinrwanda.com/jobs/all?page=1"
        assert adapter.page_url(7) == "https://www.jobinrwanda.com/jobs/all?page=7"

    def test_extract_cards(self, adapter, page1_html, page2_html, empty_html):
        assert len(adapter.extract_cards(page1_html)) == 3
        assert len(adapter.extract_cards(page2_html)) == 1
        assert adapter.extract_cards(empty_html) == []

    def test_has_next_page(self, adapter, page1_html, page2_html):
        assert adapter.has_next_page(page1_html) is True
        assert adapter.has_next_page(page2_html) is False


class TestParseFragment:
    def test_complete_card(self, adapter, page1_html, fixed_now):
        card = parse_all(adapter, page1_html, fixed_now)[0]

        assert card.title == "Data Analyst"
        assert card.company == "Bank of Kigali"
        assert card.location == "Kigali"
        assert card.job_type == "Contract"
        assert card.source_url == "https://www.jobinrwanda.com/job/data-analyst-bk-2024"
        assert card.posted_date == datetime(2024, 3, 10, tzinfo=SOURCE_TIMEZONE)
        assert card.deadline == datetime(2024, 3, 25, tzinfo=SOURCE_TIMEZONE)
        assert card.experience_level == "3 years"
        assert card.description.startswith("Experience: 3 years")
        assert card.requirements == []
        assert card.responsibilities == []

    def test_defaults_for_blank_fields(self, adapter, page1_html, fixed_now):
        card = parse_all(adapter, page1_html, fixed_now)[1]

        assert card.title == "Field Officer"
        assert card.company == "Not specified"
        assert card.location == "Kigali, Rwanda"
        assert card.job_type == "Full-time"
        assert card.experience_level is None
        assert card.description == ""

    def test_absolute_link_kept(self, adapter, page1_html, fixed_now):
        card = parse_all(adapter, page1_html, fixed_now)[1]
        assert card.source_url == "https://www.jobinrwanda.com/job/field-officer-wvi"

    def test_relative_posted_date_and_default_deadline(self, adapter, page1_html, fixed_now):
        card = parse_all(adapter, page1_html, fixed_now)[1]

        assert card.posted_date == fixed_now - timedelta(days=3)
        assert card.deadline == card.posted_date + timedelta(days=30)

    def test_missing_link_is_skipped(self, adapter, page1_html, fixed_now, caplog):
        with caplog.at_level("WARNING"):
            card = parse_all(adapter, page1_html, fixed_now)[2]
        assert card is None
        assert "No job URL found" in caplog.text

    def test_missing_dates_default_to_now(self, adapter, fixed_now):
        html = '<div class="job-card"><h5 class="job-title"><a href="/job/x">X</a></h5></div>'
        fragment = BeautifulSoup(html, "lxml").select_one(".job-card")

        card = adapter.parse_fragment(fragment, now=fixed_now)

        assert card.posted_date == fixed_now
        assert card.deadline == fixed_now + timedelta(days=30)
        assert card.source_url == f"{BASE_URL}/job/x"

    def test_missing_title_is_skipped(self, adapter, fixed_now):
        html = '<div class="job-card"><a href="/job/y">Apply</a></div>'
        fragment = BeautifulSoup(html, "lxml").select_one(".job-card")
        assert adapter.parse_fragment(fragment, now=fixed_now) is None

    def test_unexpected_error_is_contained(self, adapter, page1_html, fixed_now):
        fragment = adapter.extract_cards(page1_html)[0]
        with patch("crawler.plugins.jobinrwanda.normalize_date", side_effect=RuntimeError("boom")):
            assert adapter.parse_fragment(fragment, now=fixed_now) is None

    def test_to_row_columns(self, adapter, page2_html, fixed_now):
        card = parse_all(adapter, page2_html, fixed_now)[0]
        row = card.to_row()

        assert row["source_url"] == "https://www.jobinrwanda.com/job/accountant-mtn"
        assert row["deadline"] == datetime(2024, 3, 30, tzinfo=SOURCE_TIMEZONE)
        assert set(row) == {
            "source_url", "title", "company", "location", "job_type", "posted_date",
            "deadline", "description", "requirements", "responsibilities", "category",
            "experience_level", "salary",
        }


class TestRegistry:
    def test_default_adapter_registered(self):
        adapter = get_adapter_registry().get_adapter()
        assert isinstance(adapter, JobInRwandaAdapter)
        assert adapter.name == "JobinRwanda"

    def test_unknown_source(self):
        with pytest.raises(KeyError):
            get_adapter_registry().get_adapter("NoSuchBoard")

    def test_list_adapters(self):
        registry = AdapterRegistry()
        registry.register(JobInRwandaAdapter())
        assert registry.list_adapters() == [{
            "name": "JobinRwanda",
            "base_url": BASE_URL,
            "class": "JobInRwandaAdapter",
        }]
