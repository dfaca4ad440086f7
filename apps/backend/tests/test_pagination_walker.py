"""
Tests for the pagination walker and the HTTP client it drives.
"""

import asyncio

import httpx
import pytest

from core.net import HTTPClient, DEFAULT_UA
from crawler.errors import FetchError, ScrapeCancelled
from crawler.html_fetch import PaginationWalker, polite_pause
from crawler.plugins.jobinrwanda import JobInRwandaAdapter


def make_client(pages, requests_seen, status_overrides=None):
    """HTTPClient backed by a MockTransport serving `pages` keyed by page number."""
    status_overrides = status_overrides or {}

    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        page = int(request.url.params.get("page", "1"))
        if page in status_overrides:
            return httpx.Response(status_overrides[page], text="error")
        return httpx.Response(200, text=pages(page), headers={"content-type": "text/html"})

    return HTTPClient(transport=httpx.MockTransport(handler))


def walker_for(client, **kwargs):
    kwargs.setdefault("request_delay", 0)
    return PaginationWalker(JobInRwandaAdapter(), client, **kwargs)


class TestTermination:
    @pytest.mark.asyncio
    async def test_stops_when_no_next_page(self, page1_html, page2_html):
        seen = []
        client = make_client(lambda p: page1_html if p == 1 else page2_html, seen)

        cards = await walker_for(client).walk()

        assert [r.url.params["page"] for r in seen] == ["1", "2"]
        # 2 valid cards on page 1 (one has no link), 1 on page 2
        assert [c.title for c in cards] == ["Data Analyst", "Field Officer", "Accountant"]

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self, page1_html, empty_html):
        seen = []
        client = make_client(lambda p: page1_html if p == 1 else empty_html, seen)

        walker = walker_for(client)
        cards = await walker.walk()

        assert len(seen) == 2
        assert walker.pages_fetched == 2
        assert walker.cards_skipped == 1
        assert len(cards) == 2

    @pytest.mark.asyncio
    async def test_page_ceiling(self, page1_html):
        seen = []
        client = make_client(lambda p: page1_html, seen)

        cards = await walker_for(client, max_pages=10).walk()

        assert len(seen) == 10
        assert seen[-1].url.params["page"] == "10"
        assert len(cards) == 20

    @pytest.mark.asyncio
    async def test_first_page_empty(self, empty_html):
        seen = []
        cards = await walker_for(make_client(lambda p: empty_html, seen)).walk()
        assert cards == []
        assert len(seen) == 1


class TestFetchFailures:
    @pytest.mark.asyncio
    async def test_http_error_status_raises(self, page1_html):
        seen = []
        client = make_client(lambda p: page1_html, seen, status_overrides={2: 503})

        with pytest.raises(FetchError) as exc_info:
            await walker_for(client).walk()

        assert exc_info.value.status == 503
        assert exc_info.value.page == 2
        assert "page=2" in exc_info.value.url

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = HTTPClient(transport=httpx.MockTransport(handler))
        with pytest.raises(FetchError) as exc_info:
            await walker_for(client).walk()

        assert exc_info.value.page == 1
        assert exc_info.value.status is None
        assert "connection refused" in str(exc_info.value)


class TestHTTPClient:
    @pytest.mark.asyncio
    async def test_browser_like_user_agent(self, page2_html):
        seen = []
        client = make_client(lambda p: page2_html, seen)

        await client.get_text("https://www.jobinrwanda.com/jobs/all?page=1")

        assert seen[0].headers["User-Agent"] == DEFAULT_UA
        assert "text/html" in seen[0].headers["Accept"]

    def test_user_agent_from_env(self, monkeypatch):
        monkeypatch.setenv("DYPSE_CRAWLER_UA", "DypseBot/1.0")
        assert HTTPClient().user_agent == "DypseBot/1.0"


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_before_first_fetch(self, page1_html):
        seen = []
        event = asyncio.Event()
        event.set()

        with pytest.raises(ScrapeCancelled):
            await walker_for(make_client(lambda p: page1_html, seen), cancel_event=event).walk()
        assert seen == []

    @pytest.mark.asyncio
    async def test_cancelled_between_pages(self, page1_html):
        seen = []
        event = asyncio.Event()

        def pages(p):
            event.set()
            return page1_html

        with pytest.raises(ScrapeCancelled):
            await walker_for(make_client(pages, seen), cancel_event=event).walk()
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_pause_wakes_early_on_cancel(self):
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, event.set)

        with pytest.raises(ScrapeCancelled):
            await asyncio.wait_for(polite_pause(30, event), timeout=2)

    @pytest.mark.asyncio
    async def test_pause_without_event(self):
        await polite_pause(0)
