"""
HTML crawler: walk a site's paginated listing index and parse its cards.
"""
import os
import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, List, Optional

from core.net import HTTPClient
from core.normalize import SOURCE_TIMEZONE
from crawler.errors import ScrapeCancelled
from crawler.plugins.base import SiteAdapter, ListingCard

logger = logging.getLogger(__name__)

# Runaway-loop guard; the source normally runs out of pages first
MAX_PAGES = int(os.getenv("SCRAPE_MAX_PAGES", "10"))
REQUEST_DELAY_SECONDS = float(os.getenv("SCRAPE_REQUEST_DELAY", "2.0"))


def raise_if_cancelled(cancel_event: Optional[asyncio.Event]):
    if cancel_event is not None and cancel_event.is_set():
        raise ScrapeCancelled("Scrape run cancelled")


async def polite_pause(delay: float, cancel_event: Optional[asyncio.Event] = None):
    """
    Sleep between requests to the source.

    Wakes early and raises ScrapeCancelled if the cancellation event is
    set while waiting.
    """
    if delay > 0:
        if cancel_event is None:
            await asyncio.sleep(delay)
        else:
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
    raise_if_cancelled(cancel_event)


class PaginationWalker:
    """
    Sequentially fetches index pages 1..N and yields parsed listing cards.

    Stops when a page has no listing cards, when the page has no
    "next page" control, or when max_pages is reached. A fetch failure on
    any page raises FetchError and ends the walk.
    """

    def __init__(
        self,
        adapter: SiteAdapter,
        http_client: Optional[HTTPClient] = None,
        max_pages: int = MAX_PAGES,
        request_delay: float = REQUEST_DELAY_SECONDS,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.adapter = adapter
        self.http_client = http_client or HTTPClient()
        self.max_pages = max_pages
        self.request_delay = request_delay
        self.cancel_event = cancel_event
        self.pages_fetched = 0
        self.cards_skipped = 0

    async def iter_cards(self) -> AsyncIterator[ListingCard]:
        """Yield cards page by page, in page order then document order."""
        self.pages_fetched = 0
        self.cards_skipped = 0
        page = 1

        while page <= self.max_pages:
            raise_if_cancelled(self.cancel_event)

            url = self.adapter.page_url(page)
            logger.info(f"[scraper] Scraping page {page}: {url}")
            html = await self.http_client.get_text(url, page=page)
            self.pages_fetched += 1

            fragments = self.adapter.extract_cards(html)
            if not fragments:
                logger.info(f"[scraper] No more job listings found (page {page})")
                break

            now = datetime.now(SOURCE_TIMEZONE)
            for fragment in fragments:
                card = self.adapter.parse_fragment(fragment, now=now)
                if card is None:
                    self.cards_skipped += 1
                    continue
                yield card

            if not self.adapter.has_next_page(html):
                logger.info(f"[scraper] Last page reached (page {page})")
                break

            page += 1
            if page > self.max_pages:
                logger.warning(f"[scraper] Page limit {self.max_pages} reached, stopping")
                break

            await polite_pause(self.request_delay, self.cancel_event)

    async def walk(self) -> List[ListingCard]:
        """Materialise the whole walk into a list."""
        cards = [card async for card in self.iter_cards()]
        logger.info(
            f"[scraper] Walk complete: {len(cards)} cards from {self.pages_fetched} page(s), "
            f"{self.cards_skipped} skipped"
        )
        return cards
