"""
Scrape pipeline: walk the listing index, then reconcile each card.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from core.net import HTTPClient
from crawler.html_fetch import (
    PaginationWalker,
    MAX_PAGES,
    REQUEST_DELAY_SECONDS,
    polite_pause,
    raise_if_cancelled,
)
from crawler.plugins.base import SiteAdapter
from crawler.plugins.registry import get_adapter_registry
from .db_insert import ListingReconciler, ReconcileOutcome

logger = logging.getLogger(__name__)


@dataclass
class ScrapeResult:
    found: int = 0
    inserted: int = 0
    updated: int = 0
    failed: int = 0
    pages: int = 0
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class ScrapePipeline:
    """One full pass over a source: fetch every page, store every card."""

    def __init__(
        self,
        adapter: Optional[SiteAdapter] = None,
        reconciler: Optional[ListingReconciler] = None,
        http_client: Optional[HTTPClient] = None,
        max_pages: int = MAX_PAGES,
        request_delay: float = REQUEST_DELAY_SECONDS,
        record_delay: Optional[float] = None,
    ):
        self.adapter = adapter or get_adapter_registry().get_adapter()
        self.reconciler = reconciler or ListingReconciler(source=self.adapter.name)
        self.http_client = http_client or HTTPClient()
        self.max_pages = max_pages
        self.request_delay = request_delay
        self.record_delay = request_delay if record_delay is None else record_delay

    async def run(self, cancel_event: Optional[asyncio.Event] = None) -> ScrapeResult:
        """
        Execute one pass.

        Raises:
            FetchError: a listing page could not be fetched
            ScrapeCancelled: cancel_event was set mid-run
        """
        start_time = time.time()
        logger.info(f"[scraper] Starting scrape of {self.adapter.name}")

        walker = PaginationWalker(
            self.adapter,
            self.http_client,
            max_pages=self.max_pages,
            request_delay=self.request_delay,
            cancel_event=cancel_event,
        )
        cards = await walker.walk()
        result = ScrapeResult(found=len(cards), pages=walker.pages_fetched)

        for index, card in enumerate(cards):
            if index > 0:
                await polite_pause(self.record_delay, cancel_event)
            else:
                raise_if_cancelled(cancel_event)

            # psycopg2 blocks; keep the event loop free for API requests
            outcome = await asyncio.to_thread(self.reconciler.reconcile, card)
            if outcome is ReconcileOutcome.INSERTED:
                result.inserted += 1
            elif outcome is ReconcileOutcome.UPDATED:
                result.updated += 1
            else:
                result.failed += 1

        result.duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"[scraper] Scrape of {self.adapter.name} complete: found={result.found}, "
            f"inserted={result.inserted}, updated={result.updated}, failed={result.failed}, "
            f"duration={result.duration_ms}ms"
        )
        return result
