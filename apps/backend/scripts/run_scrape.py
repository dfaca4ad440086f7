#!/usr/bin/env python3
"""
Run one scrape pass from the command line, without the API or scheduler.

    python scripts/run_scrape.py                 # walk and store
    python scripts/run_scrape.py --dry-run -v    # walk and print, no DB writes
"""

import os
import sys
import asyncio
import argparse
import logging

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv  # noqa: E402

load_dotenv(os.path.join(os.path.dirname(__file__), '..', '.env'))
load_dotenv()

from core.net import HTTPClient  # noqa: E402
from crawler.errors import ScrapeError  # noqa: E402
from crawler.html_fetch import PaginationWalker, MAX_PAGES, REQUEST_DELAY_SECONDS  # noqa: E402
from crawler.plugins.registry import get_adapter_registry, DEFAULT_SOURCE  # noqa: E402
from pipeline.integration import ScrapePipeline  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def dry_run(adapter, max_pages: int, delay: float, verbose: bool) -> int:
    walker = PaginationWalker(adapter, HTTPClient(), max_pages=max_pages, request_delay=delay)
    cards = await walker.walk()
    print(f"\nFound {len(cards)} listings on {walker.pages_fetched} page(s)")
    for card in cards[: None if verbose else 5]:
        print(f"  - {card.title} | {card.company} | {card.location} | deadline {card.deadline.date()}")
        print(f"    {card.source_url}")
    return 0


async def full_run(adapter, max_pages: int, delay: float) -> int:
    pipeline = ScrapePipeline(adapter=adapter, max_pages=max_pages, request_delay=delay)
    result = await pipeline.run()
    print(
        f"\nfound={result.found} inserted={result.inserted} "
        f"updated={result.updated} failed={result.failed} ({result.duration_ms}ms)"
    )
    return 1 if result.failed else 0


def main():
    parser = argparse.ArgumentParser(description="Run one job listing scrape")
    parser.add_argument("--source", default=DEFAULT_SOURCE, help="Registered source name")
    parser.add_argument("--max-pages", type=int, default=MAX_PAGES, help="Page ceiling")
    parser.add_argument("--delay", type=float, default=REQUEST_DELAY_SECONDS, help="Seconds between requests")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not write to the database")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print every parsed listing")
    args = parser.parse_args()

    registry = get_adapter_registry()
    try:
        adapter = registry.get_adapter(args.source)
    except KeyError as e:
        print(f"❌ {e}. Available: {[a['name'] for a in registry.list_adapters()]}")
        sys.exit(2)

    try:
        if args.dry_run:
            code = asyncio.run(dry_run(adapter, args.max_pages, args.delay, args.verbose))
        else:
            code = asyncio.run(full_run(adapter, args.max_pages, args.delay))
    except ScrapeError as e:
        logger.error(f"Scrape failed: {e}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
