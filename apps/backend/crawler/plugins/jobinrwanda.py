"""
JobinRwanda site adapter.
Static HTML listing index at /jobs/all?page=N, one .job-card per listing.
"""
import logging
from datetime import datetime
from typing import List, Optional
from urllib.parse import urljoin
from bs4 import Tag

from core.normalize import normalize_date, default_deadline, SOURCE_TIMEZONE
from .base import (
    SiteAdapter,
    ListingCard,
    DEFAULT_COMPANY,
    DEFAULT_LOCATION,
    DEFAULT_JOB_TYPE,
)

logger = logging.getLogger(__name__)

SOURCE_NAME = "JobinRwanda"
BASE_URL = "https://www.jobinrwanda.com"
LIST_PATH = "/jobs/all"

CARD_SELECTOR = '.job-list .job-card'
NEXT_PAGE_SELECTOR = 'a[rel="next"]'
DETAIL_LINK_SELECTOR = 'a[href*="/job/"]'


def _text(fragment: Tag, selector: str) -> str:
    elem = fragment.select_one(selector)
    if elem is None:
        return ""
    return ' '.join(elem.get_text(" ", strip=True).split())


class JobInRwandaAdapter(SiteAdapter):
    """Adapter for www.jobinrwanda.com"""

    def __init__(self):
        super().__init__(name=SOURCE_NAME, base_url=BASE_URL, list_path=LIST_PATH)

    def extract_cards(self, html: str) -> List[Tag]:
        soup = self.get_soup(html)
        return soup.select(CARD_SELECTOR)

    def has_next_page(self, html: str) -> bool:
        soup = self.get_soup(html)
        return soup.select_one(NEXT_PAGE_SELECTOR) is not None

    def parse_fragment(self, fragment: Tag, now: Optional[datetime] = None) -> Optional[ListingCard]:
        try:
            return self._parse_card(fragment, now)
        except Exception as e:
            # One malformed card must not sink the page
            logger.error(f"[jobinrwanda] Error parsing job card: {e}", exc_info=True)
            return None

    def _parse_card(self, fragment: Tag, now: Optional[datetime]) -> Optional[ListingCard]:
        link = fragment.select_one(DETAIL_LINK_SELECTOR)
        href = (link.get('href') or '').strip() if link else ''
        if not href:
            logger.warning("[jobinrwanda] No job URL found for job card")
            return None

        title = _text(fragment, 'h5.job-title')
        if not title:
            logger.warning(f"[jobinrwanda] Job card without title: {href}")
            return None

        source_url = href if href.startswith('http') else urljoin(self.base_url + '/', href)

        company = _text(fragment, '.company-name') or DEFAULT_COMPANY
        location = _text(fragment, '.location') or DEFAULT_LOCATION
        job_type = _text(fragment, '.job-type') or DEFAULT_JOB_TYPE
        experience = _text(fragment, '.experience')

        if now is None:
            now = datetime.now(SOURCE_TIMEZONE)
        posted_date = normalize_date(_text(fragment, '.posted-date'), now=now) or now
        deadline = normalize_date(_text(fragment, '.deadline'), now=now) or default_deadline(posted_date)

        return ListingCard(
            title=title,
            company=company,
            location=location,
            job_type=job_type,
            posted_date=posted_date,
            deadline=deadline,
            source_url=source_url,
            description=f"Experience: {experience}\n\n" if experience else "",
            experience_level=experience or None,
        )
