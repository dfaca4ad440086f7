"""
Date normalization for scraped listings.

Job boards print dates in many shapes: ISO dates, day-first and
month-first numeric dates, abbreviated and full month names, and
relative phrases such as "3 days ago". normalize_date() turns any of
these into a timezone-aware datetime, or None when nothing matches.
Callers apply their own defaults.
"""

import re
import logging
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

SOURCE_TIMEZONE = ZoneInfo("Africa/Kigali")

DEFAULT_DEADLINE_DAYS = 30

# Tried in order; the first format that parses wins.
DATE_FORMATS = [
    '%Y-%m-%d',      # 2023-12-31
    '%d/%m/%Y',      # 31/12/2023
    '%m/%d/%Y',      # 12/31/2023
    '%d %b %Y',      # 31 Dec 2023
    '%b %d, %Y',     # Dec 31, 2023
    '%d-%m-%Y',      # 31-12-2023
    '%Y/%m/%d',      # 2023/12/31
    '%d %B %Y',      # 31 December 2023
    '%B %d, %Y',     # December 31, 2023
]

RELATIVE_DATE_RE = re.compile(r'(\d+)\s+(day|week|month|year)s?\s+ago', re.IGNORECASE)

# "Deadline: 12 Mar 2024", "Posted on: ..." -> drop the label
LABEL_PREFIX_RE = re.compile(r'^[A-Za-z][A-Za-z ]*:\s*')


def _parse_iso(text: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=SOURCE_TIMEZONE)
    return parsed


def _parse_absolute(text: str) -> Optional[datetime]:
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.replace(tzinfo=SOURCE_TIMEZONE)

    # Full ISO-8601 timestamps ("2024-03-15T09:30:00Z")
    if 'T' in text:
        return _parse_iso(text)

    return None


def _parse_relative(text: str, now: datetime) -> Optional[datetime]:
    match = RELATIVE_DATE_RE.search(text)
    if not match:
        return None

    amount = int(match.group(1))
    unit = match.group(2).lower()

    if unit == 'day':
        return now - relativedelta(days=amount)
    if unit == 'week':
        return now - relativedelta(weeks=amount)
    if unit == 'month':
        return now - relativedelta(months=amount)
    return now - relativedelta(years=amount)


def normalize_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse scraped date text into an aware datetime.

    Absolute formats are tried first, in DATE_FORMATS order, and resolve to
    midnight in the source timezone. Then "<N> <unit>(s) ago" is resolved
    against `now`. Anything else yields None; this function never raises.

    Args:
        text: Raw date text (may be None, blank or garbage)
        now: Reference time for relative phrases (default: current time)

    Returns:
        Timezone-aware datetime, or None if unparseable
    """
    if not text:
        return None

    cleaned = ' '.join(text.split())
    if not cleaned:
        return None
    cleaned = LABEL_PREFIX_RE.sub('', cleaned)

    parsed = _parse_absolute(cleaned)
    if parsed:
        return parsed

    if now is None:
        now = datetime.now(SOURCE_TIMEZONE)
    parsed = _parse_relative(cleaned, now)
    if parsed:
        return parsed

    logger.warning(f"[normalize] Could not parse date: {text!r}")
    return None


def default_deadline(posted: datetime) -> datetime:
    """Deadline used when the listing does not state a parseable one."""
    return posted + timedelta(days=DEFAULT_DEADLINE_DAYS)
