"""
Scrape metrics (Prometheus counters).
Exposed at /api/metrics.
"""
import logging

from prometheus_client import Counter, CONTENT_TYPE_LATEST, generate_latest

logger = logging.getLogger(__name__)

CONTENT_TYPE = CONTENT_TYPE_LATEST

jobs_inserted = Counter('dypse_jobs_inserted_total', 'Total listings inserted')
jobs_updated = Counter('dypse_jobs_updated_total', 'Total listings updated')
jobs_failed = Counter('dypse_jobs_failed_total', 'Total listings that failed to store')
scrape_runs = Counter('dypse_scrape_runs_total', 'Scrape runs by outcome', ['outcome'])


def incr_inserted(n: int = 1):
    if n > 0:
        jobs_inserted.inc(n)


def incr_updated(n: int = 1):
    if n > 0:
        jobs_updated.inc(n)


def incr_failed(n: int = 1):
    if n > 0:
        jobs_failed.inc(n)


def record_run(outcome: str):
    """Count a finished run ('success', 'failed', 'cancelled')."""
    scrape_runs.labels(outcome=outcome).inc()


def render_latest() -> bytes:
    """Prometheus text exposition of the default registry."""
    return generate_latest()
