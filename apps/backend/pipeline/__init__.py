"""
Listing ingestion pipeline.

Walks a job board's paginated index and reconciles every parsed listing
into the scraped_jobs table.
"""

from .db_insert import ListingReconciler, ReconcileOutcome
from .integration import ScrapePipeline, ScrapeResult

__version__ = "1.0.0"

__all__ = [
    'ListingReconciler',
    'ReconcileOutcome',
    'ScrapePipeline',
    'ScrapeResult',
]
