"""
Site adapter system for the listing scraper.

Adapters hold all markup-specific logic for one job board, so the
pagination walker and the reconciler stay source-agnostic.
"""

from .base import SiteAdapter, ListingCard
from .registry import AdapterRegistry, get_adapter_registry

__all__ = [
    'SiteAdapter',
    'ListingCard',
    'AdapterRegistry',
    'get_adapter_registry'
]
