"""
Adapter registry: resolves a site adapter by source name.
"""
import logging
from typing import List, Dict, Optional
from .base import SiteAdapter

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "JobinRwanda"

# Global registry instance
_registry: Optional['AdapterRegistry'] = None


class AdapterRegistry:
    """Registry for site adapters"""

    def __init__(self):
        self._adapters: Dict[str, SiteAdapter] = {}

    def register(self, adapter: SiteAdapter):
        """Register an adapter under its source name"""
        if adapter.name in self._adapters:
            logger.warning(f"Adapter {adapter.name} already registered, replacing")
        self._adapters[adapter.name] = adapter
        logger.info(f"Registered site adapter: {adapter.name} ({adapter.base_url})")

    def get_adapter(self, name: str = DEFAULT_SOURCE) -> SiteAdapter:
        """
        Get adapter by source name.

        Raises:
            KeyError: if no adapter is registered under that name
        """
        adapter = self._adapters.get(name)
        if adapter is None:
            raise KeyError(f"No site adapter registered for source '{name}'")
        return adapter

    def list_adapters(self) -> List[Dict]:
        """List all registered adapters"""
        return [
            {
                'name': adapter.name,
                'base_url': adapter.base_url,
                'class': adapter.__class__.__name__
            }
            for adapter in self._adapters.values()
        ]


def get_adapter_registry() -> AdapterRegistry:
    """Get or create the global adapter registry"""
    global _registry
    if _registry is None:
        _registry = AdapterRegistry()
        _register_builtin_adapters(_registry)
    return _registry


def _register_builtin_adapters(registry: AdapterRegistry):
    """Register all built-in adapters"""
    from .jobinrwanda import JobInRwandaAdapter
    registry.register(JobInRwandaAdapter())
