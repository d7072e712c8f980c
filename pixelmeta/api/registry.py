"""
Scraper registry and shared HTTP client setup.

Adapters are created lazily from the configuration snapshot current at
the time of the first request for a provider, then reused.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Type

import httpx

from pixelmeta.api.base_scraper import BaseScraper
from pixelmeta.api.cache import MetadataCache
from pixelmeta.api.igdb import IgdbScraper
from pixelmeta.api.screenscraper import ScreenScraperScraper
from pixelmeta.config.catalog import SystemCatalog
from pixelmeta.config.loader import get_config_value
from pixelmeta.media.downloader import build_timeout
from pixelmeta.workflow.orchestrator import BatchOrchestrator

logger = logging.getLogger(__name__)

# Registry order is also the fallback order
SCRAPER_TYPES: Dict[str, Type[BaseScraper]] = {
    'screenscraper': ScreenScraperScraper,
    'igdb': IgdbScraper,
}


def create_client(config: Dict[str, Any], max_connections: int = 10) -> httpx.AsyncClient:
    """
    Create the shared httpx client.

    Args:
        config: Configuration dictionary (reads api.request_timeout)
        max_connections: Maximum number of pooled connections

    Returns:
        Configured httpx.AsyncClient
    """
    timeout = get_config_value(config, 'api.request_timeout', 30)

    limits = httpx.Limits(
        max_connections=max_connections,
        max_keepalive_connections=max_connections,
        keepalive_expiry=90.0,
    )
    timeout_config = build_timeout(timeout)

    client = httpx.AsyncClient(
        timeout=timeout_config,
        limits=limits,
        follow_redirects=True,
    )
    logger.debug(f"HTTP client: max_connections={max_connections}, timeout={timeout}s")
    return client


def _deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ScraperRegistry:
    """
    Memoizes one adapter per provider type.

    Example:
        registry = ScraperRegistry(config, catalog, client, cache)
        scraper = registry.get('igdb')
    """

    def __init__(
        self,
        config: Dict[str, Any],
        catalog: SystemCatalog,
        client: httpx.AsyncClient,
        cache: MetadataCache,
        orchestrator: Optional[BatchOrchestrator] = None
    ):
        """
        Initialize registry.

        Args:
            config: Configuration dictionary (scrapers, api and media sections)
            catalog: System catalog shared by every adapter
            client: Shared httpx.AsyncClient
            cache: Shared metadata cache
            orchestrator: Batch orchestrator shared by every adapter
        """
        self.config = copy.deepcopy(config or {})
        self.catalog = catalog
        self.client = client
        self.cache = cache
        self.orchestrator = orchestrator or BatchOrchestrator(
            delay_seconds=get_config_value(self.config, 'api.batch_delay_seconds', 1.0)
        )
        self._scrapers: Dict[str, BaseScraper] = {}

    def available(self) -> List[str]:
        """Provider types in registry order."""
        return list(SCRAPER_TYPES)

    def get(self, scraper_type: str) -> BaseScraper:
        """
        Get the adapter for a provider type, creating it on first use.

        Raises:
            ValueError: If the provider type is unknown
        """
        scraper = self._scrapers.get(scraper_type)
        if scraper is not None:
            return scraper

        scraper_class = SCRAPER_TYPES.get(scraper_type)
        if scraper_class is None:
            raise ValueError(
                f"Unknown scraper type: {scraper_type} "
                f"(available: {', '.join(self.available())})"
            )

        scraper = scraper_class(
            client=self.client,
            cache=self.cache,
            credentials=get_config_value(self.config, f'scrapers.{scraper_type}', {}) or {},
            catalog=self.catalog,
            request_timeout=get_config_value(self.config, 'api.request_timeout', 30),
            validation_mode=get_config_value(self.config, 'media.validation_mode', 'disabled'),
            orchestrator=self.orchestrator,
        )
        self._scrapers[scraper_type] = scraper
        logger.debug(f"Created {scraper.name} scraper")
        return scraper

    def invalidate(self, scraper_type: str) -> None:
        """Drop the cached adapter so the next get() rebuilds it."""
        self._scrapers.pop(scraper_type, None)

    def clear(self) -> None:
        """Drop every cached adapter."""
        self._scrapers.clear()

    def update_config(self, partial: Dict[str, Any]) -> None:
        """
        Merge a partial configuration and drop cached adapters.

        Args:
            partial: Nested mapping merged key by key into the current config
        """
        self.config = _deep_merge(self.config, partial or {})
        self.clear()
        logger.info("Scraper configuration updated")
