"""
Metadata service facade.

Single entry point used by the front-end shell: every operation runs
against the default provider unless stated otherwise.
"""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pixelmeta.api.game_types import GameMetadata
from pixelmeta.config.catalog import SystemCatalog
from pixelmeta.workflow.orchestrator import (
    AllProgressCallback,
    BatchOrchestrator,
    SystemProgressCallback,
)
from pixelmeta.workflow.progress import AllDownloadResult, SystemDownloadResult

if TYPE_CHECKING:
    from pixelmeta.api.base_scraper import BaseScraper
    from pixelmeta.api.registry import ScraperRegistry

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "igdb"


class MetadataService:
    """
    Facade over the scraper registry and the batch orchestrator.

    Example:
        service = MetadataService(registry, catalog)
        metadata = await service.download_metadata('Sonic (USA).md', 'megadrive', roms_root)
    """

    def __init__(
        self,
        registry: 'ScraperRegistry',
        catalog: SystemCatalog,
        default_provider: str = DEFAULT_PROVIDER,
        orchestrator: Optional[BatchOrchestrator] = None
    ):
        """
        Initialize service.

        Args:
            registry: Scraper registry
            catalog: System catalog (exclude lists, extensions, system order)
            default_provider: Provider type used by default
            orchestrator: Batch orchestrator; defaults to the registry's

        Raises:
            ValueError: If default_provider is not a known provider type
        """
        self.registry = registry
        self.catalog = catalog
        self.orchestrator = orchestrator or registry.orchestrator
        self._default_provider = DEFAULT_PROVIDER
        self.set_default_provider(default_provider)

    @property
    def default_provider(self) -> str:
        return self._default_provider

    def set_default_provider(self, provider: str) -> None:
        """
        Change the default provider.

        Raises:
            ValueError: If provider is not a known provider type
        """
        if provider not in self.registry.available():
            raise ValueError(
                f"Unknown scraper type: {provider} "
                f"(available: {', '.join(self.registry.available())})"
            )
        self._default_provider = provider
        logger.info(f"Default metadata provider: {provider}")

    def available_providers(self) -> List[str]:
        return self.registry.available()

    def update_config(self, config: Dict[str, Any]) -> None:
        """Merge new scraper configuration; adapters are rebuilt on next use."""
        self.registry.update_config(config)

    def _scraper(self) -> 'BaseScraper':
        return self.registry.get(self._default_provider)

    async def get_metadata(
        self,
        rom_file_name: str,
        system_id: str,
        roms_root: Optional[Path] = None
    ) -> Optional[GameMetadata]:
        """Cached metadata for a ROM; never touches the network."""
        return await self._scraper().get_cached_metadata(rom_file_name, system_id, roms_root)

    async def download_metadata(
        self,
        rom_file_name: str,
        system_id: str,
        roms_root: Optional[Path] = None
    ) -> Optional[GameMetadata]:
        """Download metadata for one ROM with the default provider."""
        return await self._scraper().download_metadata(rom_file_name, system_id, roms_root)

    async def has_metadata(
        self,
        rom_file_name: str,
        system_id: str,
        roms_root: Optional[Path] = None
    ) -> bool:
        return await self._scraper().has_metadata(rom_file_name, system_id, roms_root)

    async def download_metadata_with_fallback(
        self,
        rom_file_name: str,
        system_id: str,
        roms_root: Optional[Path] = None
    ) -> Optional[GameMetadata]:
        """
        Try the default provider, then every other provider in registry order.

        Returns:
            Metadata from the first provider that finds the game, or None
        """
        metadata = await self.download_metadata(rom_file_name, system_id, roms_root)
        if metadata is not None:
            return metadata

        for provider in self.registry.available():
            if provider == self._default_provider:
                continue
            logger.info(f"[{rom_file_name}] falling back to {provider}")
            metadata = await self.registry.get(provider).download_metadata(
                rom_file_name, system_id, roms_root
            )
            if metadata is not None:
                return metadata

        return None

    async def download_system_metadata(
        self,
        system_id: str,
        roms_root: Path,
        on_progress: Optional[SystemProgressCallback] = None,
        force: bool = False,
        exclude: Optional[List[str]] = None,
        shutdown_event: Optional[asyncio.Event] = None
    ) -> SystemDownloadResult:
        """
        Download metadata for every ROM of a system with the default provider.

        Args:
            system_id: System identifier
            roms_root: Root ROM directory
            on_progress: Called as (current, total, file_name)
            force: Re-download even when metadata is cached
            exclude: Exclude patterns; defaults to the catalog's list for the system
            shutdown_event: When set, stops before the next ROM

        Returns:
            SystemDownloadResult
        """
        system = self.catalog.get(system_id)
        if exclude is None:
            exclude = system.exclude if system else []
        extensions = system.extensions if system and system.extensions else None

        return await self.orchestrator.download_system_metadata(
            self._scraper(),
            system_id,
            roms_root,
            on_progress=on_progress,
            force=force,
            exclude=exclude,
            extensions=extensions,
            shutdown_event=shutdown_event,
        )

    async def download_all(
        self,
        roms_root: Path,
        on_progress: Optional[AllProgressCallback] = None,
        force: bool = False,
        shutdown_event: Optional[asyncio.Event] = None
    ) -> AllDownloadResult:
        """Download metadata for every catalog system with the default provider."""
        return await self.orchestrator.download_all(
            self._scraper(),
            self.catalog,
            roms_root,
            on_progress=on_progress,
            force=force,
            shutdown_event=shutdown_event,
        )
