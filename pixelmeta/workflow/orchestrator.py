"""
Batch orchestrator for metadata downloads.

Coordinates a system-wide scrape:
1. List and filter ROM files
2. Skip ROMs that already have cached metadata
3. Download metadata for the rest, one ROM at a time
"""

import asyncio
import inspect
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from pixelmeta.config.catalog import SystemCatalog
from pixelmeta.scanner.rom_filter import filter_roms
from pixelmeta.scanner.rom_scanner import ScannerError, list_rom_files
from pixelmeta.workflow.progress import (
    CREATED,
    FAILED,
    SKIPPED,
    AllDownloadResult,
    SystemDownloadResult,
)

if TYPE_CHECKING:
    from pixelmeta.api.base_scraper import BaseScraper

logger = logging.getLogger(__name__)

# Number of excluded filenames echoed in the log
EXCLUDED_LOG_LIMIT = 10

SystemProgressCallback = Callable[[int, int, str], Any]
AllProgressCallback = Callable[[str, int, int, str], Any]


async def _notify(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    """
    Invoke a progress callback; coroutine callbacks are awaited.

    Errors raised by the callback are logged and never stop the batch.
    """
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning(f"Progress callback failed: {e}", exc_info=True)


class BatchOrchestrator:
    """
    Runs system-wide downloads for any scraper.

    Example:
        orchestrator = BatchOrchestrator(delay_seconds=1.0)
        result = await orchestrator.download_system_metadata(scraper, 'snes', roms_root)
    """

    def __init__(self, delay_seconds: float = 1.0):
        """
        Initialize orchestrator.

        Args:
            delay_seconds: Pause after every ROM that hit the network
        """
        self.delay_seconds = delay_seconds

    async def download_system_metadata(
        self,
        scraper: 'BaseScraper',
        system_id: str,
        roms_root: Path,
        on_progress: Optional[SystemProgressCallback] = None,
        force: bool = False,
        exclude: Optional[Iterable[str]] = None,
        extensions: Optional[Iterable[str]] = None,
        shutdown_event: Optional[asyncio.Event] = None
    ) -> SystemDownloadResult:
        """
        Download metadata for every ROM of a system.

        Args:
            scraper: Provider adapter to use
            system_id: System identifier (directory name under roms_root)
            roms_root: Root ROM directory
            on_progress: Called as (current, total, file_name), 1-based,
                         before each ROM; may be a coroutine function
            force: Re-download even when metadata is cached
            exclude: Exclude patterns
            extensions: Allowed extensions; None allows all
            shutdown_event: When set, stops before the next ROM

        Returns:
            SystemDownloadResult. An unreadable system directory yields an
            empty result.
        """
        result = SystemDownloadResult(system_id=system_id)

        try:
            files = list_rom_files(roms_root, system_id)
        except ScannerError as e:
            logger.error(f"Error downloading system metadata with {scraper.name}: {e}")
            return result

        rom_files, excluded = filter_roms(files, extensions=extensions, exclude=exclude)
        if excluded:
            logger.info(
                f"Exclude applied for system '{system_id}': {len(excluded)} file(s) ignored -> "
                f"{excluded[:EXCLUDED_LOG_LIMIT]}"
            )

        total = len(rom_files)
        result.processed = total
        logger.info(f"{scraper.name}: processing {total} ROM(s) for {system_id}")

        for current, rom_file in enumerate(rom_files, start=1):
            if shutdown_event is not None and shutdown_event.is_set():
                result.processed = current - 1
                logger.info(
                    f"Batch for {system_id} cancelled after {result.processed}/{total} ROM(s)"
                )
                break

            await _notify(on_progress, current, total, rom_file)

            if not force and await scraper.has_metadata(rom_file, system_id, roms_root):
                result.add(rom_file, SKIPPED)
                logger.debug(f"[{rom_file}] skipped (cached)")
                continue

            try:
                metadata = await scraper.download_metadata(rom_file, system_id, roms_root)
            except Exception as e:
                logger.error(f"[{rom_file}] download failed: {e}", exc_info=True)
                metadata = None

            if metadata is not None:
                result.add(rom_file, CREATED, metadata)
                logger.debug(f"[{rom_file}] created")
            else:
                result.add(rom_file, FAILED)
                logger.debug(f"[{rom_file}] failed")

            if self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)

        logger.info(
            f"{scraper.name} {system_id}: {result.created} created, "
            f"{result.skipped} skipped, {result.failed} failed"
        )
        return result

    async def download_all(
        self,
        scraper: 'BaseScraper',
        catalog: SystemCatalog,
        roms_root: Path,
        on_progress: Optional[AllProgressCallback] = None,
        force: bool = False,
        shutdown_event: Optional[asyncio.Event] = None
    ) -> AllDownloadResult:
        """
        Download metadata for every catalog system, in catalog order.

        Args:
            scraper: Provider adapter to use
            catalog: System catalog (supplies exclude lists and extensions)
            roms_root: Root ROM directory
            on_progress: Called as (system_id, current, total, file_name)
            force: Re-download even when metadata is cached
            shutdown_event: When set, stops before the next ROM or system

        Returns:
            AllDownloadResult with per-system results and totals
        """
        totals = AllDownloadResult()

        for system in catalog:
            if shutdown_event is not None and shutdown_event.is_set():
                break

            def system_progress(current: int, total: int, file_name: str, _id: str = system.id):
                return on_progress(_id, current, total, file_name) if on_progress else None

            result = await self.download_system_metadata(
                scraper,
                system.id,
                roms_root,
                on_progress=system_progress,
                force=force,
                exclude=system.exclude,
                extensions=system.extensions or None,
                shutdown_event=shutdown_event,
            )
            totals.add(result)

        logger.info(
            f"All systems: {totals.processed} processed, {totals.created} created, "
            f"{totals.skipped} skipped, {totals.failed} failed"
        )
        return totals
