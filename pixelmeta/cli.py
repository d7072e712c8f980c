"""Command-line interface for pixelmeta."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.table import Table

from pixelmeta import __version__
from pixelmeta.api.cache import MetadataCache
from pixelmeta.api.registry import ScraperRegistry, create_client
from pixelmeta.config.catalog import CatalogError, SystemCatalog, load_catalog
from pixelmeta.config.loader import ConfigError, get_config_value, load_config
from pixelmeta.config.validator import ValidationError, validate_config
from pixelmeta.workflow.metadata_service import MetadataService
from pixelmeta.workflow.progress import AllDownloadResult, SystemDownloadResult

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog='pixelmeta',
        description='Game metadata and media scraper for ROM collections',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show cached metadata for a ROM
  pixelmeta get "Sonic The Hedgehog (USA).md" megadrive

  # Scrape one ROM, trying every provider
  pixelmeta download "Sonic The Hedgehog (USA).md" megadrive --fallback

  # Scrape a whole system with ScreenScraper, ignoring the cache
  pixelmeta --provider screenscraper system snes --force

  # Scrape every catalog system
  pixelmeta all
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='Path to config.yaml (default: ./config.yaml)'
    )

    parser.add_argument(
        '--provider',
        choices=['screenscraper', 'igdb'],
        help='Metadata provider. Overrides scrapers.default.'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    get_parser = subparsers.add_parser('get', help='Print cached metadata for a ROM')
    get_parser.add_argument('rom', help='ROM filename')
    get_parser.add_argument('system', help='System identifier')

    has_parser = subparsers.add_parser('has', help='Check whether a ROM has cached metadata')
    has_parser.add_argument('rom', help='ROM filename')
    has_parser.add_argument('system', help='System identifier')

    download_parser = subparsers.add_parser('download', help='Scrape metadata for one ROM')
    download_parser.add_argument('rom', help='ROM filename')
    download_parser.add_argument('system', help='System identifier')
    download_parser.add_argument(
        '--fallback',
        action='store_true',
        help='Try the other providers when the default one finds nothing'
    )

    system_parser = subparsers.add_parser('system', help='Scrape every ROM of a system')
    system_parser.add_argument('system', help='System identifier')
    system_parser.add_argument(
        '--force',
        action='store_true',
        help='Re-download metadata that is already cached'
    )

    all_parser = subparsers.add_parser('all', help='Scrape every catalog system')
    all_parser.add_argument(
        '--force',
        action='store_true',
        help='Re-download metadata that is already cached'
    )

    return parser


def _setup_logging(config: dict) -> None:
    """
    Setup logging configuration from config.

    Args:
        config: Configuration dictionary
    """
    logging_config = config.get('logging', {})

    level_str = (logging_config.get('level') or 'INFO').upper()
    level = getattr(logging, level_str, logging.INFO)

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    handlers.append(console_handler)

    # File handler (if configured)
    log_file = logging_config.get('file')
    if log_file:
        try:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_path, encoding='utf-8')
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )
            handlers.append(file_handler)
        except OSError as e:
            print(f"Error: Could not create log file '{log_file}': {e}", file=sys.stderr)
            sys.exit(1)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # httpx logs full URLs at DEBUG level, which would expose API credentials
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)

    # Pillow chunk parsing is very verbose at DEBUG
    logging.getLogger('PIL').setLevel(logging.INFO)


def _load_catalog(config: Dict[str, Any]) -> SystemCatalog:
    catalog_path = get_config_value(config, 'paths.catalog')
    if not catalog_path:
        logger.warning("No system catalog configured (paths.catalog); provider system ids are unmapped")
        return SystemCatalog()
    return load_catalog(Path(catalog_path))


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for pixelmeta CLI.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load and validate configuration
    try:
        config = load_config(args.config)
        validate_config(config)
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    _setup_logging(config)

    try:
        catalog = _load_catalog(config)
    except CatalogError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.provider:
        config['scrapers']['default'] = args.provider

    try:
        return asyncio.run(run_command(config, catalog, args))
    except KeyboardInterrupt:
        print("\n\nScraping interrupted by user.", file=sys.stderr)
        return 130


async def run_command(config: dict, catalog: SystemCatalog, args: argparse.Namespace) -> int:
    """
    Run one CLI command (async).

    Args:
        config: Loaded configuration
        catalog: System catalog
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    roms_root = Path(config['paths']['roms'])
    cache = MetadataCache(Path(config['paths']['app_data']))

    async with create_client(config) as client:
        registry = ScraperRegistry(config, catalog, client, cache)
        service = MetadataService(
            registry,
            catalog,
            default_provider=get_config_value(config, 'scrapers.default', 'igdb'),
        )

        if args.command == 'get':
            metadata = await service.get_metadata(args.rom, args.system, roms_root)
            if metadata is None:
                print(f"No cached metadata for {args.rom}", file=sys.stderr)
                return 1
            print(json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False))
            return 0

        if args.command == 'has':
            found = await service.has_metadata(args.rom, args.system, roms_root)
            print('yes' if found else 'no')
            return 0 if found else 1

        if args.command == 'download':
            if args.fallback:
                metadata = await service.download_metadata_with_fallback(args.rom, args.system, roms_root)
            else:
                metadata = await service.download_metadata(args.rom, args.system, roms_root)
            if metadata is None:
                print(f"No metadata found for {args.rom}", file=sys.stderr)
                return 1
            print(json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False))
            return 0

        shutdown_event = asyncio.Event()
        _install_signal_handler(shutdown_event)

        if args.command == 'system':
            result = await _run_system(service, args.system, roms_root, args.force, shutdown_event)
            _print_summary([result])
        else:
            all_result = await _run_all(service, roms_root, args.force, shutdown_event)
            _print_summary(all_result.systems, all_result)

        if shutdown_event.is_set():
            console.print("[yellow]Interrupted: remaining ROMs were not processed[/yellow]")
            return 130
        return 0


def _install_signal_handler(shutdown_event: asyncio.Event) -> None:
    """Stop batches after the current ROM on Ctrl-C."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
    except NotImplementedError:
        # Windows event loops: Ctrl-C raises KeyboardInterrupt instead
        logger.debug("Signal handlers not supported; Ctrl-C aborts immediately")


async def _run_system(
    service: MetadataService,
    system_id: str,
    roms_root: Path,
    force: bool,
    shutdown_event: asyncio.Event
) -> SystemDownloadResult:
    with _progress() as progress:
        task_id = progress.add_task(system_id, total=None)

        def on_progress(current: int, total: int, file_name: str) -> None:
            progress.update(task_id, completed=current - 1, total=total, description=f"{system_id}: {file_name}")

        result = await service.download_system_metadata(
            system_id,
            roms_root,
            on_progress=on_progress,
            force=force,
            shutdown_event=shutdown_event,
        )
        progress.update(task_id, completed=result.processed, description=system_id)
    return result


async def _run_all(
    service: MetadataService,
    roms_root: Path,
    force: bool,
    shutdown_event: asyncio.Event
) -> AllDownloadResult:
    tasks: Dict[str, TaskID] = {}

    with _progress() as progress:
        def on_progress(system_id: str, current: int, total: int, file_name: str) -> None:
            if system_id not in tasks:
                tasks[system_id] = progress.add_task(system_id, total=total)
            progress.update(
                tasks[system_id],
                completed=current - 1,
                total=total,
                description=f"{system_id}: {file_name}",
            )

        result = await service.download_all(
            roms_root,
            on_progress=on_progress,
            force=force,
            shutdown_event=shutdown_event,
        )

        for system_result in result.systems:
            task_id = tasks.get(system_result.system_id)
            if task_id is not None:
                progress.update(task_id, completed=system_result.processed, description=system_result.system_id)
    return result


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
        transient=False,
    )


def _print_summary(results: list, totals: Optional[AllDownloadResult] = None) -> None:
    table = Table(title="Metadata download summary")
    table.add_column("System")
    table.add_column("Processed", justify="right")
    table.add_column("Created", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="cyan")
    table.add_column("Failed", justify="right", style="red")

    for result in results:
        table.add_row(
            result.system_id,
            str(result.processed),
            str(result.created),
            str(result.skipped),
            str(result.failed),
        )

    if totals is not None:
        table.add_row(
            "[bold]Total[/bold]",
            str(totals.processed),
            str(totals.created),
            str(totals.skipped),
            str(totals.failed),
        )

    console.print(table)


if __name__ == '__main__':
    sys.exit(main())
