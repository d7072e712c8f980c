"""Abstract metadata scraper shared by all providers."""

import abc
import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Optional

import httpx

from pixelmeta.api.cache import MetadataCache
from pixelmeta.api.error_handler import (
    ProviderHTTPError,
    RateLimitedError,
    ResponseError,
    ScraperError,
    excerpt,
)
from pixelmeta.api.game_types import GameMetadata, ScrapedGame
from pixelmeta.config.catalog import SystemCatalog
from pixelmeta.media.downloader import AssetDownloader, build_timeout
from pixelmeta.media.media_types import ImageType, VideoType
from pixelmeta.media.url_selector import MediaURLSelector
from pixelmeta.scanner.rom_filter import clean_rom_name

if TYPE_CHECKING:
    from pixelmeta.workflow.orchestrator import BatchOrchestrator
    from pixelmeta.workflow.progress import SystemDownloadResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], Any]


def credential(credentials: Dict[str, Any], key: str) -> Optional[str]:
    """
    Read one credential value as a trimmed string.

    YAML turns numeric ids (``clientId: 12345``) into ints, but query
    params and headers need strings.

    Returns:
        The value as a string, or None when missing or blank
    """
    value = credentials.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class BaseScraper(abc.ABC):
    """
    Base class for provider adapters.

    Subclasses implement the provider protocol in ``_search_game`` and the
    media classification hooks; downloading, caching and batch processing
    are shared.
    """

    name: str = "base"
    user_agent: str = "pixel-frontend/0.0.1"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: MetadataCache,
        catalog: Optional[SystemCatalog] = None,
        request_timeout: float = 30,
        validation_mode: str = 'disabled',
        orchestrator: Optional['BatchOrchestrator'] = None
    ):
        """
        Initialize scraper.

        Args:
            client: Shared httpx.AsyncClient
            cache: Metadata cache for documents and media
            catalog: System catalog for provider system ids
            request_timeout: Read timeout for every HTTP call, in seconds
            validation_mode: Image validation mode for media downloads
            orchestrator: Batch orchestrator; a default one is created lazily
        """
        self.client = client
        self.cache = cache
        self.catalog = catalog or SystemCatalog()
        self._timeout = build_timeout(request_timeout)
        self.downloader = AssetDownloader(
            client=client,
            user_agent=self.user_agent,
            timeout=request_timeout,
            validation_mode=validation_mode,
        )
        self._orchestrator = orchestrator

    # ------------------------------------------------------------------
    # Provider hooks
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def _search_game(self, rom_file_name: str, system_id: str) -> Optional[ScrapedGame]:
        """
        Provider-specific search.

        May raise ScraperError or httpx.HTTPError; search_game converts
        those into a None result.
        """

    @abc.abstractmethod
    def get_system_id(self, system_id: str) -> Optional[str]:
        """Get the provider's identifier for a catalog system, if mapped."""

    @abc.abstractmethod
    def get_image_type(self, media_type: str) -> Optional[ImageType]:
        """Map a provider media tag to an image category."""

    def get_video_type(self, media_type: str) -> Optional[VideoType]:
        """Map a provider media tag to a video subtype. No video support by default."""
        return None

    def get_image_quality_priority(
        self,
        image_type: ImageType,
        media_type: str,
        media_format: Optional[str] = None
    ) -> int:
        """
        Quality score among images of the same category.

        Higher wins; the default gives every candidate the same score so
        the first one seen is kept.
        """
        return 0

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def search_game(self, rom_file_name: str, system_id: str) -> Optional[ScrapedGame]:
        """
        Search the provider for a ROM.

        Never raises for expected failures: not found, missing
        credentials, rate limiting, HTTP errors and malformed responses
        are logged and reported as None.

        Args:
            rom_file_name: ROM filename (e.g., 'Sonic (USA).md')
            system_id: Catalog system identifier

        Returns:
            ScrapedGame or None
        """
        try:
            return await self._search_game(rom_file_name, system_id)
        except RateLimitedError as e:
            logger.warning(f"{self.name} API rate limit exceeded: {e}")
        except ProviderHTTPError as e:
            logger.error(f"{self.name} API error {e.status_code}: {e} Body: {excerpt(e.body)}")
        except ResponseError as e:
            logger.error(f"{self.name} invalid response: {e}")
        except ScraperError as e:
            logger.error(f"{self.name} error: {e}")
        except httpx.TimeoutException as e:
            logger.error(f"{self.name} request timeout for {rom_file_name}: {e}")
        except httpx.HTTPError as e:
            logger.error(f"{self.name} network error for {rom_file_name}: {e}")
        return None

    def clean_rom_name(self, file_name: str) -> str:
        """Clean ROM filename for searching."""
        return clean_rom_name(file_name)

    async def download_metadata(
        self,
        rom_file_name: str,
        system_id: str,
        roms_root: Optional[Path] = None
    ) -> Optional[GameMetadata]:
        """
        Search, download the best media and persist metadata for a ROM.

        Args:
            rom_file_name: ROM filename
            system_id: Catalog system identifier
            roms_root: ROM root directory (unused; the cache lives under
                       application data)

        Returns:
            GameMetadata, or None if the game was not found. Media
            failures do not fail the download.

        Raises:
            OSError: If the cache directory or document cannot be written
        """
        async with self.cache.lock_for(system_id, rom_file_name):
            game = await self.search_game(rom_file_name, system_id)
            if game is None:
                return None

            metadata = GameMetadata.from_scraped(game)
            directory = self.cache.ensure_system_dir(system_id)
            self.cache.remove_assets(system_id, rom_file_name)

            if game.media:
                selector = MediaURLSelector(
                    get_image_type=self.get_image_type,
                    get_quality_priority=self.get_image_quality_priority,
                    get_video_type=self.get_video_type,
                )

                for image_type, selected in selector.select_images(game.media).items():
                    image_path = await self.downloader.download_image(
                        selected.url,
                        directory,
                        self.cache.image_stem(rom_file_name, image_type),
                    )
                    if image_path:
                        metadata.images[image_type.value] = str(image_path)

                for video_type, media in selector.select_videos(game.media):
                    video_path = await self.downloader.download_video(
                        media.url,
                        directory,
                        self.cache.video_stem(rom_file_name, video_type),
                    )
                    if video_path:
                        metadata.videos[video_type.value] = str(video_path)

            self.cache.save(system_id, rom_file_name, metadata)
            logger.info(
                f"{self.name}: saved metadata for {rom_file_name} "
                f"({len(metadata.images)} images, {len(metadata.videos)} videos)"
            )
            return metadata

    async def get_cached_metadata(
        self,
        rom_file_name: str,
        system_id: str,
        roms_root: Optional[Path] = None
    ) -> Optional[GameMetadata]:
        """Read cached metadata; never touches the network."""
        return self.cache.load(system_id, rom_file_name)

    async def has_metadata(
        self,
        rom_file_name: str,
        system_id: str,
        roms_root: Optional[Path] = None
    ) -> bool:
        """Check whether metadata is cached for a ROM."""
        return self.cache.exists(system_id, rom_file_name)

    async def download_system_metadata(
        self,
        system_id: str,
        roms_root: Path,
        on_progress: Optional[ProgressCallback] = None,
        force: bool = False,
        exclude: Optional[Iterable[str]] = None,
        extensions: Optional[Iterable[str]] = None,
        shutdown_event: Optional[asyncio.Event] = None
    ) -> 'SystemDownloadResult':
        """Scrape every ROM of a system. See BatchOrchestrator."""
        return await self.orchestrator.download_system_metadata(
            self,
            system_id,
            roms_root,
            on_progress=on_progress,
            force=force,
            exclude=exclude,
            extensions=extensions,
            shutdown_event=shutdown_event,
        )

    @property
    def orchestrator(self) -> 'BatchOrchestrator':
        if self._orchestrator is None:
            from pixelmeta.workflow.orchestrator import BatchOrchestrator
            self._orchestrator = BatchOrchestrator()
        return self._orchestrator

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.client.get(
            url,
            params=params,
            headers={'User-Agent': self.user_agent},
            timeout=self._timeout,
        )
