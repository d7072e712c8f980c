"""ScreenScraper provider adapter."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional, Union
from urllib.parse import urlencode

import httpx

from pixelmeta.api.base_scraper import BaseScraper, credential
from pixelmeta.api.cache import MetadataCache
from pixelmeta.api.error_handler import ResponseError, ScraperError, handle_http_status
from pixelmeta.api.game_types import ScrapedGame
from pixelmeta.api.response_parser import (
    ParseFailure,
    extract_error_message,
    extract_game_id,
    get_jeu,
    parse_envelope,
    parse_game,
    pick_first_search_result,
)
from pixelmeta.config.catalog import SystemCatalog
from pixelmeta.media.media_types import ImageType, VideoType

logger = logging.getLogger(__name__)

IMAGE_TYPE_MAP: Dict[str, ImageType] = {
    'box-2d': ImageType.COVER,
    'box-front': ImageType.COVER,
    'sstitle': ImageType.TITLE,
    'screenmarquee': ImageType.TITLE,
    'screenmarqueesmall': ImageType.TITLE,
    'marquee': ImageType.TITLE,
    'ss': ImageType.SCREENSHOT,
    'screenshot': ImageType.SCREENSHOT,
    'wheel': ImageType.WHEEL,
    'wheel-hd': ImageType.WHEEL,
    'wheelhd': ImageType.WHEEL,
    'wheel-carbon': ImageType.WHEEL,
    'wheel-steel': ImageType.WHEEL,
}

VIDEO_TYPE_MAP: Dict[str, VideoType] = {
    'video-normalized': VideoType.NORMALIZED,
}

# Query parameters hidden in log output
REDACTED_PARAMS = ('ssid', 'sspassword', 'devid', 'devpassword')

DEFAULT_SOFTNAME = 'pixel'


class APIEndpoint(Enum):
    """ScreenScraper API endpoints."""
    JEU_INFOS = 'jeuInfos.php'
    JEU_RECHERCHE = 'jeuRecherche.php'


class ScreenScraperScraper(BaseScraper):
    """
    Scraper for the ScreenScraper API.

    Lookup strategy:

    0. ``jeuInfos`` with the raw ROM basename as ``romnom`` (cheap exact match)
    1. ``jeuRecherche`` with the cleaned name, then again as ``romnom``
    2. ``jeuInfos`` by ``gameid`` for the first candidate found

    System ids come only from the catalog; an unmapped system is sent
    as-is and normally yields an empty result.
    """

    name = "ScreenScraper"
    BASE_URL = "https://api.screenscraper.fr/api2"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: MetadataCache,
        credentials: Optional[Dict[str, Any]] = None,
        catalog: Optional[SystemCatalog] = None,
        **kwargs
    ):
        """
        Initialize ScreenScraper scraper.

        Args:
            client: Shared httpx.AsyncClient
            cache: Metadata cache
            credentials: Dict with ssid, sspassword, devid, devpassword, softname
            catalog: System catalog providing screenscraper system ids
            **kwargs: Passed to BaseScraper (request_timeout, validation_mode, ...)
        """
        super().__init__(client, cache, catalog=catalog, **kwargs)
        credentials = credentials or {}
        self.ssid = credential(credentials, 'ssid')
        self.sspassword = credential(credentials, 'sspassword')
        self.devid = credential(credentials, 'devid')
        self.devpassword = credential(credentials, 'devpassword')
        self.softname = credential(credentials, 'softname') or DEFAULT_SOFTNAME

    @property
    def has_credentials(self) -> bool:
        """True when a complete user or developer credential pair is set."""
        has_user = bool(self.ssid and self.sspassword)
        has_dev = bool(self.devid and self.devpassword)
        return has_user or has_dev

    def _auth_params(self) -> Dict[str, str]:
        params = {}
        for key in ('ssid', 'sspassword', 'devid', 'devpassword'):
            value = getattr(self, key)
            if value:
                params[key] = value
        params['softname'] = self.softname
        return params

    def _build_redacted_url(self, url: str, params: Dict[str, Any]) -> str:
        """Build URL with credentials redacted for logging."""
        redacted_params = params.copy()
        for key in REDACTED_PARAMS:
            if key in redacted_params:
                redacted_params[key] = 'redacted'
        return f"{url}?{urlencode(redacted_params)}"

    async def _call(
        self,
        endpoint: APIEndpoint,
        params: Dict[str, Any],
        note: str = ""
    ) -> httpx.Response:
        params = {**params, **self._auth_params()}
        url = f"{self.BASE_URL}/{endpoint.value}"

        suffix = f" ({note})" if note else ""
        logger.info(f"[ScreenScraper] GET {self._build_redacted_url(url, params)}{suffix}")

        return await self._get(url, params=params)

    @staticmethod
    def _parse(response: httpx.Response) -> Union[Dict[str, Any], ParseFailure]:
        return parse_envelope(response.headers.get('Content-Type', ''), response.text)

    async def _search_game(self, rom_file_name: str, system_id: str) -> Optional[ScrapedGame]:
        # Without credentials the API answers with a non-JSON error page
        if not self.has_credentials:
            logger.warning(
                "ScreenScraper credentials missing: provide either user "
                "(ssid + sspassword) or developer (devid + devpassword)."
            )
            return None

        clean_name = self.clean_rom_name(rom_file_name)
        system_input = str(system_id).strip()
        systeme = self.get_system_id(system_input) or system_input

        # Phase 0: direct lookup by ROM basename
        game = await self._lookup_by_romnom(rom_file_name, systeme)
        if game is not None:
            return game

        # Phase 1: search by cleaned name
        response = await self._call(APIEndpoint.JEU_RECHERCHE, {
            'output': 'json',
            'systemeid': systeme,
            'langue': 'fr',
            'recherche': clean_name,
        })
        handle_http_status(response.status_code, context="search", body=response.text)

        data = self._parse(response)
        if isinstance(data, ParseFailure):
            raise ResponseError(f"search: {data}")
        error_msg = extract_error_message(data)
        if error_msg:
            raise ScraperError(f"search API error: {error_msg}")

        candidate = pick_first_search_result(data)
        if candidate is None:
            candidate = await self._search_fallback(clean_name, systeme)

        game_id = extract_game_id(candidate)
        if not game_id:
            logger.info(f"ScreenScraper: no match for {rom_file_name} (system {systeme})")
            return None

        # Phase 2: full details by game id
        response = await self._call(APIEndpoint.JEU_INFOS, {
            'output': 'json',
            'gameid': game_id,
            'systemeid': systeme,
        })
        handle_http_status(response.status_code, context="info", body=response.text)

        data = self._parse(response)
        if isinstance(data, ParseFailure):
            raise ResponseError(f"info: {data}")
        error_msg = extract_error_message(data)
        if error_msg:
            raise ScraperError(f"info API error: {error_msg}")

        jeu = get_jeu(data)
        return parse_game(jeu) if jeu else None

    async def _lookup_by_romnom(self, rom_file_name: str, systeme: str) -> Optional[ScrapedGame]:
        """
        Fast path: jeuInfos by ROM basename.

        Any failure other than rate limiting falls through to the search.
        """
        response = await self._call(APIEndpoint.JEU_INFOS, {
            'output': 'json',
            'systemeid': systeme,
            'romtype': 'rom',
            'romnom': os.path.splitext(rom_file_name)[0],
        }, note="first pass romnom")

        if response.status_code == 429:
            handle_http_status(response.status_code, context="info")
        if not response.is_success:
            return None

        data = self._parse(response)
        if isinstance(data, ParseFailure):
            logger.error(f"ScreenScraper info {data}")
            return None
        if extract_error_message(data):
            return None

        jeu = get_jeu(data)
        return parse_game(jeu) if jeu else None

    async def _search_fallback(self, clean_name: str, systeme: str) -> Optional[Dict[str, Any]]:
        """Retry jeuRecherche with ``romnom`` when ``recherche`` found nothing."""
        response = await self._call(APIEndpoint.JEU_RECHERCHE, {
            'output': 'json',
            'systemeid': systeme,
            'langue': 'fr',
            'romnom': clean_name,
        }, note="fallback romnom")

        if not response.is_success:
            return None

        data = self._parse(response)
        if isinstance(data, ParseFailure):
            logger.debug(f"ScreenScraper fallback search {data}")
            return None
        if extract_error_message(data):
            return None

        return pick_first_search_result(data)

    def get_system_id(self, system_id: str) -> Optional[str]:
        return self.catalog.screenscraper_id(system_id)

    def get_image_type(self, media_type: str) -> Optional[ImageType]:
        return IMAGE_TYPE_MAP.get(media_type.lower())

    def get_video_type(self, media_type: str) -> Optional[VideoType]:
        return VIDEO_TYPE_MAP.get(media_type.lower())

    def get_image_quality_priority(
        self,
        image_type: ImageType,
        media_type: str,
        media_format: Optional[str] = None
    ) -> int:
        """Prefer HD wheel logos, then plain, steel and carbon variants."""
        t = media_type.lower()
        if image_type == ImageType.WHEEL:
            if 'wheel-hd' in t or 'wheelhd' in t:
                return 10
            if t == 'wheel':
                return 7
            if t == 'wheel-steel':
                return 5
            if t == 'wheel-carbon':
                return 4
        return 0
