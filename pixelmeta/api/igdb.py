"""IGDB provider adapter (Twitch OAuth2 client credentials)."""

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from pixelmeta.api.base_scraper import BaseScraper, credential
from pixelmeta.api.cache import MetadataCache
from pixelmeta.api.error_handler import ResponseError, handle_http_status
from pixelmeta.api.game_types import ScrapedGame, ScrapedMedia
from pixelmeta.config.catalog import SystemCatalog
from pixelmeta.media.media_types import ImageType

logger = logging.getLogger(__name__)

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
GAMES_URL = "https://api.igdb.com/v4/games"
IMAGE_URL = "https://images.igdb.com/igdb/image/upload/{size}/{image_id}.jpg"

# Refresh the token when fewer than this many seconds remain
TOKEN_EXPIRY_MARGIN = 60

QUERY_FIELDS = (
    "id,name,summary,storyline,first_release_date,genres.name,"
    "involved_companies.company.name,involved_companies.developer,"
    "involved_companies.publisher,cover.image_id,screenshots.image_id,"
    "total_rating,rating"
)

IMAGE_TYPE_MAP: Dict[str, ImageType] = {
    'cover': ImageType.COVER,
    'screenshot': ImageType.SCREENSHOT,
}


def build_query(name: str, platform_id: Optional[str] = None) -> str:
    """
    Build an IGDB query body for a name search.

    Args:
        name: Cleaned game name
        platform_id: IGDB platform id to restrict the search to

    Returns:
        Query-language body for POST /v4/games
    """
    escaped = name.replace('\\', '\\\\').replace('"', '\\"')
    query = f'search "{escaped}"; fields {QUERY_FIELDS};'
    if platform_id:
        query += f' where platforms = ({platform_id});'
    return query + ' limit 1;'


def _company_name(game: Dict[str, Any], role: str) -> Optional[str]:
    for involved in game.get('involved_companies') or []:
        if not isinstance(involved, dict) or not involved.get(role):
            continue
        company = involved.get('company')
        if isinstance(company, dict) and isinstance(company.get('name'), str):
            return company['name']
    return None


def _image_id(value: Any) -> Optional[str]:
    if isinstance(value, dict) and value.get('image_id'):
        return str(value['image_id'])
    return None


def parse_game(game: Dict[str, Any]) -> ScrapedGame:
    """Convert an IGDB game object into a ScrapedGame."""
    genres = [
        g['name'] for g in game.get('genres') or []
        if isinstance(g, dict) and isinstance(g.get('name'), str)
    ]

    release_date = None
    timestamp = game.get('first_release_date')
    if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
        release_date = str(datetime.fromtimestamp(timestamp, tz=timezone.utc).year)

    rating = None
    score = game.get('total_rating')
    if score is None:
        score = game.get('rating')
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        # Halves round up
        rating = str(math.floor(score + 0.5))

    media: List[ScrapedMedia] = []
    cover_id = _image_id(game.get('cover'))
    if cover_id:
        media.append(ScrapedMedia(
            type='cover',
            url=IMAGE_URL.format(size='t_cover_big', image_id=cover_id),
            format='jpg',
        ))
    screenshots = game.get('screenshots') or []
    screenshot_id = _image_id(screenshots[0]) if screenshots else None
    if screenshot_id:
        media.append(ScrapedMedia(
            type='screenshot',
            url=IMAGE_URL.format(size='t_screenshot_big', image_id=screenshot_id),
            format='jpg',
        ))

    return ScrapedGame(
        id=str(game.get('id', '')),
        name=str(game.get('name') or ''),
        description=game.get('summary') or game.get('storyline') or None,
        release_date=release_date,
        genre='/'.join(genres) or None,
        developer=_company_name(game, 'developer'),
        publisher=_company_name(game, 'publisher'),
        rating=rating,
        media=media,
    )


class IgdbScraper(BaseScraper):
    """
    Scraper for the IGDB v4 API.

    An app access token is requested from Twitch on first use and reused
    until it is about to expire.
    """

    name = "IGDB"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: MetadataCache,
        credentials: Optional[Dict[str, Any]] = None,
        catalog: Optional[SystemCatalog] = None,
        **kwargs
    ):
        """
        Initialize IGDB scraper.

        Args:
            client: Shared httpx.AsyncClient
            cache: Metadata cache
            credentials: Dict with clientId and clientSecret
            catalog: System catalog providing IGDB platform ids
            **kwargs: Passed to BaseScraper
        """
        super().__init__(client, cache, catalog=catalog, **kwargs)
        credentials = credentials or {}
        self.client_id = credential(credentials, 'clientId')
        self.client_secret = credential(credentials, 'clientSecret')

        self._access_token: Optional[str] = None
        self._token_expiry: float = 0.0  # epoch seconds

    def _token_valid(self) -> bool:
        return bool(self._access_token) and self._token_expiry - TOKEN_EXPIRY_MARGIN > time.time()

    async def _ensure_token(self) -> Optional[str]:
        """
        Get a valid access token, requesting a new one when needed.

        Returns:
            Access token, or None if credentials are missing or the
            token request failed (logged)
        """
        if not self.client_id or not self.client_secret:
            logger.error("IGDB credentials missing: clientId and clientSecret are required")
            return None

        if self._token_valid():
            return self._access_token

        logger.info(f"[IGDB] POST {TOKEN_URL}?client_id=redacted&client_secret=redacted")
        try:
            response = await self.client.post(
                TOKEN_URL,
                data={
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                    'grant_type': 'client_credentials',
                },
                headers={'User-Agent': self.user_agent},
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"IGDB token request failed: {e}")
            return None

        if not response.is_success:
            logger.error(f"IGDB token request failed: HTTP {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"IGDB token response is not JSON: {e}")
            return None

        token = payload.get('access_token') if isinstance(payload, dict) else None
        if not token:
            logger.error("IGDB token response has no access_token")
            return None

        expires_in = payload.get('expires_in') or 0
        self._access_token = token
        self._token_expiry = time.time() + float(expires_in)
        logger.debug(f"IGDB token acquired, expires in {expires_in}s")
        return token

    async def _search_game(self, rom_file_name: str, system_id: str) -> Optional[ScrapedGame]:
        token = await self._ensure_token()
        if not token:
            return None

        clean_name = self.clean_rom_name(rom_file_name)
        query = build_query(clean_name, self.get_system_id(system_id))

        logger.info(f"[IGDB] POST {GAMES_URL} search \"{clean_name}\"")
        response = await self.client.post(
            GAMES_URL,
            content=query,
            headers={
                'Client-ID': self.client_id,
                'Authorization': f'Bearer {token}',
                'Accept': 'application/json',
                'Content-Type': 'text/plain',
                'User-Agent': self.user_agent,
            },
            timeout=self._timeout,
        )
        handle_http_status(response.status_code, context="games", body=response.text)

        try:
            results = response.json()
        except ValueError as e:
            raise ResponseError(f"games: invalid JSON: {e}")

        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            logger.info(f"IGDB: no match for {rom_file_name}")
            return None

        return parse_game(results[0])

    def get_system_id(self, system_id: str) -> Optional[str]:
        return self.catalog.igdb_platform_id(system_id)

    def get_image_type(self, media_type: str) -> Optional[ImageType]:
        return IMAGE_TYPE_MAP.get(media_type.lower())
