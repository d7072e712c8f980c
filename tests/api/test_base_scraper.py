import asyncio
from pathlib import Path

import httpx
import pytest

from pixelmeta.api.base_scraper import BaseScraper
from pixelmeta.api.error_handler import ProviderHTTPError
from pixelmeta.media.media_types import ImageType


class SlowScraper(BaseScraper):
    """Scraper whose search yields to the loop and tracks overlap."""

    name = "Slow"

    def __init__(self, *args, outcome=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.outcome = outcome
        self.active = 0
        self.max_active = 0

    async def _search_game(self, rom_file_name, system_id):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0.01)
            if isinstance(self.outcome, Exception):
                raise self.outcome
            return self.outcome
        finally:
            self.active -= 1

    def get_system_id(self, system_id):
        return None

    def get_image_type(self, media_type):
        return ImageType.COVER if media_type == "cover" else None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_same_rom_downloads_are_serialized(cache, game_factory):
    scraper = SlowScraper(client=None, cache=cache, outcome=game_factory())

    results = await asyncio.gather(
        scraper.download_metadata("Alpha.sfc", "snes"),
        scraper.download_metadata("Alpha.zip", "snes"),
    )

    assert all(r is not None for r in results)
    assert scraper.max_active == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_different_roms_run_concurrently(cache, game_factory):
    scraper = SlowScraper(client=None, cache=cache, outcome=game_factory())

    await asyncio.gather(
        scraper.download_metadata("Alpha.sfc", "snes"),
        scraper.download_metadata("Beta.sfc", "snes"),
    )

    assert scraper.max_active == 2


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("refused"),
        httpx.ReadTimeout("slow"),
        ProviderHTTPError(500, "Server error", body="oops"),
    ],
)
async def test_search_game_fails_soft(cache, error):
    scraper = SlowScraper(client=None, cache=cache, outcome=error)

    assert await scraper.search_game("Alpha.sfc", "snes") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_download_without_media_still_saves_record(cache, game_factory):
    scraper = SlowScraper(client=None, cache=cache, outcome=game_factory())

    metadata = await scraper.download_metadata("Alpha.sfc", "snes")

    assert metadata.images == {}
    assert await scraper.has_metadata("Alpha.sfc", "snes")
    assert await scraper.get_cached_metadata("Alpha.sfc", "snes") == metadata


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cache_write_errors_propagate(tmp_path: Path, game_factory):
    from pixelmeta.api.cache import MetadataCache

    blocker = tmp_path / "app_data"
    blocker.write_text("not a directory")
    scraper = SlowScraper(client=None, cache=MetadataCache(blocker), outcome=game_factory())

    with pytest.raises(OSError):
        await scraper.download_metadata("Alpha.sfc", "snes")


@pytest.mark.unit
def test_clean_rom_name_delegates(cache):
    scraper = SlowScraper(client=None, cache=cache)
    assert scraper.clean_rom_name("Alpha (USA) [!].sfc") == "Alpha"
