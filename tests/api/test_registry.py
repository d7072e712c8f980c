import httpx
import pytest

from pixelmeta.api.igdb import IgdbScraper
from pixelmeta.api.registry import ScraperRegistry, create_client
from pixelmeta.api.screenscraper import ScreenScraperScraper
from pixelmeta.workflow.orchestrator import BatchOrchestrator

CONFIG = {
    "scrapers": {
        "screenscraper": {"ssid": "user", "sspassword": "pass"},
        "igdb": {"clientId": "cid", "clientSecret": "secret"},
    },
    "api": {"request_timeout": 12, "batch_delay_seconds": 0.5},
}


@pytest.fixture
def registry(cache, catalog):
    return ScraperRegistry(CONFIG, catalog, client=None, cache=cache)


@pytest.mark.unit
def test_available_order(registry):
    assert registry.available() == ["screenscraper", "igdb"]


@pytest.mark.unit
def test_get_memoizes_adapters(registry):
    first = registry.get("screenscraper")

    assert isinstance(first, ScreenScraperScraper)
    assert registry.get("screenscraper") is first
    assert isinstance(registry.get("igdb"), IgdbScraper)


@pytest.mark.unit
def test_unknown_type_raises(registry):
    with pytest.raises(ValueError, match="Unknown scraper type"):
        registry.get("mobygames")


@pytest.mark.unit
def test_invalidate_rebuilds_one_adapter(registry):
    ss = registry.get("screenscraper")
    igdb = registry.get("igdb")

    registry.invalidate("screenscraper")

    assert registry.get("screenscraper") is not ss
    assert registry.get("igdb") is igdb


@pytest.mark.unit
def test_update_config_merges_and_clears(registry):
    old = registry.get("igdb")

    registry.update_config({"scrapers": {"igdb": {"clientSecret": "rotated"}}})
    new = registry.get("igdb")

    assert new is not old
    assert new.client_id == "cid"
    assert new.client_secret == "rotated"
    # Caller's dict is not mutated
    assert CONFIG["scrapers"]["igdb"]["clientSecret"] == "secret"


@pytest.mark.unit
def test_adapters_share_orchestrator_and_catalog(registry, catalog):
    ss = registry.get("screenscraper")
    igdb = registry.get("igdb")

    assert isinstance(registry.orchestrator, BatchOrchestrator)
    assert registry.orchestrator.delay_seconds == 0.5
    assert ss.orchestrator is igdb.orchestrator is registry.orchestrator
    assert ss.catalog is catalog


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_client_uses_bounded_timeout():
    client = create_client(CONFIG)
    try:
        assert isinstance(client, httpx.AsyncClient)
        assert client.timeout.read == 12
        assert client.timeout.connect == 5.0
    finally:
        await client.aclose()
