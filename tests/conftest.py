"""
Shared pytest fixtures and utilities for the pixelmeta test suite.
"""

from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest
import yaml

from pixelmeta.api.cache import MetadataCache
from pixelmeta.api.game_types import ScrapedGame, ScrapedMedia
from pixelmeta.config.catalog import SystemCatalog


@pytest.fixture
def roms_root(tmp_path: Path) -> Path:
    """Empty ROM root directory."""
    root = tmp_path / "roms"
    root.mkdir()
    return root


@pytest.fixture
def make_roms(roms_root: Path) -> Callable[[str, List[str]], Path]:
    """
    Create ROM files for a system.

    Usage:
        make_roms("snes", ["Alpha (USA).sfc", "Beta.sfc"])
    """

    def _builder(system_id: str, names: List[str]) -> Path:
        system_dir = roms_root / system_id
        system_dir.mkdir(parents=True, exist_ok=True)
        for name in names:
            (system_dir / name).write_bytes(b"\x00" * 16)
        return system_dir

    return _builder


@pytest.fixture
def cache(tmp_path: Path) -> MetadataCache:
    """Metadata cache rooted in a temp application data directory."""
    return MetadataCache(tmp_path / "app_data")


@pytest.fixture
def catalog() -> SystemCatalog:
    """Two-system catalog with provider ids."""
    return SystemCatalog.from_dict({
        "systems": [
            {
                "id": "snes",
                "name": "Super Nintendo",
                "extensions": [".sfc", ".zip"],
                "exclude": ["*.txt"],
                "scrapers": {
                    "screenscraper": {"systemId": 4},
                    "igdb": {"platformId": 19},
                },
            },
            {
                "id": "megadrive",
                "name": "Mega Drive",
                "scrapers": {"screenscraper": {"systemId": 1}},
            },
        ]
    })


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[[Optional[Dict[str, Any]]], Path]:
    """
    Create a minimal config.yaml in a temp directory.

    Usage:
        path = make_config({"scrapers": {"default": "screenscraper"}})
    """

    def _builder(overrides: Optional[Dict[str, Any]] = None) -> Path:
        base = {
            "paths": {
                "roms": str(tmp_path / "roms"),
                "app_data": str(tmp_path / "app_data"),
            },
            "scrapers": {
                "default": "igdb",
                "screenscraper": {"ssid": "user", "sspassword": "pass"},
                "igdb": {"clientId": "cid", "clientSecret": "secret"},
            },
        }
        if overrides:
            base = merge_dicts(base, overrides)

        cfg_path = tmp_path / "config.yaml"
        cfg_path.write_text(yaml.safe_dump(base))
        return cfg_path

    return _builder


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow+deep merge helper for fixture config dictionaries.
    """
    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def make_png_bytes(width: int = 64, height: int = 64) -> bytes:
    from PIL import Image

    img = Image.new("RGB", (width, height), color="red")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_game(name: str = "Alpha Quest", media: Optional[List[ScrapedMedia]] = None) -> ScrapedGame:
    return ScrapedGame(
        id="99",
        name=name,
        description="A quest.",
        release_date="1993",
        genre="Action",
        media=media or [],
    )


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    """Factory for valid PNG payloads: png_bytes(width, height)."""
    return make_png_bytes


@pytest.fixture
def game_factory() -> Callable[..., ScrapedGame]:
    """Factory for ScrapedGame results: game_factory(name, media)."""
    return make_game
