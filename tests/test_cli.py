import json
from pathlib import Path

import pytest

import pixelmeta.cli as cli
from pixelmeta.api.cache import MetadataCache
from pixelmeta.api.game_types import GameMetadata
from pixelmeta.config.loader import ConfigError


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    """Keep main() from replacing the root handlers pytest installs."""
    monkeypatch.setattr(cli, "_setup_logging", lambda config: None)


@pytest.mark.unit
def test_create_parser_subcommands():
    parser = cli.create_parser()

    args = parser.parse_args(["--provider", "screenscraper", "system", "snes", "--force"])
    assert args.provider == "screenscraper"
    assert args.command == "system"
    assert args.system == "snes"
    assert args.force is True

    args = parser.parse_args(["download", "Alpha.sfc", "snes", "--fallback"])
    assert args.rom == "Alpha.sfc"
    assert args.fallback is True

    with pytest.raises(SystemExit):
        parser.parse_args(["--provider", "mobygames", "all"])


@pytest.mark.unit
def test_main_handles_config_error(monkeypatch):
    monkeypatch.setattr(cli, "load_config", lambda path=None: (_ for _ in ()).throw(ConfigError("bad config")))
    code = cli.main(["all"])
    assert code == 1


@pytest.mark.unit
def test_main_handles_invalid_config(make_config):
    code = cli.main(["--config", str(make_config({"api": {"request_timeout": -1}})), "all"])
    assert code == 1


@pytest.mark.unit
def test_main_applies_provider_override(monkeypatch, make_config):
    called = {}

    async def fake_run_command(config, catalog, args):
        called["config"] = config
        called["catalog"] = catalog
        return 0

    monkeypatch.setattr(cli, "run_command", fake_run_command)

    code = cli.main(["--config", str(make_config()), "--provider", "screenscraper", "all"])

    assert code == 0
    assert called["config"]["scrapers"]["default"] == "screenscraper"
    assert len(called["catalog"]) == 0


@pytest.mark.integration
def test_get_and_has_read_the_cache(make_config, tmp_path: Path, capsys):
    config_path = make_config()
    MetadataCache(tmp_path / "app_data").save("snes", "Alpha.sfc", GameMetadata(id="7", name="Alpha"))

    assert cli.main(["--config", str(config_path), "has", "Alpha.zip", "snes"]) == 0
    assert capsys.readouterr().out.strip() == "yes"

    assert cli.main(["--config", str(config_path), "get", "Alpha.sfc", "snes"]) == 0
    assert json.loads(capsys.readouterr().out)["name"] == "Alpha"

    assert cli.main(["--config", str(config_path), "has", "Beta.sfc", "snes"]) == 1
    assert capsys.readouterr().out.strip() == "no"
