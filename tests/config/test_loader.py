from pathlib import Path

import pytest

from pixelmeta.config.loader import ConfigError, get_config_value, load_config
from pixelmeta.config.validator import ValidationError, validate_config


@pytest.mark.unit
def test_load_config_applies_defaults(make_config):
    config = load_config(make_config())

    assert config["scrapers"]["default"] == "igdb"
    assert config["api"]["request_timeout"] == 30
    assert config["api"]["batch_delay_seconds"] == 1.0
    assert config["media"]["validation_mode"] == "disabled"
    assert config["logging"]["level"] == "INFO"
    assert config["scrapers"]["screenscraper"]["ssid"] == "user"


@pytest.mark.unit
def test_load_config_expands_user_and_resolves_catalog(make_config, tmp_path: Path):
    config = load_config(make_config({"paths": {"roms": "~/roms", "catalog": "catalog.yaml"}}))

    assert "~" not in config["paths"]["roms"]
    assert config["paths"]["catalog"] == str(tmp_path / "catalog.yaml")


@pytest.mark.unit
def test_load_config_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.unit
def test_load_config_invalid_yaml(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("paths: [unclosed")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(path)


@pytest.mark.unit
def test_load_config_rejects_non_mapping(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n")

    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.unit
def test_get_config_value():
    config = {"api": {"request_timeout": 10}}

    assert get_config_value(config, "api.request_timeout") == 10
    assert get_config_value(config, "api.missing", 5) == 5
    assert get_config_value(config, "api.request_timeout.deeper") is None


@pytest.mark.unit
def test_validate_config_accepts_defaults(make_config):
    validate_config(load_config(make_config()))


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"scrapers": {"default": "mobygames"}}, "scrapers.default"),
        ({"api": {"request_timeout": 0}}, "api.request_timeout"),
        ({"api": {"batch_delay_seconds": -1}}, "api.batch_delay_seconds"),
        ({"media": {"validation_mode": "strict"}}, "media.validation_mode"),
        ({"logging": {"level": "TRACE"}}, "logging.level"),
        ({"paths": {"catalog": "/does/not/exist.yaml"}}, "paths.catalog"),
        ({"scrapers": {"igdb": ["cid"]}}, "scrapers.igdb"),
    ],
)
def test_validate_config_rejects_bad_values(make_config, overrides, message):
    config = load_config(make_config(overrides))

    with pytest.raises(ValidationError, match=message):
        validate_config(config)
