"""Configuration loading and parsing."""

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigError(Exception):
    """Configuration-related errors."""
    pass


DEFAULT_CONFIG: Dict[str, Any] = {
    'paths': {
        'roms': '~/roms',
        'app_data': '~/.local/share/pixelmeta',
        'catalog': None,
    },
    'scrapers': {
        'default': 'igdb',
        'screenscraper': {},
        'igdb': {},
    },
    'api': {
        'request_timeout': 30,
        'batch_delay_seconds': 1.0,
    },
    'media': {
        'validation_mode': 'disabled',
    },
    'logging': {
        'level': 'INFO',
        'file': None,
    },
}


def _apply_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Fill keys missing from config with defaults, recursively."""
    merged = copy.deepcopy(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _apply_defaults(value, merged[key])
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and parse configuration file.

    Missing sections and keys are filled from DEFAULT_CONFIG. Path values
    are expanded (``~``) but not checked; see validator.validate_config.

    Args:
        config_path: Path to config.yaml file. If None, searches current directory.

    Returns:
        Parsed configuration dictionary

    Raises:
        ConfigError: If config file cannot be loaded or parsed
    """
    # Determine config file path
    if config_path is None:
        config_path = Path.cwd() / "config.yaml"
    else:
        config_path = Path(config_path).expanduser()

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}\n"
            f"Copy config.yaml.example to config.yaml and configure it."
        )

    # Load YAML
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {e}")

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigError("Configuration file must contain a YAML dictionary")

    config = _apply_defaults(config, DEFAULT_CONFIG)

    paths = config.get('paths')
    if isinstance(paths, dict):
        for key, value in paths.items():
            if isinstance(value, str) and value:
                path = Path(value).expanduser()
                # Relative catalog paths are resolved against the config file
                if key == 'catalog' and not path.is_absolute():
                    path = config_path.parent / path
                paths[key] = str(path)

    return config


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., 'api.request_timeout')
        default: Default value if path not found

    Returns:
        Configuration value or default

    Example:
        >>> get_config_value(config, 'scrapers.default')
        'igdb'
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value
