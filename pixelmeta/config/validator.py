"""Configuration validation."""

import logging
from pathlib import Path
from typing import Any, Dict, List

from pixelmeta.media.downloader import VALIDATION_MODES

logger = logging.getLogger(__name__)

SCRAPER_NAMES = ('screenscraper', 'igdb')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


class ValidationError(Exception):
    """Configuration validation errors."""
    pass


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Missing provider credentials are not errors: the affected provider
    logs a warning and finds nothing.

    Args:
        config: Configuration dictionary from loader

    Raises:
        ValidationError: If configuration is invalid
    """
    errors = []

    errors.extend(_validate_scrapers(config.get('scrapers', {})))
    errors.extend(_validate_paths(config.get('paths', {})))
    errors.extend(_validate_api(config.get('api', {})))
    errors.extend(_validate_media(config.get('media', {})))
    errors.extend(_validate_logging(config.get('logging', {})))

    if errors:
        raise ValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )


def _validate_scrapers(section: Dict[str, Any]) -> List[str]:
    """Validate scrapers section."""
    errors = []

    if not isinstance(section, dict):
        return ["scrapers must be a mapping"]

    default = section.get('default', 'igdb')
    if default not in SCRAPER_NAMES:
        errors.append(f"scrapers.default must be one of: {', '.join(SCRAPER_NAMES)}")

    for name in SCRAPER_NAMES:
        credentials = section.get(name) or {}
        if not isinstance(credentials, dict):
            errors.append(f"scrapers.{name} must be a mapping")
            continue
        for key, value in credentials.items():
            if value is not None and not isinstance(value, (str, int)):
                errors.append(f"scrapers.{name}.{key} must be a string")

    screenscraper = section.get('screenscraper') or {}
    if isinstance(screenscraper, dict):
        for first, second in (('ssid', 'sspassword'), ('devid', 'devpassword')):
            if bool(screenscraper.get(first)) != bool(screenscraper.get(second)):
                logger.warning(
                    f"scrapers.screenscraper: {first} and {second} must be set together"
                )

    return errors


def _validate_paths(section: Dict[str, Any]) -> List[str]:
    """Validate paths section."""
    errors = []

    if not isinstance(section, dict):
        return ["paths must be a mapping"]

    for path_key in ('roms', 'app_data'):
        if not section.get(path_key):
            errors.append(f"paths.{path_key} is required")
        elif not isinstance(section[path_key], str):
            errors.append(f"paths.{path_key} must be a string path")

    # Catalog is optional but must be a file when given
    catalog = section.get('catalog')
    if catalog:
        path = Path(str(catalog)).expanduser()
        if not path.exists():
            errors.append(f"paths.catalog file not found: {path}")
        elif not path.is_file():
            errors.append(f"paths.catalog must be a file: {path}")

    return errors


def _validate_api(section: Dict[str, Any]) -> List[str]:
    """Validate API options section."""
    errors = []

    timeout = section.get('request_timeout', 30)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("api.request_timeout must be a positive number")

    delay = section.get('batch_delay_seconds', 1.0)
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
        errors.append("api.batch_delay_seconds must be non-negative")

    return errors


def _validate_media(section: Dict[str, Any]) -> List[str]:
    """Validate media options section."""
    errors = []

    mode = section.get('validation_mode', 'disabled')
    if mode not in VALIDATION_MODES:
        errors.append(
            f"media.validation_mode must be one of: {', '.join(VALIDATION_MODES)}"
        )

    return errors


def _validate_logging(section: Dict[str, Any]) -> List[str]:
    """Validate logging options section."""
    errors = []

    level = section.get('level', 'INFO')
    if level not in LOG_LEVELS:
        errors.append(f"logging.level must be one of: {', '.join(LOG_LEVELS)}")

    if 'file' in section and section['file'] is not None:
        if not isinstance(section['file'], str):
            errors.append("logging.file must be a string path or null")

    return errors
