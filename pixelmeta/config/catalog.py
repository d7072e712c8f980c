"""System catalog parsing."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Catalog parsing errors."""
    pass


@dataclass
class SystemDefinition:
    """Represents a system entry in the catalog."""
    id: str
    name: str = ""
    extensions: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    screenscraper_id: Optional[str] = None   # scrapers.screenscraper.systemId
    igdb_platform_id: Optional[str] = None   # scrapers.igdb.platformId


class SystemCatalog:
    """
    Ordered collection of systems known to the front-end.

    Lookups by id are case-insensitive.
    """

    def __init__(self, systems: Optional[List[SystemDefinition]] = None):
        self.systems: List[SystemDefinition] = list(systems or [])

    def __iter__(self) -> Iterator[SystemDefinition]:
        return iter(self.systems)

    def __len__(self) -> int:
        return len(self.systems)

    def get(self, system_id: str) -> Optional[SystemDefinition]:
        """
        Find a system by id.

        Args:
            system_id: System identifier (e.g., 'snes'); surrounding
                       whitespace and case are ignored

        Returns:
            SystemDefinition or None
        """
        wanted = str(system_id).strip().lower()
        for system in self.systems:
            if system.id.lower() == wanted:
                return system
        return None

    def screenscraper_id(self, system_id: str) -> Optional[str]:
        system = self.get(system_id)
        if system and system.screenscraper_id:
            return system.screenscraper_id
        return None

    def igdb_platform_id(self, system_id: str) -> Optional[str]:
        system = self.get(system_id)
        if system and system.igdb_platform_id:
            return system.igdb_platform_id
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SystemCatalog':
        """
        Build a catalog from a parsed ``{"systems": [...]}`` mapping.

        Invalid entries are skipped with a warning.

        Raises:
            CatalogError: If the mapping has no systems list
        """
        if not isinstance(data, dict) or not isinstance(data.get('systems'), list):
            raise CatalogError("Catalog must contain a 'systems' list")

        systems = []
        for entry in data['systems']:
            try:
                systems.append(_parse_system_entry(entry))
            except ValueError as e:
                logger.warning(f"Skipping invalid system: {e}")
                continue

        return cls(systems)


def _optional_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(entry: Dict[str, Any], key: str) -> List[str]:
    value = entry.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    return [str(v) for v in value]


def _parse_system_entry(entry: Any) -> SystemDefinition:
    """
    Parse a single system mapping.

    Raises:
        ValueError: If required fields are missing or malformed
    """
    if not isinstance(entry, dict):
        raise ValueError(f"system entry must be a mapping, got {type(entry).__name__}")

    system_id = _optional_id(entry.get('id'))
    if not system_id:
        raise ValueError("system entry has no 'id'")

    scrapers = entry.get('scrapers') or {}
    if not isinstance(scrapers, dict):
        raise ValueError(f"{system_id}: 'scrapers' must be a mapping")
    screenscraper = scrapers.get('screenscraper') or {}
    igdb = scrapers.get('igdb') or {}

    return SystemDefinition(
        id=system_id,
        name=str(entry.get('name') or system_id),
        extensions=_string_list(entry, 'extensions'),
        exclude=_string_list(entry, 'exclude'),
        screenscraper_id=_optional_id(screenscraper.get('systemId')),
        igdb_platform_id=_optional_id(igdb.get('platformId')),
    )


def load_catalog(catalog_path: Path) -> SystemCatalog:
    """
    Load a catalog YAML (or JSON) file.

    Args:
        catalog_path: Path to the catalog file

    Returns:
        SystemCatalog

    Raises:
        CatalogError: If the file cannot be read or parsed
    """
    path = Path(catalog_path).expanduser()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid catalog file {path}: {e}")
    except OSError as e:
        raise CatalogError(f"Failed to read catalog file {path}: {e}")

    catalog = SystemCatalog.from_dict(data)
    logger.debug(f"Loaded catalog with {len(catalog)} systems from {path}")
    return catalog
