"""ROM directory listing."""

import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


class ScannerError(Exception):
    """ROM scanning errors."""
    pass


def list_rom_files(roms_root: Path, system_id: str) -> List[str]:
    """
    List ROM filenames for a system.

    Only regular files directly inside ``<roms_root>/<system_id>`` are
    returned; subdirectories are ignored.

    Args:
        roms_root: Root ROM directory
        system_id: System identifier (directory name under roms_root)

    Returns:
        Filenames sorted by name

    Raises:
        ScannerError: If the system directory cannot be read
    """
    system_dir = Path(roms_root).expanduser() / system_id

    if not system_dir.is_dir():
        raise ScannerError(f"ROM directory not found: {system_dir}")

    try:
        entries = list(system_dir.iterdir())
    except PermissionError:
        raise ScannerError(f"Permission denied accessing ROM directory: {system_dir}")
    except OSError as e:
        raise ScannerError(f"Failed to scan ROM directory: {e}")

    files = sorted(entry.name for entry in entries if entry.is_file())
    logger.debug(f"Found {len(files)} files in {system_dir}")
    return files
