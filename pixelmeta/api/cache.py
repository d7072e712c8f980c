"""
Per-ROM metadata cache.

Stores one JSON document per ROM plus its downloaded media under the
application data directory, so metadata survives reorganization of the
ROM folders.

Layout::

    <app_data>/metadata/<system>/<rom>.json
    <app_data>/metadata/<system>/<rom>_<category><ext>
    <app_data>/metadata/<system>/<rom>_video-<subtype><ext>
"""

import asyncio
import json
import logging
import os
import shutil
import weakref
from pathlib import Path
from typing import Optional, Tuple

from pixelmeta.api.game_types import GameMetadata
from pixelmeta.media.media_types import ImageType, VideoType

logger = logging.getLogger(__name__)


class MetadataCache:
    """
    Disk-based cache of scraped metadata keyed by (system, ROM base name).

    Entries have no TTL; they stay until overwritten by a forced
    re-download or removed out of band. Reads never raise: a missing or
    corrupt document is a cache miss.
    """

    def __init__(self, app_data_root: Path):
        """
        Initialize metadata cache.

        Args:
            app_data_root: Application data directory; documents live in
                           its ``metadata`` subdirectory
        """
        self.app_data_root = Path(app_data_root).expanduser()
        self.metadata_root = self.app_data_root / "metadata"

        # One lock per (system, rom key) while anyone holds or waits on it
        self._locks: "weakref.WeakValueDictionary[Tuple[str, str], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

        logger.debug(f"MetadataCache initialized: metadata_root={self.metadata_root}")

    def lock_for(self, system_id: str, rom_file_name: str) -> asyncio.Lock:
        """Get the lock serializing writes for one ROM's cache entry."""
        key = (system_id, self.rom_key(rom_file_name))
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @staticmethod
    def rom_key(rom_file_name: str) -> str:
        """ROM filename without extension, used for every cache file name."""
        return os.path.splitext(os.path.basename(rom_file_name))[0]

    def system_dir(self, system_id: str) -> Path:
        return self.metadata_root / system_id

    def document_path(self, system_id: str, rom_file_name: str) -> Path:
        return self.system_dir(system_id) / f"{self.rom_key(rom_file_name)}.json"

    def image_stem(self, rom_file_name: str, image_type: ImageType) -> str:
        return f"{self.rom_key(rom_file_name)}_{image_type.value}"

    def video_stem(self, rom_file_name: str, video_type: VideoType) -> str:
        return f"{self.rom_key(rom_file_name)}_video-{video_type.value}"

    def ensure_system_dir(self, system_id: str) -> Path:
        """
        Create the system's cache directory if needed.

        Raises:
            OSError: If the directory cannot be created
        """
        directory = self.system_dir(system_id)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def exists(self, system_id: str, rom_file_name: str) -> bool:
        """Check whether a metadata document exists (no validation)."""
        return self.document_path(system_id, rom_file_name).is_file()

    def load(self, system_id: str, rom_file_name: str) -> Optional[GameMetadata]:
        """
        Load cached metadata for a ROM.

        Args:
            system_id: System identifier
            rom_file_name: ROM filename (extension is ignored)

        Returns:
            GameMetadata, or None if absent, unreadable or corrupt
        """
        path = self.document_path(system_id, rom_file_name)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable metadata file {path}: {e}")
            return None

        try:
            return GameMetadata.from_dict(data)
        except ValueError as e:
            logger.warning(f"Ignoring invalid metadata file {path}: {e}")
            return None

    def save(self, system_id: str, rom_file_name: str, metadata: GameMetadata) -> Path:
        """
        Write a metadata document, replacing any previous one.

        Args:
            system_id: System identifier
            rom_file_name: ROM filename
            metadata: Metadata to persist

        Returns:
            Path of the written document

        Raises:
            OSError: If the directory or file cannot be written
        """
        self.ensure_system_dir(system_id)
        path = self.document_path(system_id, rom_file_name)

        # Write to temporary file first
        temp_file = path.with_suffix(".json.tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(metadata.to_dict(), f, indent=2, ensure_ascii=False)

        # Atomic rename
        temp_file.replace(path)

        logger.debug(f"Saved metadata: {path}")
        return path

    def remove_assets(self, system_id: str, rom_file_name: str) -> int:
        """
        Delete previously downloaded media files for a ROM.

        Only files named after a known image category or video subtype
        are touched, so ROMs sharing a name prefix are left alone.

        Returns:
            Number of files removed
        """
        directory = self.system_dir(system_id)
        if not directory.is_dir():
            return 0

        prefixes = tuple(
            [f"{self.image_stem(rom_file_name, t)}." for t in ImageType]
            + [f"{self.video_stem(rom_file_name, t)}." for t in VideoType]
        )

        removed = 0
        for entry in directory.iterdir():
            if entry.is_file() and entry.name.startswith(prefixes):
                try:
                    entry.unlink()
                    removed += 1
                except OSError as e:
                    logger.warning(f"Failed to remove stale media {entry}: {e}")

        if removed:
            logger.debug(f"Removed {removed} stale media file(s) for {rom_file_name}")
        return removed

    def clear(self, system_id: Optional[str] = None) -> None:
        """
        Remove cached metadata for one system, or for all systems.

        Args:
            system_id: System to clear; None clears the whole cache
        """
        target = self.system_dir(system_id) if system_id else self.metadata_root
        if target.exists():
            shutil.rmtree(target)
            logger.info(f"Cleared metadata cache: {target}")
