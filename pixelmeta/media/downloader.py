"""
Media asset downloader with optional validation.

Fetches images and videos over HTTP, derives the file extension from the
response Content-Type and writes the asset atomically. Images can be
validated with Pillow before they are kept.
"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple

import httpx
from PIL import Image

from .media_types import get_image_extension, get_video_extension

logger = logging.getLogger(__name__)

VALIDATION_MODES = ('disabled', 'normal')


def build_timeout(request_timeout: float = 30) -> httpx.Timeout:
    """Bounded per-request timeout shared by all provider and media calls."""
    return httpx.Timeout(connect=5.0, read=request_timeout, write=5.0, pool=5.0)


class AssetDownloader:
    """
    Downloads media assets for a ROM into the metadata cache.

    Features:
    - Bounded HTTP timeout
    - Extension from Content-Type
    - Temp file + rename so a partial asset never replaces a good one
    - Optional Pillow validation with minimum dimensions
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str,
        timeout: float = 30,
        validation_mode: str = 'disabled',
        min_width: int = 50,
        min_height: int = 50
    ):
        """
        Initialize asset downloader.

        Args:
            client: httpx.AsyncClient for HTTP requests
            user_agent: User-Agent header sent with every download
            timeout: HTTP read timeout in seconds
            validation_mode: 'disabled' or 'normal'
            min_width: Minimum acceptable image width in pixels
            min_height: Minimum acceptable image height in pixels
        """
        if validation_mode not in VALIDATION_MODES:
            raise ValueError(f"Unknown validation mode: {validation_mode}")

        self.client = client
        self.user_agent = user_agent
        self.validation_mode = validation_mode
        self.min_width = min_width
        self.min_height = min_height
        self._timeout = build_timeout(timeout)

    async def download_image(self, url: str, directory: Path, stem: str) -> Optional[Path]:
        """
        Download an image to ``<directory>/<stem><ext>``.

        Args:
            url: Image URL
            directory: Target directory (must exist)
            stem: Filename without extension (e.g., 'Sonic_cover')

        Returns:
            Path of the written file, or None if the download failed
        """
        fetched = await self._fetch(url)
        if fetched is None:
            return None
        data, content_type = fetched

        if self.validation_mode != 'disabled':
            is_valid, error = self._validate_image_data(data)
            if not is_valid:
                logger.warning(f"Discarding image from {url}: {error}")
                return None

        return self._write(directory / f"{stem}{get_image_extension(content_type)}", data)

    async def download_video(self, url: str, directory: Path, stem: str) -> Optional[Path]:
        """
        Download a video to ``<directory>/<stem><ext>``.

        Returns:
            Path of the written file, or None if the download failed
        """
        fetched = await self._fetch(url)
        if fetched is None:
            return None
        data, content_type = fetched
        return self._write(directory / f"{stem}{get_video_extension(content_type)}", data)

    async def _fetch(self, url: str) -> Optional[Tuple[bytes, str]]:
        try:
            response = await self.client.get(
                url,
                timeout=self._timeout,
                headers={'User-Agent': self.user_agent}
            )
        except httpx.HTTPError as e:
            logger.error(f"Media download failed for {url}: {e}")
            return None

        if not response.is_success:
            logger.warning(f"Media download failed for {url}: HTTP {response.status_code}")
            return None

        return response.content, response.headers.get('Content-Type', '')

    def _write(self, output_path: Path, data: bytes) -> Optional[Path]:
        temp_path = output_path.with_suffix(output_path.suffix + '.tmp')
        try:
            with open(temp_path, 'wb') as f:
                f.write(data)
            temp_path.replace(output_path)
        except OSError as e:
            logger.error(f"Failed to write media file {output_path}: {e}")
            if temp_path.exists():
                temp_path.unlink()
            return None
        return output_path

    def _validate_image_data(self, image_data: bytes) -> Tuple[bool, Optional[str]]:
        """
        Validate image data using Pillow.

        Args:
            image_data: Raw image bytes

        Returns:
            Tuple of (is_valid: bool, error_message: str or None)
        """
        try:
            img = Image.open(BytesIO(image_data))
            img.verify()

            # verify() invalidates the image, reopen for dimensions
            img = Image.open(BytesIO(image_data))
            width, height = img.size
        except Exception as e:
            return False, f"Invalid image: {e}"

        if width < self.min_width or height < self.min_height:
            return False, (
                f"Image too small: {width}x{height} "
                f"(minimum: {self.min_width}x{self.min_height})"
            )

        return True, None
