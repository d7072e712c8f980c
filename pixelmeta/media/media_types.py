"""
Media category definitions for pixelmeta.

Provider-native media tags are classified into these categories by each
scraper; the cache stores at most one image per category.
"""

from enum import Enum
from typing import Dict


class ImageType(Enum):
    """Semantic image slots stored per ROM."""
    COVER = 'cover'
    SCREENSHOT = 'screenshot'
    TITLE = 'title'
    WHEEL = 'wheel'


class VideoType(Enum):
    """Video subtypes stored per ROM."""
    NORMALIZED = 'normalized'


IMAGE_EXTENSIONS: Dict[str, str] = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/gif': '.gif',
    'image/webp': '.webp',
}

DEFAULT_IMAGE_EXTENSION = '.jpg'
DEFAULT_VIDEO_EXTENSION = '.mp4'


def _mime(content_type: str) -> str:
    # Drop parameters such as "; charset=binary"
    return (content_type or '').split(';', 1)[0].strip().lower()


def get_image_extension(content_type: str) -> str:
    """
    Get file extension for an image Content-Type header.

    Args:
        content_type: Content-Type header value

    Returns:
        Extension including the dot; '.jpg' when unknown
    """
    return IMAGE_EXTENSIONS.get(_mime(content_type), DEFAULT_IMAGE_EXTENSION)


def get_video_extension(content_type: str) -> str:
    """
    Get file extension for a video Content-Type header.

    Args:
        content_type: Content-Type header value

    Returns:
        Extension including the dot; '.mp4' when unknown
    """
    ct = (content_type or '').lower()
    if 'webm' in ct:
        return '.webm'
    if 'ogg' in ct:
        return '.ogg'
    if 'matroska' in ct or 'mkv' in ct:
        return '.mkv'
    return DEFAULT_VIDEO_EXTENSION
