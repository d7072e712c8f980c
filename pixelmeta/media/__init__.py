"""
Media package for pixelmeta.

Handles classifying, selecting and downloading game media.
"""

from .media_types import (
    ImageType,
    VideoType,
    get_image_extension,
    get_video_extension,
)
from .url_selector import MediaURLSelector, SelectedMedia
from .downloader import AssetDownloader, build_timeout

__all__ = [
    "ImageType",
    "VideoType",
    "get_image_extension",
    "get_video_extension",
    "MediaURLSelector",
    "SelectedMedia",
    "AssetDownloader",
    "build_timeout",
]
