"""
Media URL selection and prioritization.

Classifies raw provider media into image/video categories and keeps the
best candidate for each image category.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from pixelmeta.api.game_types import ScrapedMedia
from .media_types import ImageType, VideoType

logger = logging.getLogger(__name__)

ImageClassifier = Callable[[str], Optional[ImageType]]
VideoClassifier = Callable[[str], Optional[VideoType]]
QualityScorer = Callable[[ImageType, str, Optional[str]], int]


@dataclass
class SelectedMedia:
    """Winning media descriptor for one category."""
    url: str
    media_type: str                 # Provider-native tag that won
    score: int
    format: Optional[str] = None


class MediaURLSelector:
    """
    Selects media URLs from a scraped game.

    Images are reduced to one descriptor per category using a
    provider-specific quality score (highest wins, first seen wins ties).
    Videos are not ranked: every video entry is returned.
    """

    def __init__(
        self,
        get_image_type: ImageClassifier,
        get_quality_priority: QualityScorer,
        get_video_type: Optional[VideoClassifier] = None
    ):
        """
        Initialize media URL selector.

        Args:
            get_image_type: Maps a native tag to an ImageType or None
            get_quality_priority: Scores a candidate within its ImageType
            get_video_type: Maps a native tag to a VideoType or None
        """
        self.get_image_type = get_image_type
        self.get_quality_priority = get_quality_priority
        self.get_video_type = get_video_type or (lambda media_type: None)

    def select_images(self, media_list: List[ScrapedMedia]) -> Dict[ImageType, SelectedMedia]:
        """
        Pick the best image per category.

        Args:
            media_list: Raw media from the provider

        Returns:
            Dict mapping ImageType to the winning SelectedMedia, in the
            order categories were first seen
        """
        best: Dict[ImageType, SelectedMedia] = {}

        for media in media_list:
            image_type = self.get_image_type(media.type)
            if image_type is None:
                continue

            score = self.get_quality_priority(image_type, media.type, media.format)
            current = best.get(image_type)
            if current is None or score > current.score:
                best[image_type] = SelectedMedia(
                    url=media.url,
                    media_type=media.type,
                    score=score,
                    format=media.format,
                )

        if logger.isEnabledFor(logging.DEBUG):
            chosen = {k.value: v.media_type for k, v in best.items()}
            logger.debug(f"Selected images: {chosen}")
        return best

    def select_videos(self, media_list: List[ScrapedMedia]) -> List[Tuple[VideoType, ScrapedMedia]]:
        """
        Collect every media entry that maps to a video subtype.

        Args:
            media_list: Raw media from the provider

        Returns:
            List of (VideoType, media) in provider order
        """
        videos = []
        for media in media_list:
            video_type = self.get_video_type(media.type)
            if video_type is not None:
                videos.append((video_type, media))
        return videos
