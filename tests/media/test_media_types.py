import pytest

from pixelmeta.media.media_types import get_image_extension, get_video_extension


@pytest.mark.unit
@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("image/jpeg", ".jpg"),
        ("image/png", ".png"),
        ("IMAGE/PNG; charset=binary", ".png"),
        ("image/gif", ".gif"),
        ("image/webp", ".webp"),
        ("application/octet-stream", ".jpg"),
        ("", ".jpg"),
    ],
)
def test_get_image_extension(content_type, expected):
    assert get_image_extension(content_type) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("video/webm", ".webm"),
        ("video/ogg", ".ogg"),
        ("video/x-matroska", ".mkv"),
        ("video/mp4", ".mp4"),
        (None, ".mp4"),
    ],
)
def test_get_video_extension(content_type, expected):
    assert get_video_extension(content_type) == expected
