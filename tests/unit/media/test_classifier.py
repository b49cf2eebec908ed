import pytest

from src.tubely.media.classifier import classify_orientation
from src.tubely.videos.video_models import OrientationCategory, StreamGeometry


@pytest.mark.parametrize(
    ("width", "height", "expected"),
    [
        (1920, 1080, OrientationCategory.LANDSCAPE),
        (1280, 720, OrientationCategory.LANDSCAPE),
        (1080, 1920, OrientationCategory.PORTRAIT),
        (720, 1280, OrientationCategory.PORTRAIT),
        (1000, 1000, OrientationCategory.OTHER),
        (640, 480, OrientationCategory.OTHER),
        (1080, 1350, OrientationCategory.OTHER),
    ],
)
def test_classify_common_resolutions(width, height, expected) -> None:
    assert classify_orientation(StreamGeometry(width=width, height=height)) is expected


def test_landscape_tolerance_is_strict() -> None:
    # 16/9 + 0.1 is outside the bucket, slightly less is inside
    inside = StreamGeometry(width=1877, height=1000)  # 1.877
    outside = StreamGeometry(width=1880, height=1000)  # 1.880

    assert classify_orientation(inside) is OrientationCategory.LANDSCAPE
    assert classify_orientation(outside) is OrientationCategory.OTHER


def test_portrait_tolerance() -> None:
    assert classify_orientation(StreamGeometry(width=660, height=1000)) is OrientationCategory.PORTRAIT
    assert classify_orientation(StreamGeometry(width=470, height=1000)) is OrientationCategory.PORTRAIT
    assert classify_orientation(StreamGeometry(width=700, height=1000)) is OrientationCategory.OTHER


def test_category_value_is_key_prefix() -> None:
    assert OrientationCategory.LANDSCAPE.value == "landscape"
    assert OrientationCategory.PORTRAIT.value == "portrait"
    assert OrientationCategory.OTHER.value == "other"
