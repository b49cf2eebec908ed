"""Aspect-ratio classification."""

from __future__ import annotations

from ..videos.video_models import OrientationCategory, StreamGeometry

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
RATIO_TOLERANCE = 0.1


def classify_orientation(geometry: StreamGeometry) -> OrientationCategory:
    """Bucket a stream into landscape, portrait or other by its width/height ratio."""
    ratio = geometry.width / geometry.height
    if abs(LANDSCAPE_RATIO - ratio) < RATIO_TOLERANCE:
        return OrientationCategory.LANDSCAPE
    if abs(PORTRAIT_RATIO - ratio) < RATIO_TOLERANCE:
        return OrientationCategory.PORTRAIT
    return OrientationCategory.OTHER
