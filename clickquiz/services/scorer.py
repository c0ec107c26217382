"""
Click scoring against hotspots.

Two tolerance policies exist:

- Generated hotspots (pixel coordinates): per-axis tolerance, i.e. a
  square acceptance window of 2 * tolerance pixels centred on the target.
- Manually placed hotspots (percentage coordinates): Euclidean radius.
"""

from typing import Iterable, Optional

from clickquiz.models.schemas import Hotspot
from clickquiz.utils.helpers import is_within_region

DEFAULT_TOLERANCE = 25  # pixels, each axis
MANUAL_RADIUS = 8.0  # percent of the image


def score_click(
    click_x: float,
    click_y: float,
    expected_x: float,
    expected_y: float,
    tolerance: float = DEFAULT_TOLERANCE
) -> bool:
    """
    Check a click against a target with independent per-axis tolerance.

    Both coordinate pairs must already be in original image space.

    Args:
        click_x, click_y: Reported click position
        expected_x, expected_y: Target position
        tolerance: Maximum allowed offset on each axis (inclusive)

    Returns:
        True if the click lies inside the square window
    """
    return abs(click_x - expected_x) <= tolerance and abs(click_y - expected_y) <= tolerance


class AttemptScorer:
    """Scores clicks against generated (pixel-space) hotspots."""

    def __init__(self, tolerance: float = DEFAULT_TOLERANCE):
        self.tolerance = tolerance

    def score(self, click_x: float, click_y: float, hotspot: Hotspot) -> bool:
        return score_click(click_x, click_y, hotspot.x, hotspot.y, self.tolerance)


def find_manual_hotspot(
    x_percent: float,
    y_percent: float,
    hotspots: Iterable[Hotspot],
    radius: float = MANUAL_RADIUS
) -> Optional[Hotspot]:
    """
    Find the first manually placed hotspot hit by a click.

    Args:
        x_percent, y_percent: Click position as a percentage of the image
        hotspots: Hotspots in percentage coordinates
        radius: Euclidean radius in percent (exclusive)

    Returns:
        The hit hotspot, or None
    """
    for hotspot in hotspots:
        if is_within_region(x_percent, y_percent, hotspot.x, hotspot.y, threshold=radius):
            return hotspot
    return None
