"""
Utility functions for coordinates and result formatting.
"""

import math


def format_timestamp(seconds: float) -> str:
    """
    Convert seconds to mm:ss format.

    Args:
        seconds: Time in seconds

    Returns:
        Formatted string in "mm:ss" format
    """
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def calculate_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Calculate Euclidean distance between two points.

    Args:
        x1, y1: First point coordinates
        x2, y2: Second point coordinates

    Returns:
        Euclidean distance
    """
    return math.sqrt((x2 - x1) ** 2 + (y2 - y1) ** 2)


def is_within_region(
    x: float,
    y: float,
    region_x: float,
    region_y: float,
    threshold: float = 8.0
) -> bool:
    """
    Check if a point is strictly closer than ``threshold`` to a region center.

    Args:
        x, y: Point coordinates
        region_x, region_y: Region center coordinates
        threshold: Distance the point must stay under

    Returns:
        True if point is within region
    """
    return calculate_distance(x, y, region_x, region_y) < threshold


def scale_to_original(
    display_x: float,
    display_y: float,
    display_size: tuple[float, float],
    natural_size: tuple[float, float]
) -> tuple[float, float]:
    """
    Convert a click on a scaled image back to original image pixels.

    Args:
        display_x, display_y: Click position on the displayed image
        display_size: (width, height) the image is displayed at
        natural_size: (width, height) of the original image

    Returns:
        (x, y) in original image space
    """
    display_w, display_h = display_size
    natural_w, natural_h = natural_size
    if display_w <= 0 or display_h <= 0:
        raise ValueError("Display size must be positive")

    return (
        display_x * (natural_w / display_w),
        display_y * (natural_h / display_h),
    )


def calculate_accuracy(correct: int, total: int) -> int:
    """Percentage of correct attempts, rounded; 0 when there are none."""
    if total == 0:
        return 0
    # half-up rounding
    return math.floor(correct / total * 100 + 0.5)
