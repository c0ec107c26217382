"""
Utility functions and helpers.
"""

from .helpers import (
    format_timestamp,
    calculate_distance,
    is_within_region,
    scale_to_original,
    calculate_accuracy,
)

__all__ = [
    "format_timestamp",
    "calculate_distance",
    "is_within_region",
    "scale_to_original",
    "calculate_accuracy",
]
