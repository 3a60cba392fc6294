"""
Region location: finds the quadrilateral around the brightest connected area
of a frame (the projected slide).
"""

from src.region.locator import (
    build_mask,
    find_connected_regions,
    locate_illuminated_area,
    select_corners,
)

__all__ = [
    "build_mask",
    "find_connected_regions",
    "locate_illuminated_area",
    "select_corners",
]
