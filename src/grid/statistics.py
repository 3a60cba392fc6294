"""
Statistics over numeric grids: running min/max, normalisation and block
averaging.
"""

import logging
from typing import Tuple

import numpy as np

from src.grid.grid import Grid

logger = logging.getLogger(__name__)


def get_min_and_max(grid: Grid) -> Tuple[float, float]:
    """
    Smallest and largest value in a single pass over the grid.

    Example:
        >>> get_min_and_max(Grid([[3.0, 1.0], [7.0, 2.0]]))
        (1.0, 7.0)
    """
    first = grid.get(0, 0)
    return grid.aggregate(
        (first, first),
        lambda acc, value: (min(acc[0], value), max(acc[1], value)),
    )


def normalise(grid: Grid) -> Grid:
    """
    Min-max scale a numeric grid into [0, 1].

    A flat grid (max == min) has no range to scale by; every value becomes 0.
    """
    values = grid.to_array().astype(np.float64)
    min_value = float(values.min())
    max_value = float(values.max())
    value_range = max_value - min_value
    if value_range <= 0:
        logger.debug(f"Flat grid (all values {min_value}), normalising to zeros")
        return grid.apply(lambda arr: np.zeros(arr.shape[:2], dtype=np.float64))
    return grid.apply(lambda arr: (arr.astype(np.float64) - min_value) / value_range)


def average(block: Grid) -> float:
    """Arithmetic mean of every value in the block."""
    return float(block.to_array().mean())
