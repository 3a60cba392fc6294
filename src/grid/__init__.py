"""
Windowed 2D grid abstraction used by every image-analysis stage.
"""

from src.grid.grid import Grid
from src.grid.statistics import average, get_min_and_max, normalise

__all__ = ["Grid", "average", "get_min_and_max", "normalise"]
