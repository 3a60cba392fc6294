"""
Common types and utilities shared across all modules.

This module provides standardized data types for the slide matching pipeline,
ensuring consistency and type safety across the grid, region, rectification,
feature and matching modules.
"""

from src.common.types import RGB, ImageBuffer, PixelSource, Point, Quadrilateral, Rect

__all__ = ["RGB", "ImageBuffer", "PixelSource", "Point", "Quadrilateral", "Rect"]
