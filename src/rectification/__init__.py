"""
Rectification: stretches the quadrilateral around a projected slide into an
axis-aligned image, and fits reference slides to the same size.
"""

from src.rectification.corners import is_convex_quadrilateral, order_corners
from src.rectification.resampler import (
    extract_and_perspective_correct,
    fit_to_projection,
    get_projection_size,
    sample_bilinear,
)

__all__ = [
    "extract_and_perspective_correct",
    "fit_to_projection",
    "get_projection_size",
    "is_convex_quadrilateral",
    "order_corners",
    "sample_bilinear",
]
