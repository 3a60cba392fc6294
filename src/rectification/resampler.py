"""
Naive Perspective Correction

Stretches the content of a quadrilateral into an axis-aligned rectangle.

For every output column a trace line is drawn from the top edge (TL->TR) to
the bottom edge (BL->BR) at the same fraction along each. Pixels are sampled
along that line with bilinear interpolation and the samples are stretched to
the full output height.

Each column is stretched independently, so the result is slightly
vertically stretched and its aspect ratio does not match the original
content. This is an approximation, not a projective transform, and feature
vectors computed downstream depend on it staying that way.
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from src.common.types import Quadrilateral
from src.grid import Grid

logger = logging.getLogger(__name__)


def length_of_line(start: np.ndarray, end: np.ndarray) -> int:
    """Euclidean distance between two points, rounded to the nearest integer."""
    delta_x = float(end[0] - start[0])
    delta_y = float(end[1] - start[1])
    return int(round(np.sqrt(delta_x * delta_x + delta_y * delta_y)))


def point_along_line(
    start: np.ndarray, end: np.ndarray, numerator, denominator: int
) -> np.ndarray:
    """
    Point(s) ``numerator / denominator`` of the way from start to end.

    The delta is multiplied before dividing so integer positions stay exact.
    ``numerator`` may be an array, giving one row per value.
    """
    numerator = np.asarray(numerator, dtype=np.float64)[..., np.newaxis]
    return start + (end - start) * numerator / denominator


def get_projection_size(quad: Quadrilateral) -> Tuple[int, int]:
    """
    (width, height) of the rectified image for ``quad``.

    Width is the length of the top edge, height the longer of the two side
    edges.
    """
    tl, tr, br, bl = quad.to_numpy()
    width = length_of_line(tl, tr)
    height = max(length_of_line(tl, bl), length_of_line(tr, br))
    return width, height


def sample_bilinear(source: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Bilinearly interpolate RGB colours at fractional positions.

    The "+1" neighbours are clamped to the last valid row/column. Colours are
    blended horizontally first, rounded, then blended vertically and rounded
    again, each channel independently.

    Args:
        source: (H, W, 3) pixel array.
        xs: Column positions.
        ys: Row positions.

    Returns:
        (N, 3) uint8 array.

    Raises:
        ValueError: If any position lies outside the source image.
    """
    height, width = source.shape[:2]

    x0 = np.trunc(xs).astype(np.int64)
    y0 = np.trunc(ys).astype(np.int64)
    if x0.min() < 0 or x0.max() >= width or y0.min() < 0 or y0.max() >= height:
        raise ValueError(
            f"Sample positions x=[{xs.min():.1f}, {xs.max():.1f}], "
            f"y=[{ys.min():.1f}, {ys.max():.1f}] fall outside {width}x{height} image"
        )
    fraction_x = (xs - x0)[:, np.newaxis]
    fraction_y = (ys - y0)[:, np.newaxis]
    x1 = np.minimum(x0 + 1, width - 1)
    y1 = np.minimum(y0 + 1, height - 1)

    colours = source.astype(np.float64)
    top = _combine(colours[y0, x0], colours[y0, x1], fraction_x)
    bottom = _combine(colours[y1, x0], colours[y1, x1], fraction_x)
    return _combine(top, bottom, fraction_y).astype(np.uint8)


def _combine(first: np.ndarray, second: np.ndarray, proportion_of_second: np.ndarray) -> np.ndarray:
    blended = first * (1 - proportion_of_second) + second * proportion_of_second
    return np.clip(np.rint(blended), 0, 255)


def trace_line(source: np.ndarray, start: np.ndarray, end: np.ndarray) -> np.ndarray:
    """
    Sample colours along the segment start->end, one per unit of its length.

    A segment that rounds to zero length yields the single colour at start.
    """
    length = length_of_line(start, end)
    if length == 0:
        points = start[np.newaxis, :]
    else:
        points = point_along_line(start, end, np.arange(length), length)
    return sample_bilinear(source, points[:, 0], points[:, 1])


def stretch_column(colours: np.ndarray, height: int) -> np.ndarray:
    """Linearly resize an (N, 3) column of colours to (height, 3)."""
    column = np.ascontiguousarray(colours, dtype=np.uint8).reshape(-1, 1, 3)
    stretched = cv2.resize(column, (1, height), interpolation=cv2.INTER_LINEAR)
    return stretched.reshape(height, 3)


def extract_and_perspective_correct(pixels: Grid, quad: Quadrilateral) -> Grid:
    """
    Rectify the content of ``quad`` into a rectangular RGB grid.

    Args:
        pixels: Full-resolution RGB grid.
        quad: Corners in TL, TR, BR, BL order, in ``pixels`` coordinates.

    Returns:
        Grid of size ``get_projection_size(quad)``.

    Raises:
        ValueError: If the quadrilateral is the empty sentinel, has a zero
            projection size, or reaches outside the image.

    Example:
        >>> quad = Quadrilateral.from_points([[1228, 194], [1919, 80], [1919, 654], [1231, 638]])
        >>> projection = extract_and_perspective_correct(frame_pixels, quad)
        >>> print(projection.width, projection.height)
        700 574
    """
    if quad.is_empty:
        raise ValueError("Cannot rectify the empty quadrilateral (no region was found)")
    if pixels.cell_shape != (3,):
        raise ValueError(
            f"Expected a grid of (r, g, b) cells, got cell shape {pixels.cell_shape}"
        )

    width, height = get_projection_size(quad)
    if width <= 0 or height <= 0:
        raise ValueError(
            f"Projection size {width}x{height} is empty; corners may coincide: {quad}"
        )

    source = pixels.to_array()
    tl, tr, br, bl = quad.to_numpy()
    projection = np.empty((height, width, 3), dtype=np.uint8)
    for i in range(width):
        top = point_along_line(tl, tr, i, width)
        bottom = point_along_line(bl, br, i, width)
        projection[:, i] = stretch_column(trace_line(source, top, bottom), height)

    logger.debug(f"Rectified {quad} into {width}x{height}")
    return Grid._share(projection)


def fit_to_projection(pixels: Grid, projection_size: Tuple[int, int]) -> Grid:
    """
    Resize a reference image to a projection's size without distorting it.

    The left part of the image whose width matches the projection's aspect
    ratio (at the image's full height) is kept, then resized to exactly
    ``projection_size``.
    """
    width, height = projection_size
    if width <= 0 or height <= 0:
        raise ValueError(f"Projection size must be positive, got {width}x{height}")

    projection_ratio = width / height
    crop_width = min(int(round(pixels.height * projection_ratio)), pixels.width)
    crop_width = max(crop_width, 1)

    source = np.ascontiguousarray(
        np.clip(pixels.to_array()[:, :crop_width], 0, 255), dtype=np.uint8
    )
    resized = cv2.resize(source, (width, height), interpolation=cv2.INTER_AREA)
    logger.debug(
        f"Fitted {pixels.width}x{pixels.height} reference (cropped to width "
        f"{crop_width}) to {width}x{height}"
    )
    return Grid._share(resized)
