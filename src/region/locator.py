"""
Illuminated Area Locator

Finds the dominant bright region of a photographed frame (typically the
projected slide) and returns the quadrilateral bounding it:

1. Downscale so the largest side is at most ``resize_to`` pixels
2. Threshold greyscale intensity at 2/3 of the way from min to max
3. Split the mask into 4-connected regions (OpenCV component labelling)
4. Take the largest region and pick the cell nearest to each image corner
5. Scale those corners back to the original resolution
"""

import logging
from typing import Iterable, List

import cv2
import numpy as np

from src.common.types import Point, Quadrilateral
from src.features.extractor import to_greyscale
from src.grid import Grid, get_min_and_max

logger = logging.getLogger(__name__)

DEFAULT_RESIZE_IF_LARGEST_SIDE_GREATER_THAN = 200
DEFAULT_RESIZE_TO = 200
# Picked by eye on presentation footage; lower it if slides are dim.
DEFAULT_THRESHOLD_OF_RANGE = 2 / 3


def downscale(
    pixels: Grid,
    resize_if_largest_side_greater_than: int = DEFAULT_RESIZE_IF_LARGEST_SIDE_GREATER_THAN,
    resize_to: int = DEFAULT_RESIZE_TO,
) -> Grid:
    """
    Shrink an RGB grid proportionally so its largest side equals ``resize_to``.

    Grids whose largest side is within the limit are returned unchanged.
    """
    largest_side = max(pixels.width, pixels.height)
    if largest_side <= resize_if_largest_side_greater_than:
        return pixels

    if pixels.width > pixels.height:
        width = resize_to
        height = int(pixels.height / pixels.width * resize_to)
    else:
        width = int(pixels.width / pixels.height * resize_to)
        height = resize_to
    width, height = max(width, 1), max(height, 1)

    source = np.ascontiguousarray(np.clip(pixels.to_array(), 0, 255), dtype=np.uint8)
    resized = cv2.resize(source, (width, height), interpolation=cv2.INTER_AREA)
    logger.debug(
        f"Downscaled {pixels.width}x{pixels.height} to {width}x{height} for locating"
    )
    return Grid._share(resized)


def build_mask(intensities: Grid, threshold: float) -> Grid:
    """Boolean grid, True where intensity >= threshold."""
    return intensities.apply(lambda values: values >= threshold)


def find_connected_regions(mask: Grid) -> List[List[Point]]:
    """
    Partition the True cells of a mask into 4-connected regions.

    Every True cell ends up in exactly one region. Regions are returned in the
    order their first cell is met in column-major enumeration, and each
    region's points are in that same order.

    Args:
        mask: Grid of booleans.

    Returns:
        List of regions, each a non-empty list of window-relative points.
    """
    count, labels = cv2.connectedComponents(
        mask.to_array().astype(np.uint8), connectivity=4
    )
    if count <= 1:
        logger.debug("Mask has no set cells")
        return []

    # Flat index x * height + y walks cells in column-major order
    height = mask.height
    column_major = labels.T.ravel()
    order = np.argsort(column_major, kind="stable")
    starts = np.searchsorted(column_major[order], np.arange(1, count + 1))
    groups = [order[starts[k] : starts[k + 1]] for k in range(count - 1)]
    groups.sort(key=lambda cells: cells[0])

    regions = [
        [Point(x=int(i // height), y=int(i % height)) for i in cells] for cells in groups
    ]
    logger.debug(
        f"Found {len(regions)} distinct regions in {int(starts[-1] - starts[0])} masked cells"
    )
    return regions


def select_corners(region: Iterable[Point], width: int, height: int) -> Quadrilateral:
    """
    Pick the region cell closest to each corner of a width x height grid.

    Each corner is chosen independently (the same cell may win more than one)
    and ties go to the earliest cell in ``region``.
    """
    points = list(region)
    if not points:
        raise ValueError("Cannot select corners of an empty region")

    def from_top_left(p: Point) -> int:
        return p.x * p.x + p.y * p.y

    def from_top_right(p: Point) -> int:
        return (width - p.x) ** 2 + p.y * p.y

    def from_bottom_right(p: Point) -> int:
        return (width - p.x) ** 2 + (height - p.y) ** 2

    def from_bottom_left(p: Point) -> int:
        return p.x * p.x + (height - p.y) ** 2

    return Quadrilateral(
        top_left=min(points, key=from_top_left),
        top_right=min(points, key=from_top_right),
        bottom_right=min(points, key=from_bottom_right),
        bottom_left=min(points, key=from_bottom_left),
    )


def rescale(
    quad: Quadrilateral, resize_by: float, max_x: int, max_y: int
) -> Quadrilateral:
    """
    Multiply every corner by ``resize_by`` (rounding to the nearest integer)
    and clamp it into [0, max_x] x [0, max_y].
    """
    if resize_by <= 0:
        raise ValueError(
            f"resize_by must be positive (less than one to shrink, greater than one "
            f"to grow), got {resize_by}"
        )

    def _scale(p: Point) -> Point:
        x = int(round(p.x * resize_by))
        y = int(round(p.y * resize_by))
        return Point(x=min(max(x, 0), max_x), y=min(max(y, 0), max_y))

    return Quadrilateral(
        top_left=_scale(quad.top_left),
        top_right=_scale(quad.top_right),
        bottom_right=_scale(quad.bottom_right),
        bottom_left=_scale(quad.bottom_left),
    )


def locate_illuminated_area(
    pixels: Grid,
    resize_if_largest_side_greater_than: int = DEFAULT_RESIZE_IF_LARGEST_SIDE_GREATER_THAN,
    resize_to: int = DEFAULT_RESIZE_TO,
    threshold_of_range: float = DEFAULT_THRESHOLD_OF_RANGE,
) -> Quadrilateral:
    """
    Return the quadrilateral around the largest bright area of an image.

    Args:
        pixels: Full-resolution RGB grid.
        resize_if_largest_side_greater_than: Downscale only above this size.
        resize_to: Largest side after downscaling.
        threshold_of_range: Fraction of the intensity range above the minimum
            at which a cell counts as bright.

    Returns:
        Corners in original image coordinates, or ``Quadrilateral.empty()``
        when no cell passes the threshold.

    Example:
        >>> quad = locate_illuminated_area(Grid.from_pixel_source(frame))
        >>> if not quad.is_empty:
        ...     projection = extract_and_perspective_correct(pixels, quad)
    """
    reduced = downscale(pixels, resize_if_largest_side_greater_than, resize_to)
    intensities = to_greyscale(reduced)

    min_value, max_value = get_min_and_max(intensities)
    threshold = min_value + (max_value - min_value) * threshold_of_range
    mask = build_mask(intensities, threshold)
    logger.debug(
        f"Intensity range [{min_value:.1f}, {max_value:.1f}], threshold {threshold:.1f}"
    )

    regions = find_connected_regions(mask)
    if not regions:
        logger.warning("No illuminated area found")
        return Quadrilateral.empty()

    largest = max(regions, key=len)
    corners = select_corners(largest, reduced.width, reduced.height)

    resize_by = pixels.width / reduced.width
    quad = rescale(corners, resize_by, max_x=pixels.width - 1, max_y=pixels.height - 1)
    logger.info(
        f"Located illuminated area of {len(largest)} cells (scale {resize_by:.2f}): {quad}"
    )
    return quad
