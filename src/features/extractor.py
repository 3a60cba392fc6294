"""
Edge-based feature vectors for image similarity.

Pipeline:
1. Greyscale intensity per pixel (0.2989R + 0.5870G + 0.1140B)
2. Edge magnitude from central differences
3. Min-max normalisation to [0, 1]
4. Overlapping block averages (Grid.block_out)
5. Column-major flattening into a float vector

Vectors are only comparable when both images were rectified to the same size
and processed with the same parameters.
"""

import logging

import numpy as np

from src.grid import Grid, average, normalise

logger = logging.getLogger(__name__)

# ITU-R 601 luma weights
RED_WEIGHT = 0.2989
GREEN_WEIGHT = 0.5870
BLUE_WEIGHT = 0.1140

DEFAULT_DIVIDE_DIMENSIONS_BY = 12.0
DEFAULT_BLOCK_SIZE_FRACTION_TO_MOVE = 0.25


def to_greyscale(pixels: Grid) -> Grid:
    """
    Convert an RGB grid to intensities in the range [0, 255].

    Args:
        pixels: Grid whose cells are (r, g, b) values.

    Returns:
        Grid of float intensities.
    """
    if pixels.cell_shape != (3,):
        raise ValueError(
            f"Expected a grid of (r, g, b) cells, got cell shape {pixels.cell_shape}"
        )
    return pixels.apply(
        lambda rgb: RED_WEIGHT * rgb[..., 0].astype(np.float64)
        + GREEN_WEIGHT * rgb[..., 1].astype(np.float64)
        + BLUE_WEIGHT * rgb[..., 2].astype(np.float64)
    )


def edge_magnitude(intensities: Grid) -> Grid:
    """
    |I(x+1, y) - I(x-1, y)| + |I(x, y+1) - I(x, y-1)| at every cell.

    A term whose neighbour would fall outside the grid contributes zero, so
    border columns have no horizontal term and border rows no vertical one.
    """

    def _edges(values: np.ndarray) -> np.ndarray:
        values = values.astype(np.float64)
        horizontal = np.zeros_like(values)
        vertical = np.zeros_like(values)
        horizontal[:, 1:-1] = np.abs(values[:, 2:] - values[:, :-2])
        vertical[1:-1, :] = np.abs(values[2:, :] - values[:-2, :])
        return horizontal + vertical

    return intensities.apply(_edges)


def calculate_block_size(width: int, height: int, divide_dimensions_by: float) -> int:
    """Side of the averaging blocks: the shorter dimension over the divisor, rounded."""
    if divide_dimensions_by <= 0:
        raise ValueError(
            f"divide_dimensions_by must be positive, got {divide_dimensions_by}"
        )
    return int(round(min(width / divide_dimensions_by, height / divide_dimensions_by)))


def get_vector(
    pixels: Grid,
    divide_dimensions_by: float = DEFAULT_DIVIDE_DIMENSIONS_BY,
    block_size_fraction_to_move: float = DEFAULT_BLOCK_SIZE_FRACTION_TO_MOVE,
) -> np.ndarray:
    """
    Describe the local edge structure of an RGB grid as a fixed-length vector.

    Args:
        pixels: RGB grid, typically a rectified slide or frame.
        divide_dimensions_by: Block size is min(width, height) / this value.
        block_size_fraction_to_move: Stride between blocks as a fraction of
            the block size.

    Returns:
        Read-only float32 array; values are block means of normalised edge
        magnitudes, ordered column by column.

    Raises:
        ValueError: If the derived block size is invalid for the grid.

    Example:
        >>> vector = get_vector(Grid.from_pixel_source(image_buffer))
        >>> vector.shape
        (1452,)
    """
    block_size = calculate_block_size(pixels.width, pixels.height, divide_dimensions_by)

    blocks = normalise(edge_magnitude(to_greyscale(pixels))).block_out(
        block_size=block_size,
        block_size_fraction_to_move=block_size_fraction_to_move,
        reducer=average,
    )

    vector = np.array([value for _, value in blocks.enumerate()], dtype=np.float32)
    vector.setflags(write=False)

    logger.debug(
        f"Feature vector of length {vector.size} from {pixels.width}x{pixels.height} "
        f"grid (block_size={block_size}, grid={blocks.width}x{blocks.height})"
    )
    return vector
