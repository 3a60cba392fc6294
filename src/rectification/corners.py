"""
Corner ordering for slide corners supplied by hand.

``extract_and_perspective_correct`` reads a Quadrilateral as TL, TR, BR, BL;
corners typed on the command line or exported from an annotation tool can
come in any order.
"""

import logging
from typing import Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

CORNER_NAMES = ("TL", "TR", "BR", "BL")


def order_corners(pts: Union[np.ndarray, Sequence[Sequence[float]]]) -> np.ndarray:
    """
    Sort four slide corners into TL, TR, BR, BL order.

    The top-left corner has the smallest x + y and the bottom-right the
    largest; the top-right has the smallest y - x and the bottom-left the
    largest. This holds for any convex quadrilateral that is not rotated by
    more than 45 degrees, which covers a projected slide.

    Args:
        pts: Four [x, y] corners, as a (4, 2) array or nested lists.

    Returns:
        (4, 2) float64 array in TL, TR, BR, BL order.

    Raises:
        ValueError: If there are not exactly four corners, or the ordered
            corners do not enclose a convex area.

    Example:
        >>> order_corners([[119, 89], [40, 30], [40, 89], [119, 30]])[1]  # TR
        array([119.,  30.])
    """
    corners = np.asarray(pts, dtype=np.float64)
    if corners.shape != (4, 2):
        raise ValueError(
            f"Expected exactly 4 points with shape (4, 2), got shape {corners.shape}"
        )

    sums = corners[:, 0] + corners[:, 1]
    differences = corners[:, 1] - corners[:, 0]
    ordered = corners[
        [
            np.argmin(sums),
            np.argmin(differences),
            np.argmax(sums),
            np.argmax(differences),
        ]
    ]

    logger.debug(
        "Ordered corners: "
        + ", ".join(f"{name}={tuple(p)}" for name, p in zip(CORNER_NAMES, ordered))
    )

    if not is_convex_quadrilateral(ordered):
        raise ValueError(
            "Ordered points do not form a convex quadrilateral; corners may be "
            f"duplicated, crossed or concave: {corners.tolist()}"
        )
    return ordered


def is_convex_quadrilateral(rect: np.ndarray) -> bool:
    """
    True if walking the four corners in order turns the same way at every
    corner (all cross products of consecutive edges share a sign).

    Near-zero turns count as neither sign, so collinear or repeated corners
    are rejected.
    """
    edges = np.roll(rect, -1, axis=0) - rect
    next_edges = np.roll(edges, -1, axis=0)
    turns = edges[:, 0] * next_edges[:, 1] - edges[:, 1] * next_edges[:, 0]

    convex = bool(np.all(turns > 1e-6) or np.all(turns < -1e-6))
    if not convex:
        logger.warning(f"Non-convex quadrilateral, turns: {turns.tolist()}")
    return convex
