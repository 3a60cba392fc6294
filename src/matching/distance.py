"""
Vector distance functions for comparing feature vectors.

All functions take two equal-length float sequences and return a float where
smaller means more similar.
"""

import logging
from typing import Callable, Sequence, Tuple, Union

import numpy as np

from src.matching.types import DistanceMetric

logger = logging.getLogger(__name__)

VectorLike = Union[np.ndarray, Sequence[float]]
DistanceFunction = Callable[[VectorLike, VectorLike], float]


def _as_pair(lhs: VectorLike, rhs: VectorLike) -> Tuple[np.ndarray, np.ndarray]:
    lhs = np.asarray(lhs, dtype=np.float32).ravel()
    rhs = np.asarray(rhs, dtype=np.float32).ravel()
    if lhs.shape != rhs.shape:
        raise ValueError(
            f"Vector length mismatch: {lhs.size} vs {rhs.size}. Vectors must come "
            "from images rectified to the same size with the same parameters"
        )
    return lhs, rhs


def cosine(lhs: VectorLike, rhs: VectorLike) -> float:
    """
    Cosine distance: 1 - dot(a, b) / (|a| * |b|).

    A zero-magnitude vector has no direction; it is treated as maximally
    dissimilar and the distance is 1.0.

    Example:
        >>> cosine([1.0, 0.0], [0.0, 1.0])
        1.0
    """
    lhs, rhs = _as_pair(lhs, rhs)
    magnitude = float(np.sqrt(np.dot(lhs, lhs))) * float(np.sqrt(np.dot(rhs, rhs)))
    if magnitude == 0:
        logger.debug("Cosine distance with a zero vector, returning 1.0")
        return 1.0
    return 1.0 - float(np.dot(lhs, rhs)) / magnitude


def cosine_for_normalized(lhs: VectorLike, rhs: VectorLike) -> float:
    """
    Cosine distance for vectors already scaled to unit length: 1 - dot(a, b).

    Inputs are not checked; passing vectors that are not unit length gives
    meaningless scores.
    """
    lhs, rhs = _as_pair(lhs, rhs)
    return 1.0 - float(np.dot(lhs, rhs))


def euclidean(lhs: VectorLike, rhs: VectorLike) -> float:
    """Euclidean distance: sqrt(sum((a_i - b_i)^2))."""
    lhs, rhs = _as_pair(lhs, rhs)
    diff = lhs - rhs
    return float(np.sqrt(np.dot(diff, diff)))


_DISTANCE_FUNCTIONS = {
    DistanceMetric.COSINE: cosine,
    DistanceMetric.COSINE_NORMALIZED: cosine_for_normalized,
    DistanceMetric.EUCLIDEAN: euclidean,
}


def get_distance_function(metric: Union[DistanceMetric, str]) -> DistanceFunction:
    """
    Look up a distance function by metric.

    Raises:
        ValueError: If the metric name is unknown.
    """
    return _DISTANCE_FUNCTIONS[DistanceMetric(metric)]
