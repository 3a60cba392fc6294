"""
Slide Matching

Compares rectified video frames against a library of reference slides using
edge-based feature vectors.

Pipeline stages:
1. Slide location (once, from sampled frames)
2. Reference slide vectorisation (once, in parallel)
3. Frame rectification and vectorisation (in parallel)
4. Nearest-neighbour matching by vector distance
"""

from src.matching.config_loader import load_config
from src.matching.distance import (
    cosine,
    cosine_for_normalized,
    euclidean,
    get_distance_function,
)
from src.matching.processor import SlideMatcher
from src.matching.types import (
    DistanceMetric,
    FeatureConfig,
    FrameMatch,
    LocatorConfig,
    MatchingConfig,
    MatchingOptions,
)

__all__ = [
    "SlideMatcher",
    "load_config",
    "cosine",
    "cosine_for_normalized",
    "euclidean",
    "get_distance_function",
    "DistanceMetric",
    "FeatureConfig",
    "FrameMatch",
    "LocatorConfig",
    "MatchingConfig",
    "MatchingOptions",
]
