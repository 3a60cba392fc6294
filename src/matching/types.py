"""
Data types and structures for the Matching module.

Provides type-safe containers for configuration and results.
"""

from dataclasses import dataclass, field
from enum import Enum


class DistanceMetric(Enum):
    """Comparators available for nearest-neighbour matching."""

    COSINE = "cosine"
    COSINE_NORMALIZED = "cosine_normalized"  # Only valid for unit-length vectors
    EUCLIDEAN = "euclidean"


@dataclass
class LocatorConfig:
    """Configuration for locating the projected slide."""

    resize_if_largest_side_greater_than: int = 200
    resize_to: int = 200
    threshold_of_range: float = 2 / 3  # Fraction of intensity range above min
    sample_frames: int = 3  # Frames tried before giving up on locating


@dataclass
class FeatureConfig:
    """Configuration for feature vector extraction."""

    divide_dimensions_by: float = 12.0  # Block size = min(W, H) / this
    block_size_fraction_to_move: float = 0.25  # Stride as a fraction of block size


@dataclass
class MatchingOptions:
    """Configuration for comparing frames against reference slides."""

    distance_metric: DistanceMetric = DistanceMetric.COSINE
    max_workers: int = 4


@dataclass
class MatchingConfig:
    """Complete matching module configuration."""

    locator: LocatorConfig = field(default_factory=LocatorConfig)
    features: FeatureConfig = field(default_factory=FeatureConfig)
    matching: MatchingOptions = field(default_factory=MatchingOptions)


@dataclass(frozen=True)
class FrameMatch:
    """
    Closest reference slide for one frame.

    Attributes:
        frame_index: Position of the frame in the source video.
        slide_name: Name of the nearest reference slide.
        distance: Distance between the two feature vectors (lower is closer).
    """

    frame_index: int
    slide_name: str
    distance: float

    def __str__(self) -> str:
        return f"Frame {self.frame_index}: {self.slide_name}"
