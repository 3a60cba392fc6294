"""
Feature vector extraction: compact edge-intensity summaries of rectified
images used for nearest-neighbour matching.
"""

from src.features.extractor import (
    calculate_block_size,
    edge_magnitude,
    get_vector,
    to_greyscale,
)

__all__ = ["calculate_block_size", "edge_magnitude", "get_vector", "to_greyscale"]
