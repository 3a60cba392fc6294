"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import matplotlib

matplotlib.use("Agg")

import cv2
import numpy as np
import pytest

FRAME_BACKGROUND = 20
SLIDE_BACKGROUND = 255
SLIDE_FEATURE = 200


@pytest.fixture
def bright_square_image():
    """100x100 grey RGB image with a brighter 40x40 square from (30, 30) to (70, 70)."""
    image = np.full((100, 100, 3), 100, dtype=np.uint8)
    image[30:70, 30:70] = 220
    return image


@pytest.fixture
def random_rgb_image():
    """Deterministic 20 (high) x 30 (wide) RGB noise image."""
    rng = np.random.default_rng(seed=42)
    return rng.integers(0, 256, size=(20, 30, 3), dtype=np.uint8)


@pytest.fixture
def reference_slides():
    """Three 160x120 slides that differ only in where a grey block sits."""
    slides = {}

    left_half = np.full((120, 160, 3), SLIDE_BACKGROUND, dtype=np.uint8)
    left_half[:, :80] = SLIDE_FEATURE
    slides["slide_a"] = left_half

    top_half = np.full((120, 160, 3), SLIDE_BACKGROUND, dtype=np.uint8)
    top_half[:60, :] = SLIDE_FEATURE
    slides["slide_b"] = top_half

    centre = np.full((120, 160, 3), SLIDE_BACKGROUND, dtype=np.uint8)
    centre[30:90, 50:110] = SLIDE_FEATURE
    slides["slide_c"] = centre

    return slides


def make_frame(slide: np.ndarray) -> np.ndarray:
    """A dark 160x120 frame showing ``slide`` shrunk into x 40..120, y 30..90."""
    frame = np.full((120, 160, 3), FRAME_BACKGROUND, dtype=np.uint8)
    frame[30:90, 40:120] = cv2.resize(slide, (80, 60), interpolation=cv2.INTER_AREA)
    return frame


@pytest.fixture
def frame_factory():
    """Callable turning a slide array into a frame array."""
    return make_frame
