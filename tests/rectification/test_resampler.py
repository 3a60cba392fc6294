"""
Unit tests for naive perspective correction.
"""

import numpy as np
import pytest

from src.common.types import Quadrilateral
from src.grid import Grid
from src.rectification import (
    extract_and_perspective_correct,
    fit_to_projection,
    get_projection_size,
)
from src.rectification.resampler import (
    length_of_line,
    point_along_line,
    sample_bilinear,
    stretch_column,
    trace_line,
)


class TestLineHelpers:
    """Test suite for line length and interpolation helpers."""

    def test_length_is_rounded(self):
        """Test that line lengths round to the nearest integer."""
        assert length_of_line(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == 5
        assert length_of_line(np.array([0.0, 0.0]), np.array([1.0, 1.0])) == 1

    def test_point_along_line_is_exact_at_integers(self):
        """Test that integer positions carry no float error."""
        start, end = np.array([0.0, 0.0]), np.array([7.0, 0.0])
        points = point_along_line(start, end, np.arange(7), 7)
        np.testing.assert_array_equal(points[:, 0], np.arange(7))

    def test_point_along_line_scalar(self):
        """Test a single fractional position."""
        point = point_along_line(np.array([10.0, 20.0]), np.array([20.0, 40.0]), 1, 4)
        np.testing.assert_allclose(point, [12.5, 25.0])


class TestProjectionSize:
    """Test suite for rectified output size."""

    def test_rectangle(self):
        """Test the projection size of an axis-aligned rectangle."""
        quad = Quadrilateral.from_points([[0, 0], [80, 0], [80, 60], [0, 60]])
        assert get_projection_size(quad) == (80, 60), "Rectangle size must equal its sides"

    def test_width_from_top_edge_height_from_longer_side(self):
        """Test width from TL-TR and height from the longer side."""
        quad = Quadrilateral.from_points([[0, 0], [30, 40], [30, 60], [0, 10]])
        assert get_projection_size(quad) == (50, 20)


class TestSampleBilinear:
    """Test suite for bilinear colour sampling."""

    @pytest.fixture
    def two_by_two(self):
        source = np.zeros((2, 2, 3), dtype=np.uint8)
        source[0, 1] = 100
        source[1, 0] = 50
        source[1, 1] = 150
        return source

    def test_exact_positions(self, two_by_two):
        """Test sampling at integer positions."""
        colours = sample_bilinear(two_by_two, np.array([1.0, 0.0]), np.array([0.0, 1.0]))
        np.testing.assert_array_equal(colours, [[100] * 3, [50] * 3])

    def test_blends_horizontally_then_vertically(self, two_by_two):
        """Test the centre of a 2x2 patch."""
        colours = sample_bilinear(two_by_two, np.array([0.5]), np.array([0.5]))
        # top 50, bottom 100, blended 75
        np.testing.assert_array_equal(colours, [[75, 75, 75]])

    def test_upper_neighbour_clamped(self, two_by_two):
        """Test that the +1 neighbour clamps to the last row and column."""
        colours = sample_bilinear(two_by_two, np.array([1.5]), np.array([1.5]))
        np.testing.assert_array_equal(colours, [[150, 150, 150]])

    def test_channels_are_independent(self):
        """Test per-channel blending and rounding."""
        source = np.array([[[0, 255, 10], [255, 0, 20]]], dtype=np.uint8)
        colours = sample_bilinear(source, np.array([0.25]), np.array([0.0]))
        np.testing.assert_array_equal(colours, [[64, 191, 12]])

    @pytest.mark.parametrize("x, y", [(2.0, 0.0), (0.0, 2.0), (-1.0, 0.0)])
    def test_outside_image_rejected(self, two_by_two, x, y):
        """Test that positions outside the image raise ValueError."""
        with pytest.raises(ValueError, match="fall outside"):
            sample_bilinear(two_by_two, np.array([x]), np.array([y]))


class TestTraceAndStretch:
    """Test suite for column tracing and stretching."""

    def test_trace_samples_one_per_unit(self, random_rgb_image):
        """Test one sample per unit of line length."""
        colours = trace_line(random_rgb_image, np.array([3.0, 0.0]), np.array([3.0, 10.0]))
        np.testing.assert_array_equal(colours, random_rgb_image[0:10, 3])

    def test_zero_length_trace_takes_start(self, random_rgb_image):
        """Test that a zero-length line samples its start point."""
        point = np.array([4.0, 6.0])
        colours = trace_line(random_rgb_image, point, point)
        np.testing.assert_array_equal(colours, random_rgb_image[6:7, 4])

    def test_stretch_column_to_height(self):
        """Test linear stretching of a short column."""
        colours = np.array([[0, 0, 0], [200, 200, 200]], dtype=np.uint8)

        stretched = stretch_column(colours, 8)

        assert stretched.shape == (8, 3)
        assert stretched[0, 0] == 0
        assert stretched[-1, 0] == 200
        assert np.all(np.diff(stretched[:, 0].astype(int)) >= 0), (
            "Stretching must keep the ramp monotonic"
        )

    def test_single_colour_fills_column(self):
        """Test that one colour fills the whole column."""
        stretched = stretch_column(np.array([[9, 8, 7]], dtype=np.uint8), 5)
        np.testing.assert_array_equal(stretched, [[9, 8, 7]] * 5)


class TestExtractAndPerspectiveCorrect:
    """Test suite for quadrilateral rectification."""

    def test_axis_aligned_quad_is_lossless(self, random_rgb_image):
        """Test that rectifying the full image returns it unchanged."""
        height, width = random_rgb_image.shape[:2]
        quad = Quadrilateral.from_points([[0, 0], [width, 0], [width, height], [0, height]])

        projection = extract_and_perspective_correct(Grid(random_rgb_image), quad)

        np.testing.assert_array_equal(projection.to_array(), random_rgb_image)

    def test_inner_rectangle_is_cropped(self, random_rgb_image):
        """Test that an axis-aligned inner quad is an exact crop."""
        quad = Quadrilateral.from_points([[5, 4], [25, 4], [25, 16], [5, 16]])

        projection = extract_and_perspective_correct(Grid(random_rgb_image), quad)

        assert (projection.width, projection.height) == (20, 12), (
            f"Expected a 20x12 crop, got {projection.width}x{projection.height}"
        )
        np.testing.assert_array_equal(projection.to_array(), random_rgb_image[4:16, 5:25])

    def test_trapezoid_output_size(self):
        """Test the output size of a trapezoid."""
        rng = np.random.default_rng(seed=9)
        image = rng.integers(0, 256, size=(48, 64, 3), dtype=np.uint8)
        quad = Quadrilateral.from_points([[10, 10], [50, 10], [60, 40], [0, 40]])

        projection = extract_and_perspective_correct(Grid(image), quad)

        assert (projection.width, projection.height) == (40, 32)
        assert projection.cell_shape == (3,)

    def test_degenerate_side_uses_single_sample(self, random_rgb_image):
        """Test that a side collapsed to a point gives one stretched sample."""
        # Left edge collapses to a point, so column 0 is one sample stretched
        quad = Quadrilateral.from_points([[0, 0], [10, 0], [10, 10], [0, 0]])

        projection = extract_and_perspective_correct(Grid(random_rgb_image), quad)

        assert (projection.width, projection.height) == (10, 10)
        column = projection.to_array()[:, 0]
        np.testing.assert_array_equal(column, np.repeat(random_rgb_image[0:1, 0], 10, axis=0))

    def test_empty_quad_rejected(self, random_rgb_image):
        """Test that the empty sentinel raises ValueError."""
        with pytest.raises(ValueError, match="empty quadrilateral"):
            extract_and_perspective_correct(Grid(random_rgb_image), Quadrilateral.empty())

    def test_zero_width_rejected(self, random_rgb_image):
        """Test that coinciding top corners raise ValueError."""
        quad = Quadrilateral.from_points([[5, 0], [5, 0], [5, 10], [5, 10]])
        with pytest.raises(ValueError, match="is empty"):
            extract_and_perspective_correct(Grid(random_rgb_image), quad)

    def test_quad_outside_image_rejected(self, random_rgb_image):
        """Test that a quad reaching past the image raises ValueError."""
        quad = Quadrilateral.from_points([[0, 0], [80, 0], [80, 60], [0, 60]])
        with pytest.raises(ValueError, match="fall outside"):
            extract_and_perspective_correct(Grid(random_rgb_image), quad)

    def test_requires_rgb_cells(self):
        """Test that a non-RGB grid raises ValueError."""
        quad = Quadrilateral.from_points([[0, 0], [4, 0], [4, 4], [0, 4]])
        with pytest.raises(ValueError, match="cell shape"):
            extract_and_perspective_correct(Grid(np.zeros((5, 5))), quad)


class TestFitToProjection:
    """Test suite for fitting reference slides."""

    def test_output_matches_projection_size(self):
        """Test that references are resized to the projection size."""
        reference = Grid(np.full((120, 160, 3), 80, dtype=np.uint8))

        fitted = fit_to_projection(reference, (79, 59))

        assert (fitted.width, fitted.height) == (79, 59)
        assert fitted.get(40, 30) == (80, 80, 80)

    def test_keeps_left_part_for_narrower_ratio(self):
        """Test that the left part of a wide slide is kept."""
        image = np.zeros((100, 200, 3), dtype=np.uint8)
        image[:, :100] = (255, 0, 0)
        image[:, 100:] = (0, 0, 255)

        fitted = fit_to_projection(Grid(image), (50, 50))

        np.testing.assert_array_equal(
            fitted.to_array(), np.full((50, 50, 3), (255, 0, 0), dtype=np.uint8)
        )

    def test_crop_clamped_to_image_width(self):
        """Test that the crop never exceeds the slide width."""
        image = np.zeros((120, 100, 3), dtype=np.uint8)

        fitted = fit_to_projection(Grid(image), (80, 60))

        assert (fitted.width, fitted.height) == (80, 60), "Fitted reference must match the projection"

    def test_empty_projection_rejected(self):
        """Test that a zero projection size raises ValueError."""
        with pytest.raises(ValueError, match="must be positive"):
            fit_to_projection(Grid(np.zeros((4, 4, 3), dtype=np.uint8)), (0, 4))
